# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

import logging
import logging.handlers
import os
import sys
import threading
import warnings

from . import release
from . import tools

_logger = logging.getLogger(__name__)


BLACK, RED, GREEN, YELLOW, BLUE, MAGENTA, CYAN, WHITE, _NOTHING, DEFAULT = range(10)
# foreground is 30 plus the color, background is 40 plus the color
RESET_SEQ = "\033[0m"
COLOR_SEQ = "\033[1;%dm"
COLOR_PATTERN = "%s%s%%s%s" % (COLOR_SEQ, COLOR_SEQ, RESET_SEQ)
LEVEL_COLOR_MAPPING = {
    logging.DEBUG: (BLUE, DEFAULT),
    logging.INFO: (GREEN, DEFAULT),
    logging.WARNING: (YELLOW, DEFAULT),
    logging.ERROR: (RED, DEFAULT),
    logging.CRITICAL: (WHITE, RED),
}

LOG_FORMAT = '%(asctime)s %(pid)s %(levelname)s %(dbname)s:%(uid)s %(name)s: %(message)s'


def session_info():
    """ Database name and user id of the session started on the current
    thread, ``('?', '-')`` when none was started.
    """
    thread = threading.current_thread()
    return getattr(thread, 'dbname', '?'), getattr(thread, 'uid', '-')


class SessionFormatter(logging.Formatter):
    def format(self, record):
        if not hasattr(record, 'dbname'):
            # records built by a foreign factory
            record.pid = os.getpid()
            record.dbname, record.uid = session_info()
        return super().format(record)


class ColoredFormatter(SessionFormatter):
    def format(self, record):
        fg_color, bg_color = LEVEL_COLOR_MAPPING.get(record.levelno, (GREEN, DEFAULT))
        record.levelname = COLOR_PATTERN % (30 + fg_color, 40 + bg_color, record.levelname)
        return super().format(record)


def _file_handler(logfile):
    dirname = os.path.dirname(logfile)
    if dirname and not os.path.isdir(dirname):
        os.makedirs(dirname)
    if os.name == 'posix':
        # reopens the file when logrotate moves it away
        return logging.handlers.WatchedFileHandler(logfile, encoding='utf-8')
    return logging.FileHandler(logfile, encoding='utf-8')


def init_logger():
    if logging.getLogRecordFactory() is LogRecord:
        return

    logging.setLogRecordFactory(LogRecord)

    logging.captureWarnings(True)
    # enable deprecation warnings (disabled by default)
    warnings.simplefilter('default', category=DeprecationWarning)
    # https://github.com/urllib3/urllib3/issues/2680
    warnings.filterwarnings('ignore', r'^\'urllib3.contrib.pyopenssl\' module is deprecated.+', category=DeprecationWarning)

    handler = logging.StreamHandler()
    if tools.config['logfile']:
        try:
            handler = _file_handler(tools.config['logfile'])
        except OSError:
            sys.stderr.write("ERROR: couldn't create the logfile directory. Logging to the standard output.\n")

    def is_a_tty(stream):
        return hasattr(stream, 'fileno') and os.isatty(stream.fileno())

    if os.name == 'posix' and isinstance(handler, logging.StreamHandler) and (is_a_tty(handler.stream) or os.environ.get("INPHMS_PY_COLORS")):
        formatter = ColoredFormatter(LOG_FORMAT)
    else:
        formatter = SessionFormatter(LOG_FORMAT)
    handler.setFormatter(formatter)
    logging.getLogger().addHandler(handler)

    # per logger levels: defaults, then --log-level, then --log-handler
    pseudo_config = PSEUDOCONFIG_MAPPER.get(tools.config['log_level'], [])
    logging_configurations = DEFAULT_LOG_CONFIGURATION + pseudo_config + tools.config['log_handler']
    for logconfig_item in logging_configurations:
        loggername, level = logconfig_item.strip().split(':')
        logging.getLogger(loggername).setLevel(getattr(logging, level, logging.INFO))
        _logger.debug('logger level set: "%s"', logconfig_item)

    _logger.debug("%s %s logging initialized", release.description, release.version)


DEFAULT_LOG_CONFIGURATION = [
    'inphms_rpc.http.rpc.request:INFO',
    'inphms_rpc.http.rpc.response:INFO',
    'urllib3:WARNING',
    ':INFO',
]
PSEUDOCONFIG_MAPPER = {
    'debug_rpc_answer': ['inphms_rpc:DEBUG', 'inphms_rpc.http.rpc:DEBUG'],
    'debug_rpc': ['inphms_rpc:DEBUG', 'inphms_rpc.http.rpc.request:DEBUG'],
    'debug': ['inphms_rpc:DEBUG'],
    'info': [],
    'warn': ['inphms_rpc:WARNING', 'urllib3:WARNING'],
    'error': ['inphms_rpc:ERROR', 'urllib3:ERROR'],
    'critical': ['inphms_rpc:CRITICAL', 'urllib3:CRITICAL'],
}


class LogRecord(logging.LogRecord):
    def __init__(self, name, level, pathname, lineno, msg, args, exc_info, func=None, sinfo=None):
        super().__init__(name, level, pathname, lineno, msg, args, exc_info, func, sinfo)
        self.pid = os.getpid()
        self.dbname, self.uid = session_info()
