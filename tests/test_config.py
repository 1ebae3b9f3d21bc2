import logging
import os
import threading

import pytest

from inphms_rpc import netsvc
from inphms_rpc.tools.config import configmanager


@pytest.fixture(autouse=True)
def no_rc_from_environment(monkeypatch):
    monkeypatch.delenv('INPHMS_RPC_RC', raising=False)


def test_defaults(tmp_path):
    config = configmanager(str(tmp_path / 'missing_rc'))
    assert config['host'] == 'localhost'
    assert config['port'] == 8069
    assert config['protocol'] == 'http'
    assert config['rpc'] == 'xmlrpc'
    assert config['timeout'] == 120.0
    assert config['db_name'] is False
    assert config['db_user'] == 'admin'
    assert config['log_level'] == 'info'
    assert config['log_handler'] == []
    assert config.get('nope', 'x') == 'x'
    assert 'host' in config


def test_rcfile_and_command_line(tmp_path):
    rcfile = tmp_path / 'rc'
    rcfile.write_text(
        "[options]\n"
        "host = erp.example.com\n"
        "port = 8070\n"
        "rpc = jsonrpc\n"
        "db_password = False\n"
        "log_handler = inphms_rpc.http:DEBUG, urllib3:ERROR\n",
        encoding='utf-8',
    )
    config = configmanager(str(rcfile))
    assert config['host'] == 'erp.example.com'
    assert config['port'] == 8070
    assert config['rpc'] == 'jsonrpc'
    assert config['db_password'] is False
    assert config['log_handler'] == ['inphms_rpc.http:DEBUG', 'urllib3:ERROR']

    left = config.parse_config(
        ['res.partner', '--port', '9000', '-d', 'demo', '--log-handler', ':WARNING'], setup_logging=False)
    assert left == ['res.partner']
    assert config['port'] == 9000
    assert config['db_name'] == 'demo'
    assert config['host'] == 'erp.example.com'
    assert config['log_handler'] == ['inphms_rpc.http:DEBUG', 'urllib3:ERROR', ':WARNING']


def test_config_option(tmp_path):
    rcfile = tmp_path / 'other_rc'
    rcfile.write_text("[options]\ndb_user = reader\n", encoding='utf-8')
    config = configmanager(str(tmp_path / 'missing_rc'))
    config.parse_config(['-c', str(rcfile)], setup_logging=False)
    assert config.rcfile == os.path.normcase(os.path.realpath(rcfile))
    assert config['db_user'] == 'reader'


def test_save_and_load(tmp_path):
    rcfile = tmp_path / 'conf' / 'rc'
    config = configmanager(str(rcfile))
    config['db_name'] = 'demo'
    config['timeout'] = 15.5
    config['log_handler'] = ['inphms_rpc:DEBUG']
    config.save()

    loaded = configmanager(str(rcfile))
    assert loaded['db_name'] == 'demo'
    assert loaded['timeout'] == 15.5
    assert loaded['port'] == 8069
    assert loaded['logfile'] is None
    assert loaded['log_handler'] == ['inphms_rpc:DEBUG']


def test_parse_config_logging_warning(tmp_path, monkeypatch):
    monkeypatch.setattr(netsvc, 'init_logger', lambda: None)
    config = configmanager(str(tmp_path / 'missing_rc'))
    with pytest.warns(PendingDeprecationWarning):
        config.parse_config([])


def test_log_levels():
    assert netsvc.PSEUDOCONFIG_MAPPER['debug_rpc'] == ['inphms_rpc:DEBUG', 'inphms_rpc.http.rpc.request:DEBUG']
    for item in netsvc.DEFAULT_LOG_CONFIGURATION:
        _name, level = item.split(':')
        assert isinstance(getattr(logging, level), int)


def test_session_formatter(monkeypatch):
    thread = threading.current_thread()
    monkeypatch.setattr(thread, 'dbname', 'demo', raising=False)
    monkeypatch.setattr(thread, 'uid', 2, raising=False)
    record = netsvc.LogRecord('inphms_rpc.http', logging.INFO, __file__, 1, "logged in", (), None)
    formatter = netsvc.SessionFormatter('%(dbname)s:%(uid)s %(name)s: %(message)s')
    assert formatter.format(record) == 'demo:2 inphms_rpc.http: logged in'

    foreign = logging.LogRecord('urllib3', logging.WARNING, __file__, 1, "retrying", (), None)
    assert formatter.format(foreign) == 'demo:2 urllib3: retrying'
