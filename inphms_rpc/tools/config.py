# Part of Inphms, see License file for full copyright and licensing details.

import configparser as configparser
import logging
import optparse
import os
import warnings

import inphms_rpc

from os.path import expandvars, expanduser, abspath, realpath, normcase
from .. import release

_logger = logging.getLogger(__name__)

DEFAULT_RC = '~/.inphms_rpcrc'


class MyOption(optparse.Option, object):
    """ optparse Option with two additional attributes.

    The list of command line options (getopt.Option) is used to create the
    list of the configuration file options. When reading the file, and then
    reading the command line arguments, we don't want optparse.parse results
    to override the configuration file values. But if we provide default
    values to optparse, optparse will return them and we can't know if they
    were really provided by the user or not. A solution is to not use
    optparse's default attribute, but use a custom one (that will be copied
    to create the default values of the configuration file).

    """
    def __init__(self, *opt, **attrs):
        self.my_default = attrs.pop('my_default', None)
        super(MyOption, self).__init__(*opt, **attrs)


class configmanager(object):
    def __init__(self, fname=None):
        """Constructor.

        :param fname: a shortcut allowing to instantiate :class:`configmanager`
                      from Python code without resorting to env variable
        """
        self.options = {}
        self.config_file = fname
        # options that the config file may not override (given on the command line)
        self._cli_options = set()

        version = "%s %s" % (release.description, release.version)
        self.parser = parser = optparse.OptionParser(version=version, option_class=MyOption)

        parser.add_option("-c", "--config", dest="config",
                          help="specify alternate config file")

        group = optparse.OptionGroup(parser, "Server connection")
        group.add_option("--host", dest="host", my_default='localhost',
                         help="specify the server host name")
        group.add_option("-p", "--port", dest="port", my_default=8069, type="int",
                         help="specify the server port")
        group.add_option("--protocol", dest="protocol", my_default='http', type="choice",
                         choices=['http', 'https'],
                         help="transport protocol: http or https")
        group.add_option("--rpc", dest="rpc", my_default='xmlrpc', type="choice",
                         choices=['xmlrpc', 'jsonrpc'],
                         help="rpc flavour spoken to the server: xmlrpc or jsonrpc")
        group.add_option("--timeout", dest="timeout", my_default=120.0, type="float",
                         help="seconds to wait for a server answer")
        parser.add_option_group(group)

        group = optparse.OptionGroup(parser, "Database related options")
        group.add_option("-d", "--database", dest="db_name", my_default=False,
                         help="specify the database name")
        group.add_option("-r", "--db_user", dest="db_user", my_default='admin',
                         help="specify the login")
        group.add_option("-w", "--db_password", dest="db_password", my_default=False,
                         help="specify the password")
        parser.add_option_group(group)

        group = optparse.OptionGroup(parser, "Logging Configuration")
        group.add_option("--logfile", dest="logfile", my_default=None,
                         help="file where the client log will be stored")
        group.add_option('--log-handler', action="append", default=[], my_default=[],
                         metavar="PREFIX:LEVEL",
                         help='setup a handler at LEVEL for a given PREFIX. An empty PREFIX '
                              'indicates the root logger. This option can be repeated. '
                              'Example: "inphms_rpc.http:DEBUG" or "werkzeug:CRITICAL" (default: ":INFO")')
        group.add_option('--log-level', dest='log_level', type='choice',
                         choices=['info', 'debug_rpc', 'debug_rpc_answer', 'debug', 'warn', 'error', 'critical'],
                         my_default='info',
                         help='specify the level of the logging.')
        parser.add_option_group(group)

        # Copy all optparse options (i.e. MyOption) into self.options.
        for group in parser.option_groups:
            for option in group.option_list:
                if option.dest not in self.options:
                    self.options[option.dest] = option.my_default
                    self.casts[option.dest] = option

        self._parse_config()

    @property
    def casts(self):
        try:
            return self._casts
        except AttributeError:
            self._casts = {}
            return self._casts

    def parse_config(self, args: list[str] | None = None, *, setup_logging: bool | None = None) -> list[str]:
        """ Parse the configuration file (if any) and the cli arguments.

        This function init inphms_rpc.tools.config and returns the positional
        arguments left on the command line.

        Typical usage of this function:

            inphms_rpc.tools.config.parse_config(sys.argv[1:])
        """
        args = self._parse_config(args)
        if setup_logging is not False:
            inphms_rpc.netsvc.init_logger()
            if setup_logging is None:
                warnings.warn(
                    "It's recommended to specify wheter"
                    " you want Inphms RPC to setup its own logging"
                    " (or want to handle it yourself)",
                    category=PendingDeprecationWarning,
                    stacklevel=2,
                )
        return args

    def _parse_config(self, args=None):
        if args is None:
            args = []
        opt, args = self.parser.parse_args(args)

        rcfilepath = opt.config or self.config_file or os.environ.get('INPHMS_RPC_RC') or DEFAULT_RC
        self.rcfile = normcase(realpath(abspath(expanduser(expandvars(rcfilepath)))))
        self.load()

        for name, option in self.casts.items():
            value = getattr(opt, name, None)
            if value is None or value == []:
                continue
            if option.action == 'append':
                self.options[name] = self.options.get(name, []) + value
            else:
                self.options[name] = value
            self._cli_options.add(name)
        return args

    def load(self):
        """ Read :attr:`rcfile`, values given on the command line win. """
        p = configparser.RawConfigParser()
        try:
            p.read([self.rcfile])
        except configparser.Error as exc:
            _logger.warning("Could not read config file %s: %s", self.rcfile, exc)
            return
        if not p.has_section('options'):
            return
        for (name, value) in p.items('options'):
            if name in self._cli_options:
                continue
            if value in ('True', 'true'):
                value = True
            elif value in ('False', 'false'):
                value = False
            elif value == 'None':
                value = None
            option = self.casts.get(name)
            if option is not None and isinstance(value, str):
                if option.type == 'int':
                    value = int(value)
                elif option.type == 'float':
                    value = float(value)
                elif option.action == 'append':
                    value = [item.strip() for item in value.split(',') if item.strip()]
            self.options[name] = value

    def save(self):
        p = configparser.RawConfigParser()
        p.add_section('options')
        for opt in sorted(self.options):
            if opt == 'config':
                continue
            value = self.options[opt]
            if isinstance(value, list):
                value = ','.join(value)
            p.set('options', opt, value)
        rc_dir = os.path.dirname(self.rcfile)
        if rc_dir and not os.path.exists(rc_dir):
            os.makedirs(rc_dir, 0o700)
        with open(self.rcfile, 'w', encoding='utf-8') as fp:
            p.write(fp)

    def get(self, key, default=None):
        return self.options.get(key, default)

    def __setitem__(self, key, value):
        self.options[key] = value

    def __getitem__(self, key):
        return self.options[key]

    def __contains__(self, key):
        return key in self.options


config = configmanager()
