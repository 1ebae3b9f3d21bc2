# Part of Inphms, see License file for full copyright and licensing details.
r"""\
Inphms RPC HTTP layer

The main duty of this module is to carry remote procedure calls to the
server: from a Python call like ``session.execute('res.partner', 'read',
[ids, fields])`` to an HTTP request on one of the server RPC endpoints, and
back to plain Python values.

Application developers mostly know this module thanks to the
:class:`~inphms_rpc.http.Session`: class, which logs in, keeps the user
context and hands out :class:`~inphms_rpc.service.model.ObjectAdapter`
instances. Below it, a transport speaks either XML-RPC or JSON-RPC over
``requests``:

    Session.execute / execute_kw / execute_with_context
      Transport.call(service, method, args)
        XmlRpcTransport._call   POST /xmlrpc/2/<service>
        JsonRpcTransport._call  POST /jsonrpc

Faults returned by the server are not translated: XML-RPC faults raise
:class:`xmlrpc.client.Fault`, JSON-RPC errors raise
:class:`~inphms_rpc.exceptions.RpcError`.
"""
from __future__ import annotations

import itertools
import logging
import pprint
import threading
import time
import typing
import xmlrpc.client

import requests

import inphms_rpc
from .api import Context
from .exceptions import RpcError, UserError
from .modules.registry import Registry
from .release import SUPPORTED_SERVER_MAJORS
from .service import common, db
from .service.command import LAST_WORKFLOW_MAJOR, Command
from .service.model import ObjectAdapter

if typing.TYPE_CHECKING:
    from .service.common import Version

_logger = logging.getLogger(__name__)
rpc_request = logging.getLogger(__name__ + '.rpc.request')
rpc_response = logging.getLogger(__name__ + '.rpc.response')

DEFAULT_TIMEOUT = 120.0
EXECUTE_KW_MIN_MAJOR = 13


class Transport:
    """ Send a call to one of the services (``common``, ``db``,
    ``object``) of the server at ``url``.

    :param str url: base url of the server, e.g. ``http://localhost:8069``
    :param float timeout: seconds to wait for an answer, ``None`` waits
        forever
    :param requests.Session http: the HTTP session to use, a new one by
        default. Proxies are taken from the environment, as requests does.
    """
    def __init__(self, url, timeout=DEFAULT_TIMEOUT, http=None):
        self.url = url.rstrip('/')
        self.timeout = timeout
        self.http = http if http is not None else requests.Session()

    def __repr__(self):
        return "<%s %s>" % (type(self).__name__, self.url)

    def call(self, service, method, args):
        """ Call ``method`` of ``service`` with the positional ``args`` and
        return its result.
        """
        rpc_request_flag = rpc_request.isEnabledFor(logging.DEBUG)
        rpc_response_flag = rpc_response.isEnabledFor(logging.DEBUG)
        if rpc_request_flag or rpc_response_flag:
            start_time = time.time()

        result = self._call(service, method, list(args))

        if rpc_request_flag or rpc_response_flag:
            end_time = time.time()
            logline = '%s.%s time:%.3fs' % (service, method, end_time - start_time)
            if rpc_response_flag:
                rpc_response.debug('%s, %s', logline, pprint.pformat(result))
            else:
                rpc_request.debug(logline)
        return result

    def _call(self, service, method, args):
        raise NotImplementedError()

    def close(self):
        self.http.close()


class XmlRpcTransport(Transport):
    """ XML-RPC, marshalled with :mod:`xmlrpc.client`. """

    def _call(self, service, method, args):
        body = xmlrpc.client.dumps(tuple(args), method, allow_none=True)
        response = self.http.post(
            '%s/xmlrpc/2/%s' % (self.url, service),
            data=body.encode('utf-8'),
            headers={'Content-Type': 'text/xml; charset=utf-8'},
            timeout=self.timeout,
        )
        response.raise_for_status()
        # raises xmlrpc.client.Fault on a fault response
        params, _method = xmlrpc.client.loads(response.content, use_builtin_types=True)
        return params[0] if params else None


class JsonRpcTransport(Transport):
    """ JSON-RPC 2.0 on the ``/jsonrpc`` endpoint. """

    def __init__(self, url, timeout=DEFAULT_TIMEOUT, http=None):
        super().__init__(url, timeout, http)
        self._ids = itertools.count(1)

    def _call(self, service, method, args):
        payload = {
            'jsonrpc': '2.0',
            'method': 'call',
            'params': {'service': service, 'method': method, 'args': args},
            'id': next(self._ids),
        }
        response = self.http.post('%s/jsonrpc' % self.url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        answer = response.json()
        error = answer.get('error')
        if error:
            data = error.get('data') or {}
            raise RpcError(data.get('message') or error.get('message'), code=error.get('code'), data=data)
        return answer.get('result')


TRANSPORTS = {
    'xmlrpc': XmlRpcTransport,
    'jsonrpc': JsonRpcTransport,
}


class Session:
    """ A user session on one database of a server.

    ::

        session = Session('localhost', 8069, 'demo', 'admin', 'admin')
        session.start_session()
        partners = session.get_object_adapter('res.partner')

    :param transport: the transport to use instead of the one built from
        ``protocol``, ``host``, ``port``, ``rpc`` and ``timeout``
    :param registry: the model name cache to use, by default the one shared
        by all the sessions on the same database
    """
    # the server may fail when one user logs in from several threads at once
    _login_lock = threading.Lock()

    def __init__(self, host='localhost', port=8069, database=None, user='admin', password=None,
                 protocol='http', rpc='xmlrpc', timeout=DEFAULT_TIMEOUT, transport=None, registry=None):
        if protocol not in ('http', 'https'):
            raise UserError("Unknown protocol %r, expected http or https" % (protocol,))
        if transport is None and rpc not in TRANSPORTS:
            raise UserError("Unknown rpc flavour %r, expected one of %s" % (rpc, ", ".join(TRANSPORTS)))
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.protocol = protocol
        self.rpc = rpc
        self.transport = transport or TRANSPORTS[rpc](self.url, timeout=timeout)
        self.registry = registry if registry is not None else Registry(self.registry_key)

        self.uid = None
        self.context = Context()
        self._server_version = None

    @classmethod
    def from_config(cls, config=None, **kwargs):
        """ Build a session from the configuration (``inphms_rpc.tools.config``
        by default); keyword arguments override configured values.
        """
        config = config if config is not None else inphms_rpc.tools.config
        params = dict(
            host=config['host'],
            port=config['port'],
            database=config['db_name'] or None,
            user=config['db_user'],
            password=config['db_password'] or None,
            protocol=config['protocol'],
            rpc=config['rpc'],
            timeout=config['timeout'],
        )
        params.update(kwargs)
        return cls(**params)

    def __repr__(self):
        return "<%s %s db=%s uid=%s>" % (type(self).__name__, self.url, self.database, self.uid)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        self.transport.close()

    @property
    def url(self):
        return '%s://%s:%s' % (self.protocol, self.host, self.port)

    @property
    def registry_key(self):
        return '%s/%s' % (self.url, self.database)

    #
    # Session start
    #
    def start_session(self):
        """ Log in and load the user context.

        :raise AccessDenied: if the credentials are refused
        """
        self.check_database_presence_safe()
        with Session._login_lock:
            self.uid = common.login(self.transport, self.database, self.user, self.password)
        self.check_version_compatibility()
        self.get_remote_context()
        thread = threading.current_thread()
        thread.dbname, thread.uid = self.database, self.uid
        return self

    def check_database_presence_safe(self):
        """ Warn if the database is not listed; listing may be disabled on
        the server, so nothing is raised.
        """
        try:
            db.check_database_presence(self.transport, self.database)
        except LookupError as exc:
            _logger.warning("%s", exc)
        except Exception as exc:  # listing disabled, or any transport fault
            _logger.debug("Could not list databases: %s", exc)

    def check_version_compatibility(self):
        version = self.get_server_version()
        low, high = SUPPORTED_SERVER_MAJORS
        if not low <= version.major <= high:
            _logger.warning(
                "Server version %s is not maintained, only versions %d.x to %d.x are. "
                "Some calls may fail.", version, low, high)

    def get_remote_context(self):
        """ Replace the context with the one of the user on the server. """
        remote = self.execute('res.users', 'context_get', [])
        self.context.clear()
        self.context.update(remote or {})
        # as the web client does
        self.context.active_test = True
        return self.context

    def get_server_version(self) -> Version:
        if self._server_version is None:
            self._server_version = common.get_server_version(self.transport)
        return self._server_version

    def list_databases(self):
        return db.list_databases(self.transport)

    def get_object_adapter(self, model_name) -> ObjectAdapter:
        return ObjectAdapter(Command(self), model_name, self.get_server_version(), self.registry)

    #
    # Remote calls
    #
    def _check_started(self):
        if self.uid is None:
            raise UserError("Session is not started, call start_session() first")

    def execute(self, model, method, params=()):
        """ Call ``method`` of ``model`` with the positional ``params``. """
        self._check_started()
        args = [self.database, self.uid, self.password, model, method, *params]
        return self.transport.call('object', 'execute', args)

    def execute_kw(self, model, method, params=(), kwargs=None):
        """ Call ``method`` of ``model`` with positional and keyword arguments. """
        self._check_started()
        args = [self.database, self.uid, self.password, model, method, list(params), kwargs or {}]
        return self.transport.call('object', 'execute_kw', args)

    def execute_with_context(self, model, method, params=()):
        """ Call ``method`` of ``model`` passing the user context, positionally
        before 13.0 and as keyword argument since.
        """
        if self.get_server_version().major < EXECUTE_KW_MIN_MAJOR:
            return self.execute(model, method, [*params, dict(self.context)])
        return self.execute_kw(model, method, params, {'context': dict(self.context)})

    def execute_workflow(self, model, signal, record_id):
        """ Send a workflow signal; workflows do not exist after 10.0, the
        call is skipped there.
        """
        if self.get_server_version().major > LAST_WORKFLOW_MAJOR:
            _logger.warning("exec_workflow is not supported in server versions > %d, "
                            "signal %s on %s,%s skipped", LAST_WORKFLOW_MAJOR, signal, model, record_id)
            return None
        self._check_started()
        args = [self.database, self.uid, self.password, model, signal, record_id]
        return self.transport.call('object', 'exec_workflow', args)
