import copy
import xmlrpc.client

import pytest

from inphms_rpc.fields import Field, FieldCollection
from inphms_rpc.http import Session
from inphms_rpc.modules.registry import Registry


PARTNER_FIELDS = {
    'name': {'type': 'char', 'string': 'Name', 'required': True, 'size': 128},
    'active': {'type': 'boolean', 'string': 'Active'},
    'credit_limit': {'type': 'float', 'string': 'Credit Limit'},
    'color': {'type': 'integer', 'string': 'Color Index'},
    'date': {'type': 'date', 'string': 'Date'},
    'write_date': {'type': 'datetime', 'string': 'Last Updated on', 'readonly': 1},
    'country_id': {'type': 'many2one', 'string': 'Country', 'relation': 'res.country'},
    'child_ids': {'type': 'one2many', 'string': 'Contacts', 'relation': 'res.partner'},
    'category_id': {'type': 'many2many', 'string': 'Tags', 'relation': 'res.partner.category'},
    'type': {
        'type': 'selection',
        'string': 'Address Type',
        'selection': [['contact', 'Contact'], ['invoice', 'Invoice Address']],
    },
    'comment': {'type': 'html', 'string': 'Notes'},
    'display_name': {'type': 'char', 'string': 'Display Name', 'func_method': True},
}

MODELS = ['res.partner', 'res.country', 'res.partner.category', 'res.users', 'account.invoice']

TRANSITIONS = [
    {'id': 1, 'signal': 'invoice_open', 'wkf_id': [5, 'account.invoice.basic']},
    {'id': 2, 'signal': False, 'wkf_id': [5, 'account.invoice.basic']},
    {'id': 3, 'signal': 'invoice_cancel', 'wkf_id': [5, 'account.invoice.basic']},
    {'id': 4, 'signal': 'order_confirm', 'wkf_id': [6, 'sale.order.basic']},
]


def partner_fields(*names):
    names = names or PARTNER_FIELDS
    return FieldCollection(Field(name, PARTNER_FIELDS[name]) for name in names)


class FakeTransport:
    """ Stands for a server: records every call and answers ORM calls from
    handlers registered per ``(model, method)``.

    Handlers are called with the positional and keyword arguments of the
    ORM call (the context included, wherever the server version puts it);
    non callable handlers are returned as is.
    """

    def __init__(self, version='16.0', uid=2, databases=('demo',)):
        self.version = version
        self.uid = uid
        self.databases = list(databases)
        self.calls = []
        self.handlers = {}
        self.closed = False

    def on(self, model, method, handler):
        self.handlers[(model, method)] = handler

    def call(self, service, method, args):
        args = list(args)
        self.calls.append((service, method, args))
        match service, method:
            case 'common', 'version':
                return {'server_version': self.version}
            case 'common', 'login':
                return self.uid if args[2] == 'admin' else False
            case 'db', 'list':
                return list(self.databases)
            case 'object', 'execute':
                model, model_method, params, kwargs = args[3], args[4], args[5:], {}
            case 'object', 'execute_kw':
                model, model_method, params = args[3], args[4], args[5]
                kwargs = args[6] if len(args) > 6 else {}
            case 'object', 'exec_workflow':
                model, model_method, params, kwargs = args[3], 'exec_workflow', args[4:], {}
            case _:
                raise xmlrpc.client.Fault(1, "Unknown service method %s.%s" % (service, method))

        handler = self.handlers.get((model, model_method))
        if handler is None:
            raise xmlrpc.client.Fault(2, "Method %s.%s does not exist" % (model, model_method))
        if callable(handler):
            return handler(*params, **kwargs)
        return copy.deepcopy(handler)

    def object_calls(self, model=None, method=None):
        """ Return the ORM calls as ``(model, method, params, kwargs)`` tuples. """
        result = []
        for service, rpc_method, args in self.calls:
            if service != 'object':
                continue
            if rpc_method == 'execute':
                call = (args[3], args[4], args[5:], {})
            elif rpc_method == 'execute_kw':
                call = (args[3], args[4], args[5], args[6] if len(args) > 6 else {})
            else:
                call = (args[3], rpc_method, args[4:], {})
            if model is not None and call[0] != model:
                continue
            if method is not None and call[1] != method:
                continue
            result.append(call)
        return result

    def close(self):
        self.closed = True


def _fields_get(names, *args, **kwargs):
    return {name: dict(props) for name, props in PARTNER_FIELDS.items() if not names or name in names}


def install_default_handlers(transport):
    transport.on('ir.model', 'search', lambda *args, **kwargs: list(range(1, len(MODELS) + 1)))
    transport.on('ir.model', 'read', lambda ids, fields, *args, **kwargs: [
        {'id': i, 'model': MODELS[i - 1]} for i in ids
    ])
    transport.on('res.users', 'context_get', {'lang': 'en_US', 'tz': False})
    transport.on('res.partner', 'fields_get', _fields_get)


@pytest.fixture
def transport():
    transport = FakeTransport()
    install_default_handlers(transport)
    return transport


@pytest.fixture
def registry(request):
    registry = Registry.new('test/%s' % request.node.name)
    yield registry
    Registry.delete(registry.name)


@pytest.fixture
def make_session(transport, registry):
    """ Return a factory of started sessions on the fake server, for a given
    server version.
    """
    def make(version='16.0'):
        transport.version = version
        session = Session(database='demo', user='admin', password='admin',
                          transport=transport, registry=registry)
        return session.start_session()
    return make


@pytest.fixture
def session(make_session):
    return make_session()


@pytest.fixture
def partners(session):
    return session.get_object_adapter('res.partner')
