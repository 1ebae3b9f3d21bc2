import logging
import xmlrpc.client

import pytest
import requests
from freezegun import freeze_time

from inphms_rpc.exceptions import RpcError
from inphms_rpc.http import JsonRpcTransport, Session, XmlRpcTransport

URL = 'http://localhost:8069'


def xmlrpc_answer(result):
    return xmlrpc.client.dumps((result,), methodresponse=True, allow_none=True)


@pytest.fixture
def xml_transport():
    transport = XmlRpcTransport(URL + '/', timeout=5)
    yield transport
    transport.close()


@pytest.fixture
def json_transport():
    transport = JsonRpcTransport(URL, timeout=5)
    yield transport
    transport.close()


def test_xmlrpc_call(requests_mock, xml_transport):
    requests_mock.post(URL + '/xmlrpc/2/object', text=xmlrpc_answer([{'id': 3, 'name': 'Deco Addict'}]))

    result = xml_transport.call('object', 'execute', ['demo', 2, 'admin', 'res.partner', 'read', [3], ['name']])

    assert result == [{'id': 3, 'name': 'Deco Addict'}]
    request = requests_mock.last_request
    assert request.headers['Content-Type'].startswith('text/xml')
    params, method = xmlrpc.client.loads(request.body)
    assert method == 'execute'
    assert params == ('demo', 2, 'admin', 'res.partner', 'read', [3], ['name'])
    assert request.timeout == 5


def test_xmlrpc_none_values(requests_mock, xml_transport):
    requests_mock.post(URL + '/xmlrpc/2/common', text=xmlrpc_answer(None))
    assert xml_transport.call('common', 'about', [None]) is None


def test_xmlrpc_fault(requests_mock, xml_transport):
    fault = xmlrpc.client.Fault(2, "Access denied on res.partner")
    requests_mock.post(URL + '/xmlrpc/2/object', text=xmlrpc.client.dumps(fault, methodresponse=True))
    with pytest.raises(xmlrpc.client.Fault) as excinfo:
        xml_transport.call('object', 'execute', ['demo', 2, 'admin', 'res.partner', 'unlink', [1]])
    assert excinfo.value.faultString == "Access denied on res.partner"


def test_http_error(requests_mock, xml_transport):
    requests_mock.post(URL + '/xmlrpc/2/db', status_code=502)
    with pytest.raises(requests.HTTPError):
        xml_transport.call('db', 'list', [])


def test_jsonrpc_call(requests_mock, json_transport):
    requests_mock.post(URL + '/jsonrpc', json={'jsonrpc': '2.0', 'id': 1, 'result': ['demo', 'prod']})

    assert json_transport.call('db', 'list', []) == ['demo', 'prod']
    assert json_transport.call('db', 'list', []) == ['demo', 'prod']

    first, second = requests_mock.request_history
    assert first.json() == {
        'jsonrpc': '2.0',
        'method': 'call',
        'params': {'service': 'db', 'method': 'list', 'args': []},
        'id': 1,
    }
    assert second.json()['id'] == 2


def test_jsonrpc_error(requests_mock, json_transport):
    requests_mock.post(URL + '/jsonrpc', json={
        'jsonrpc': '2.0',
        'id': 1,
        'error': {
            'code': 200,
            'message': 'Inphms Server Error',
            'data': {
                'name': 'inphms.exceptions.AccessDenied',
                'message': 'Access Denied',
                'debug': 'Traceback (most recent call last): ...',
            },
        },
    })
    with pytest.raises(RpcError) as excinfo:
        json_transport.call('common', 'login', ['demo', 'admin', 'wrong'])
    error = excinfo.value
    assert error.args[0] == 'Access Denied'
    assert error.code == 200
    assert error.remote_name == 'inphms.exceptions.AccessDenied'
    assert error.remote_traceback.startswith('Traceback')


def test_jsonrpc_error_without_data(requests_mock, json_transport):
    requests_mock.post(URL + '/jsonrpc', json={'jsonrpc': '2.0', 'id': 1, 'error': {'code': -32601, 'message': 'Not found'}})
    with pytest.raises(RpcError, match="Not found"):
        json_transport.call('object', 'nope', [])


def test_request_timing_log(requests_mock, xml_transport, caplog):
    requests_mock.post(URL + '/xmlrpc/2/object', text=xmlrpc_answer(True))
    with freeze_time('2024-05-01 10:00:00'), \
            caplog.at_level(logging.DEBUG, logger='inphms_rpc.http.rpc.request'):
        xml_transport.call('object', 'execute', ['demo', 2, 'admin', 'res.partner', 'write', [1], {}])
    assert [record.getMessage() for record in caplog.records] == ['object.execute time:0.000s']


def test_response_log(requests_mock, xml_transport, caplog):
    requests_mock.post(URL + '/xmlrpc/2/common', text=xmlrpc_answer({'server_version': '16.0'}))
    with freeze_time('2024-05-01 10:00:00'), \
            caplog.at_level(logging.DEBUG, logger='inphms_rpc.http.rpc.response'):
        xml_transport.call('common', 'version', [])
    [record] = caplog.records
    assert record.name == 'inphms_rpc.http.rpc.response'
    assert record.getMessage() == "common.version time:0.000s, {'server_version': '16.0'}"


def test_session_over_xmlrpc(requests_mock, registry):
    def common(request, context):
        _params, method = xmlrpc.client.loads(request.body)
        return xmlrpc_answer(2 if method == 'login' else {'server_version': '16.0'})

    requests_mock.post(URL + '/xmlrpc/2/db', text=xmlrpc_answer(['demo']))
    requests_mock.post(URL + '/xmlrpc/2/common', text=common)
    requests_mock.post(URL + '/xmlrpc/2/object', text=xmlrpc_answer({'lang': 'en_US', 'tz': 'Europe/Brussels'}))

    with Session('localhost', 8069, 'demo', 'admin', 'admin', registry=registry) as session:
        session.start_session()
        assert session.uid == 2
        assert session.context.tz == 'Europe/Brussels'
        assert session.get_server_version().major == 16

    params, method = xmlrpc.client.loads(requests_mock.last_request.body)
    assert method == 'execute'
    assert params == ('demo', 2, 'admin', 'res.users', 'context_get')
