"""
Tests for the HTTP transport, using a fake `requests.Session`.
"""
import pytest
import requests
from d1db.exceptions import ConnectionFailure, TransportError
from d1db.sql import prepare
from d1db.transport import Transport


@pytest.fixture
def transport(options, fake_session):
    return Transport(options, session=fake_session)


def test_request_shape(transport, fake_session, envelope):
    fake_session.respond(envelope(rows=[]))
    transport.send(prepare('SELECT * FROM t WHERE id = %d', 3))

    call = fake_session.calls[0]
    assert call['url'] == (
        'https://api.cloudflare.com/client/v4/accounts/test-account'
        '/d1/database/test-database/query'
    )
    assert call['json'] == {'sql': 'SELECT * FROM t WHERE id = ?', 'params': [3]}
    assert call['headers'] == {
        'Authorization': 'Bearer test-token',
        'Content-Type': 'application/json',
    }
    assert call['timeout'] == 15


def test_returns_raw_body(transport, fake_session):
    fake_session.respond('{"success": true}')
    assert transport.send(prepare('SELECT 1')) == '{"success": true}'


def test_http_error_status_returns_body(transport, fake_session, error_envelope):
    fake_session.respond(error_envelope('Authentication error', code=10000), status_code=403)
    body = transport.send(prepare('SELECT 1'))
    assert 'Authentication error' in body


@pytest.mark.parametrize('exc', [
    requests.Timeout('Read timed out.'),
    requests.ConnectionError('Name or service not known'),
])
def test_network_failure_is_transport_error(transport, fake_session, exc):
    fake_session.fail(exc)
    with pytest.raises(TransportError) as info:
        transport.send(prepare('SELECT 1'))
    assert isinstance(info.value, ConnectionFailure)
    assert info.value.__cause__ is exc


def test_single_attempt(transport, fake_session, timeout_error):
    fake_session.fail(timeout_error)
    with pytest.raises(TransportError):
        transport.send(prepare('SELECT 1'))
    assert len(fake_session.calls) == 1


def test_close_leaves_injected_session_open(transport, fake_session):
    transport.close()
    assert fake_session.closed is False


def test_owned_session_created_and_closed(options):
    transport = Transport(options)
    session = transport.session
    assert isinstance(session, requests.Session)
    assert transport.session is session
    transport.close()
    assert transport._session is None
