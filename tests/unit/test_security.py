import pytest
from starlette.requests import Request

from upload_relay.core.security import client_address


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = ("192.0.2.10", 51000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_connection_peer_wins_when_proxy_not_trusted():
    request = _request({"X-Forwarded-For": "203.0.113.7"})
    assert client_address(request) == "192.0.2.10"


def test_trusted_proxy_uses_leftmost_forwarded_hop():
    request = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
    assert client_address(request, trust_proxy=True) == "203.0.113.7"


def test_trusted_proxy_without_header_falls_back_to_peer():
    assert client_address(_request(), trust_proxy=True) == "192.0.2.10"


def test_forwarded_header_used_verbatim_when_peer_unknown():
    request = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}, client=None)
    assert client_address(request) == "203.0.113.7, 10.0.0.1"


@pytest.mark.parametrize("headers", [{}, {"X-Forwarded-For": "   "}])
def test_unknown_when_nothing_identifies_caller(headers):
    assert client_address(_request(headers, client=None)) == "unknown"
