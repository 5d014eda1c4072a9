import pytest
import requests
from requests.adapters import BaseAdapter, HTTPAdapter
from requests.models import Response
from requests.structures import CaseInsensitiveDict

from common.transport import IdentifyingTransport

URL = "https://api.luno.com/api/1/ticker?pair=XBTZAR"


class FakeAdapter(BaseAdapter):
    def __init__(self, err: Exception | None = None):
        super().__init__()
        self.err = err
        self.requests = []
        self.kwargs = []
        self.closed = False

    def send(self, request, **kwargs):
        self.requests.append(request)
        self.kwargs.append(kwargs)
        if self.err is not None:
            raise self.err
        resp = Response()
        resp.status_code = 200
        resp._content = b'{"pair": "XBTZAR"}'
        resp.headers = CaseInsensitiveDict({"Content-Type": "application/json"})
        resp.request = request
        resp.url = request.url
        return resp

    def close(self):
        self.closed = True


def _prepared(user_agent: str | None) -> requests.PreparedRequest:
    headers = {"Accept": "application/json"}
    if user_agent is not None:
        headers["User-Agent"] = user_agent
    return requests.Request("GET", URL, headers=headers).prepare()


@pytest.mark.parametrize(
    "client_name, version, original_ua, expected_ua",
    [
        ("luno-mcp", "1.0.0", "LunoGoSDK/0.0.34 go1.24 linux amd64", "LunoGoSDK/0.0.34 go1.24 linux amd64 (luno-mcp/1.0.0)"),
        ("test-app", "2.0.0", None, "(test-app/2.0.0)"),
        ("test-app", "2.0.0", "", "(test-app/2.0.0)"),
        ("luno-mcp", "1.0.0", "TestClient/1.0", "TestClient/1.0 (luno-mcp/1.0.0)"),
    ],
)
def test_user_agent_is_extended(client_name, version, original_ua, expected_ua):
    inner = FakeAdapter()
    transport = IdentifyingTransport(inner, client_name, version)

    transport.send(_prepared(original_ua))

    assert inner.requests[0].headers["User-Agent"] == expected_ua


def test_original_request_is_not_modified():
    inner = FakeAdapter()
    transport = IdentifyingTransport(inner, "luno-mcp", "1.0.0")
    req = _prepared("OriginalClient/1.0")
    before = (req.method, req.url, dict(req.headers), req.body)

    transport.send(req)

    assert (req.method, req.url, dict(req.headers), req.body) == before
    assert req.headers["User-Agent"] == "OriginalClient/1.0"
    assert inner.requests[0] is not req


def test_default_inner_transport_is_http_adapter():
    transport = IdentifyingTransport(None, "test-app", "1.0.0")
    assert isinstance(transport.transport, HTTPAdapter)
    assert transport.client_name == "test-app"
    assert transport.version == "1.0.0"


def test_uses_provided_transport():
    inner = FakeAdapter()
    transport = IdentifyingTransport(inner, "luno-mcp", "2.0.0")
    assert transport.transport is inner


def test_inner_response_and_kwargs_pass_through():
    inner = FakeAdapter()
    transport = IdentifyingTransport(inner, "luno-mcp", "1.0.0")

    resp = transport.send(_prepared("X/1"), timeout=5, verify=False)

    assert resp.status_code == 200
    assert resp.json() == {"pair": "XBTZAR"}
    assert inner.kwargs[0]["timeout"] == 5
    assert inner.kwargs[0]["verify"] is False


def test_inner_errors_propagate_unchanged():
    boom = requests.ConnectionError("connection refused")
    transport = IdentifyingTransport(FakeAdapter(err=boom), "luno-mcp", "1.0.0")

    with pytest.raises(requests.ConnectionError) as exc:
        transport.send(_prepared("X/1"))
    assert exc.value is boom


def test_mounted_on_session_identifies_requests():
    inner = FakeAdapter()
    session = requests.Session()
    session.mount("https://", IdentifyingTransport(inner, "luno-mcp", "1.0.0"))

    resp = session.get(URL, headers={"User-Agent": "LunoGoSDK/0.0.34 go1.24 linux amd64"})

    assert resp.status_code == 200
    assert inner.requests[0].headers["User-Agent"] == "LunoGoSDK/0.0.34 go1.24 linux amd64 (luno-mcp/1.0.0)"


def test_close_closes_inner_transport():
    inner = FakeAdapter()
    IdentifyingTransport(inner, "luno-mcp", "1.0.0").close()
    assert inner.closed is True
