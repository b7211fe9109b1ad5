import httpx
import pytest

from proxy_provider import ProxyProvider, ProxyType
from proxy_provider import http as http_module


class RecordingClient:
    def __init__(self, **kwargs):
        self.kwargs = kwargs


@pytest.fixture
def recording_client(monkeypatch):
    monkeypatch.setattr(http_module.httpx, "AsyncClient", RecordingClient)


def build_provider(**overrides):
    builder = (
        ProxyProvider.builder()
        .type(ProxyType.HTTP)
        .address(("proxy.corp", 3128))
        .username("alice")
        .password(lambda username: "secret")
        .non_proxy_hosts("localhost|*.internal")
        .connect_timeout_millis(2500)
    )
    for name, value in overrides.items():
        getattr(builder, name)(value)
    return builder.build()


def test_routes_through_proxy(recording_client):
    client = http_module.create_httpx_client(build_provider(), target_host="api.example.com")

    proxy = client.kwargs["proxy"]
    assert proxy.url == httpx.URL("http://proxy.corp:3128")
    assert proxy.auth == ("alice", "secret")
    assert client.kwargs["timeout"].connect == 2.5


def test_bypassed_host_connects_directly(recording_client):
    client = http_module.create_httpx_client(build_provider(), target_host="db.internal")
    assert "proxy" not in client.kwargs


def test_without_provider(recording_client):
    client = http_module.create_httpx_client(None, headers={"X-Test": "1"})
    assert client.kwargs == {"headers": {"X-Test": "1"}}


def test_explicit_timeout_wins(recording_client):
    timeout = httpx.Timeout(1.0)
    client = http_module.create_httpx_client(build_provider(), timeout=timeout)
    assert client.kwargs["timeout"] is timeout


def test_unbounded_handshake_timeout(recording_client):
    client = http_module.create_httpx_client(build_provider(connect_timeout_millis=0))
    assert client.kwargs["timeout"].connect is None


@pytest.mark.asyncio
async def test_real_client_is_configured():
    async with http_module.create_httpx_client(build_provider()) as client:
        assert client.timeout.connect == 2.5
