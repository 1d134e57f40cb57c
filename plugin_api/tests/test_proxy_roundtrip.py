"""Drive ``ProviderRestAdapter`` against the real plugin API."""

import socket
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient

from dnsplug.adapters.api_errors import RemoteServerError, TransportError
from dnsplug.adapters.metrics import PrometheusFailureRecorder
from dnsplug.adapters.provider_memory import InMemoryProvider
from dnsplug.adapters.provider_rest import ProviderRestAdapter
from dnsplug.domain.contract import ACCEPT_HEADER
from dnsplug.domain.entities import Changes, DomainFilter, Endpoint
from plugin_api.app import create_app
from plugin_api.server import ServerSettings, bound_port, start_in_thread, stop

BASE_URL = "http://testserver"


class InProcessSession:
    """``PluginSession`` look-alike that routes calls into a ``TestClient``."""

    def __init__(self, client: TestClient) -> None:
        self.client = client

    def get(self, url: str, *, accept: str = "application/json", timeout: Optional[float] = None):
        return self.client.get(url, headers={ACCEPT_HEADER: accept})

    def post(self, url: str, *, json_body: Any = None, timeout: Optional[float] = None):
        return self.client.post(url, json=json_body)


def _seed():
    return [
        Endpoint("www.example.com", targets=("1.1.1.1",), record_type="A", record_ttl=60),
        Endpoint(
            "txt.example.com",
            targets=("heritage=external-dns",),
            record_type="TXT",
            labels={"owner": "default"},
        ),
    ]


@pytest.fixture
def provider() -> InMemoryProvider:
    return InMemoryProvider(seed=_seed(), domain_filter=DomainFilter(filters=("example.com",)))


@pytest.fixture
def proxy(provider: InMemoryProvider):
    with TestClient(create_app(provider), base_url=BASE_URL) as client:
        yield ProviderRestAdapter(BASE_URL, session=InProcessSession(client))


def test_handshake_succeeds_against_plugin_api(proxy: ProviderRestAdapter) -> None:
    assert proxy.negotiated is not None


def test_records_round_trip(proxy: ProviderRestAdapter) -> None:
    assert proxy.records() == _seed()


def test_apply_changes_round_trip(proxy: ProviderRestAdapter, provider: InMemoryProvider) -> None:
    old, txt = _seed()
    new = Endpoint("www.example.com", targets=("2.2.2.2",), record_type="A", record_ttl=60)
    created = Endpoint("api.example.com", targets=("3.3.3.3",), record_type="A")

    proxy.apply_changes(
        Changes(create=(created,), update_old=(old,), update_new=(new,), delete=(txt,))
    )

    assert provider.records() == [new, created]
    assert proxy.records() == [new, created]


def test_apply_changes_local_failure_surfaces_as_error(proxy: ProviderRestAdapter) -> None:
    missing = Endpoint("missing.example.com", record_type="A")

    with pytest.raises(RemoteServerError) as excinfo:
        proxy.apply_changes(Changes(delete=(missing,)))

    assert excinfo.value.status == 500
    assert proxy.recorder.count("apply_changes") == 1


def test_property_values_equal_round_trip(proxy: ProviderRestAdapter) -> None:
    assert proxy.property_values_equal("ttl", "300", "300") is True
    assert proxy.property_values_equal("ttl", "300", "600") is False
    assert proxy.recorder.count("property_values_equal") == 0


def test_adjust_endpoints_round_trip(proxy: ProviderRestAdapter) -> None:
    adjusted = proxy.adjust_endpoints(
        [Endpoint("WWW.Example.com.", record_type="A"), Endpoint("x.example.net")]
    )
    assert adjusted == [Endpoint("www.example.com", record_type="A")]


def test_domain_filter_stays_remote(proxy: ProviderRestAdapter) -> None:
    assert not proxy.get_domain_filter().is_configured


# ---------- real sockets ----------


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_live_server_round_trip(provider: InMemoryProvider) -> None:
    settings = ServerSettings(host="127.0.0.1", port=0, log_level="warning")
    server, thread = start_in_thread(provider, settings)
    try:
        proxy = ProviderRestAdapter(f"http://127.0.0.1:{bound_port(server)}", request_timeout_s=5)

        assert proxy.records() == _seed()
        assert proxy.property_values_equal("ttl", "1", "2") is False
        proxy.close()
    finally:
        stop(server, thread)


def test_unreachable_server_hard_and_soft_failures() -> None:
    recorder = PrometheusFailureRecorder()
    proxy = ProviderRestAdapter(
        f"http://127.0.0.1:{_unused_port()}",
        negotiate=False,
        recorder=recorder,
        request_timeout_s=2,
    )
    r1, r2 = _seed()

    assert proxy.property_values_equal("ttl", "300", "300") is True
    assert recorder.count("property_values_equal") == 1

    assert proxy.adjust_endpoints([r1, r2]) == [r1, r2]
    assert recorder.count("adjust_endpoints") == 1

    with pytest.raises(TransportError):
        proxy.records()
    with pytest.raises(TransportError):
        proxy.apply_changes(Changes())
    assert recorder.count("records") == 1
    assert recorder.count("apply_changes") == 1


def test_construction_fails_when_server_unreachable() -> None:
    with pytest.raises(TransportError):
        ProviderRestAdapter(f"http://127.0.0.1:{_unused_port()}", request_timeout_s=2)
