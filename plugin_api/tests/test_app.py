import json
import threading
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from dnsplug.domain.contract import MEDIA_TYPE
from dnsplug.domain.entities import ACCEPT_ALL, Changes, DomainFilter, Endpoint
from dnsplug.domain.errors import LocalCapabilityError
from plugin_api.app import create_app


class ProviderStub:
    def __init__(self) -> None:
        self.endpoints: List[Endpoint] = [
            Endpoint("www.example.com", targets=("1.2.3.4",), record_type="A", record_ttl=300)
        ]
        self.applied: List[Changes] = []
        self.compared: List[tuple] = []
        self.adjusted: List[List[Endpoint]] = []
        self.fail = False
        self.lock = threading.Lock()

    def _maybe_fail(self, op: str) -> None:
        if self.fail:
            raise LocalCapabilityError(f"secret backend detail during {op}", operation=op)

    def records(self) -> List[Endpoint]:
        self._maybe_fail("records")
        return list(self.endpoints)

    def apply_changes(self, changes: Changes) -> None:
        self._maybe_fail("apply_changes")
        with self.lock:
            self.applied.append(changes)

    def property_values_equal(self, name: str, previous: str, current: str) -> bool:
        self._maybe_fail("property_values_equal")
        self.compared.append((name, previous, current))
        return previous.lower() == current.lower()

    def adjust_endpoints(self, endpoints: List[Endpoint]) -> List[Endpoint]:
        self._maybe_fail("adjust_endpoints")
        self.adjusted.append(list(endpoints))
        return [ep.with_name(ep.dns_name.lower()) for ep in reversed(endpoints)]

    def get_domain_filter(self) -> DomainFilter:
        return ACCEPT_ALL


@pytest.fixture
def provider() -> ProviderStub:
    return ProviderStub()


@pytest.fixture
def client(provider: ProviderStub):
    with TestClient(create_app(provider)) as test_client:
        yield test_client


# ---------- negotiation ----------


@pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
def test_negotiation_headers_for_any_request(client: TestClient, method: str) -> None:
    response = client.request(method, "/", content=b"ignored body", headers={"Accept": MEDIA_TYPE})

    assert response.status_code == 200
    assert response.headers["vary"] == "Content-Type"
    assert response.headers["content-type"] == MEDIA_TYPE
    assert response.content == b""


def test_negotiation_media_type_is_configurable(provider: ProviderStub) -> None:
    other = "application/external.dns.plugin+json;version=2"
    with TestClient(create_app(provider, media_type=other)) as test_client:
        response = test_client.get("/")
    assert response.headers["content-type"] == other


# ---------- records ----------


def test_get_records_returns_json_array(client: TestClient) -> None:
    response = client.get("/records")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == [
        {"dnsName": "www.example.com", "targets": ["1.2.3.4"], "recordType": "A", "recordTTL": 300}
    ]


def test_get_records_failure_is_500_without_detail(
    client: TestClient, provider: ProviderStub, caplog: pytest.LogCaptureFixture
) -> None:
    provider.fail = True

    response = client.get("/records")

    assert response.status_code == 500
    assert response.content == b""
    assert "Provider records failed" in caplog.text


def test_post_records_applies_changes(client: TestClient, provider: ProviderStub) -> None:
    body = {
        "create": [{"dnsName": "new.example.com", "targets": ["5.5.5.5"], "recordType": "A"}],
        "updateOld": [{"dnsName": "www.example.com", "targets": ["1.2.3.4"], "recordType": "A"}],
        "updateNew": [{"dnsName": "www.example.com", "targets": ["4.3.2.1"], "recordType": "A"}],
        "delete": [],
    }

    response = client.post("/records", json=body)

    assert response.status_code == 200
    assert response.content == b""
    [changes] = provider.applied
    assert changes.create == (Endpoint("new.example.com", targets=("5.5.5.5",), record_type="A"),)
    assert changes.update_new[0].targets == ("4.3.2.1",)


def test_post_records_accepts_capitalised_keys(client: TestClient, provider: ProviderStub) -> None:
    response = client.post("/records", json={"Create": None, "Delete": [{"dnsName": "x.example.com"}]})

    assert response.status_code == 200
    assert provider.applied[0].delete == (Endpoint("x.example.com"),)


@pytest.mark.parametrize(
    "raw",
    [
        b"{not json",
        b"",
        b"[]",
        json.dumps({"updateOld": [{"dnsName": "a"}], "updateNew": []}).encode(),
        json.dumps({"create": [{"dnsName": "a", "recordTTL": "soon"}]}).encode(),
    ],
)
def test_post_records_bad_body_is_400(client: TestClient, provider: ProviderStub, raw: bytes) -> None:
    response = client.post("/records", content=raw, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.content == b""
    assert provider.applied == []


def test_post_records_null_body_is_empty_change_set(
    client: TestClient, provider: ProviderStub
) -> None:
    response = client.post("/records", content=b"null")

    assert response.status_code == 200
    assert provider.applied == [Changes()]


def test_body_is_parsed_whatever_the_content_type(
    client: TestClient, provider: ProviderStub
) -> None:
    body = json.dumps({"delete": [{"dnsName": "x.example.com"}]})

    response = client.post("/records", content=body, headers={"Content-Type": "text/plain"})

    assert response.status_code == 200
    assert provider.applied[0].delete == (Endpoint("x.example.com"),)


def test_post_records_failure_is_500(client: TestClient, provider: ProviderStub) -> None:
    provider.fail = True

    response = client.post("/records", json={"create": []})

    assert response.status_code == 500
    assert b"secret" not in response.content


@pytest.mark.parametrize(
    "method,path",
    [
        ("PUT", "/records"),
        ("DELETE", "/records"),
        ("GET", "/propertyvaluesequal"),
        ("GET", "/adjustendpoints"),
    ],
)
def test_wrong_method_is_400(client: TestClient, method: str, path: str) -> None:
    response = client.request(method, path)
    assert response.status_code == 400
    assert response.content == b""


def test_unknown_route_is_404(client: TestClient) -> None:
    assert client.get("/zones").status_code == 404


# ---------- property comparison ----------


def test_property_values_equal(client: TestClient, provider: ProviderStub) -> None:
    response = client.post(
        "/propertyvaluesequal", json={"name": "alias", "previous": "TRUE", "current": "true"}
    )

    assert response.status_code == 200
    assert response.json() == {"equals": True}
    assert provider.compared == [("alias", "TRUE", "true")]


@pytest.mark.parametrize(
    "body,expected",
    [
        ({"name": "ttl", "previous": "1"}, ("ttl", "1", "")),
        ({"name": "ttl", "previous": ""}, ("ttl", "", "")),
        (None, ("", "", "")),
    ],
)
def test_property_values_equal_missing_fields_are_empty(
    client: TestClient, provider: ProviderStub, body: Any, expected: tuple
) -> None:
    response = client.post("/propertyvaluesequal", content=json.dumps(body))

    assert response.status_code == 200
    assert provider.compared == [expected]


@pytest.mark.parametrize(
    "body",
    [
        {"name": "ttl", "previous": 1, "current": 2},
        [],
    ],
)
def test_property_values_equal_bad_body(client: TestClient, body: Any) -> None:
    response = client.post("/propertyvaluesequal", json=body)
    assert response.status_code == 400


def test_property_values_equal_failure_is_500(client: TestClient, provider: ProviderStub) -> None:
    provider.fail = True
    response = client.post(
        "/propertyvaluesequal", json={"name": "ttl", "previous": "1", "current": "1"}
    )
    assert response.status_code == 500
    assert response.content == b""


# ---------- adjustment ----------


def test_adjust_endpoints_round_trip(client: TestClient, provider: ProviderStub) -> None:
    body: List[Dict[str, Any]] = [
        {"dnsName": "A.example.com", "targets": ["1.1.1.1"], "recordType": "A"},
        {"dnsName": "B.example.com", "labels": {"owner": "me"}},
    ]

    response = client.post("/adjustendpoints", json=body)

    assert response.status_code == 200
    assert response.json() == [
        {"dnsName": "b.example.com", "labels": {"owner": "me"}},
        {"dnsName": "a.example.com", "targets": ["1.1.1.1"], "recordType": "A"},
    ]
    assert [ep.dns_name for ep in provider.adjusted[0]] == ["A.example.com", "B.example.com"]


def test_adjust_endpoints_null_body_is_empty_list(
    client: TestClient, provider: ProviderStub
) -> None:
    response = client.post("/adjustendpoints", content=b"null")

    assert response.status_code == 200
    assert response.json() == []
    assert provider.adjusted == [[]]


def test_adjust_endpoints_bad_body(client: TestClient) -> None:
    response = client.post(
        "/adjustendpoints", content=b'{"dnsName": "x"}', headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


def test_adjust_endpoints_failure_is_500(client: TestClient, provider: ProviderStub) -> None:
    provider.fail = True
    response = client.post("/adjustendpoints", json=[])
    assert response.status_code == 500


# ---------- concurrency ----------


def test_concurrent_requests_are_served(client: TestClient, provider: ProviderStub) -> None:
    statuses: List[int] = []

    def worker(idx: int) -> None:
        resp = client.post(
            "/records", json={"create": [{"dnsName": f"h{idx}.example.com"}]}
        )
        statuses.append(resp.status_code)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert statuses == [200] * 10
    assert len(provider.applied) == 10
