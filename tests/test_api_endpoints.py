# tests/test_api_endpoints.py
from __future__ import annotations

import json
from typing import Any, List

import pytest
import requests
from fastapi.testclient import TestClient

import api  # imports app + module-level objects

CONSUL = "http://consul.local:8500"

_AGENT_SERVICES = {
    "billing-1": {"ID": "billing-1", "Service": "billing", "Address": "10.0.0.5", "Port": 8080},
}


class _Response:
    def __init__(self, status_code: int, body: bytes):
        self.status_code = status_code
        self.headers: dict = {}
        self.content = body

    def close(self) -> None:
        pass


class _Transport:
    def __init__(self, status_code: int = 200, error: Exception | None = None):
        self.status_code = status_code
        self.error = error
        self.requests: List[Any] = []

    def send(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return _Response(self.status_code, json.dumps(_AGENT_SERVICES).encode("utf-8"))


@pytest.fixture()
def client() -> TestClient:
    return TestClient(api.app)


@pytest.fixture()
def with_consul(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(api, "settings", api.settings.model_copy(update={"consul_address": CONSUL}))


@pytest.mark.parametrize("path", ["/healthcheck", "/health"])
def test_health_ok(client: TestClient, path: str) -> None:
    r = client.get(path)
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["profile"] == api.settings.profile


def test_get_service_returns_address(client: TestClient, with_consul: None, monkeypatch: pytest.MonkeyPatch) -> None:
    transport = _Transport()
    monkeypatch.setattr(api, "transport", transport)

    r = client.get("/api/v1/services/billing")

    assert r.status_code == 200
    assert r.headers["content-type"] == "application/json; charset=UTF-8"
    assert r.json() == {"Name": "billing", "IP": "10.0.0.5", "Port": 8080, "Location": "10.0.0.5:8080"}
    assert transport.requests[0].url == f"{CONSUL}/v1/agent/services"


def test_list_services(client: TestClient, with_consul: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(api, "transport", _Transport())

    r = client.get("/api/v1/services")

    assert r.status_code == 200
    assert list(r.json()) == ["billing"]


def test_unknown_service_returns_404(client: TestClient, with_consul: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(api, "transport", _Transport())

    r = client.get("/api/v1/services/nope")

    assert r.status_code == 404
    assert "service not in consul" in r.text


def test_consul_error_status_is_passed_through(
    client: TestClient, with_consul: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(api, "transport", _Transport(status_code=403))

    r = client.get("/api/v1/services/billing")

    assert r.status_code == 403
    assert "error calling url" in r.text


def test_consul_unreachable_returns_502(client: TestClient, with_consul: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(api, "transport", _Transport(error=requests.ConnectionError("refused")))

    r = client.get("/api/v1/services/billing")

    assert r.status_code == 502


def test_consul_not_configured_returns_503(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(api, "settings", api.settings.model_copy(update={"consul_address": None}))

    r = client.get("/api/v1/services/billing")

    assert r.status_code == 503
