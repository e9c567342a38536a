"""Tests for the agent gateway endpoint."""

import pytest
from fastapi.testclient import TestClient

CORS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "POST, OPTIONS",
    "access-control-allow-headers": "Content-Type",
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        return self._payload


@pytest.fixture
def gateway_env(monkeypatch):
    monkeypatch.setenv("DASH_SERVICE_URL", "https://fn.example.com/")
    monkeypatch.setenv("DASH_SERVICE_ROLE_KEY", "service-secret")


@pytest.fixture
def remote(monkeypatch):
    """Replace the outbound POST; set remote.response to control the reply."""

    class Remote:
        response = FakeResponse(payload={"items": [1, 2], "nested": {"ok": True}})
        calls = []

        def post(self, url, headers=None, json=None):
            self.calls.append({"url": url, "headers": headers, "json": json})
            return self.response

    fake = Remote()
    fake.calls = []
    monkeypatch.setattr("gateway_module.service.requests.post", fake.post)
    return fake


def test_options_preflight(client: TestClient):
    response = client.options("/api/agent")
    assert response.status_code == 200
    assert response.content == b""
    for header, value in CORS.items():
        assert response.headers[header] == value


@pytest.mark.parametrize("method", ["get", "put", "patch", "delete", "trace", "propfind"])
def test_other_methods_not_allowed(client: TestClient, method):
    response = client.request(method.upper(), "/api/agent")
    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}
    assert response.headers["access-control-allow-origin"] == "*"


def test_unknown_agent_returns_400(client: TestClient, gateway_env, remote):
    response = client.post("/api/agent", json={"agent": "unknown"})
    assert response.status_code == 400
    assert response.json() == {"error": "Unknown agent: unknown"}
    assert remote.calls == []


@pytest.mark.parametrize(
    "payload,label",
    [
        ({"agent": 123, "action": "list", "params": {}}, "123"),
        ({"agent": True}, "true"),
        ({"agent": None}, "null"),
        ({"agent": ["dashboard"]}, '["dashboard"]'),
        ({"action": "list"}, "undefined"),
    ],
)
def test_non_string_or_missing_agent_returns_400(client: TestClient, gateway_env, remote, payload, label):
    response = client.post("/api/agent", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": f"Unknown agent: {label}"}
    assert response.headers["access-control-allow-origin"] == "*"
    assert remote.calls == []


def test_dashboard_agent_relays_remote_json(client: TestClient, gateway_env, remote):
    response = client.post("/api/agent", json={"agent": "dashboard", "action": "list", "params": {}})
    assert response.status_code == 200
    assert response.json() == {"items": [1, 2], "nested": {"ok": True}}
    assert response.headers["access-control-allow-origin"] == "*"


def test_dashboard_agent_forwards_action_and_params(client: TestClient, gateway_env, remote):
    client.post(
        "/api/agent",
        json={"agent": "dashboard", "action": "move", "params": {"project_id": 3, "column": "completed"}},
    )
    call = remote.calls[0]
    assert call["url"] == "https://fn.example.com/functions/v1/dashboard-agent"
    assert call["headers"]["Authorization"] == "Bearer service-secret"
    assert call["headers"]["apikey"] == "service-secret"
    assert call["json"] == {"action": "move", "project_id": 3, "column": "completed"}


def test_remote_failure_returns_500_with_remote_text(client: TestClient, gateway_env, remote):
    remote.response = FakeResponse(status_code=502, text="upstream exploded")
    response = client.post("/api/agent", json={"agent": "dashboard", "action": "list", "params": {}})
    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal server error",
        "message": "Dashboard agent error: upstream exploded",
    }


@pytest.mark.parametrize(
    "missing,message",
    [("DASH_SERVICE_URL", "DASH_SERVICE_URL is not set"), ("DASH_SERVICE_ROLE_KEY", "DASH_SERVICE_ROLE_KEY is not set")],
)
def test_missing_config_fails_before_network(client: TestClient, gateway_env, remote, monkeypatch, missing, message):
    monkeypatch.delenv(missing)
    response = client.post("/api/agent", json={"agent": "dashboard", "action": "list", "params": {}})
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "message": message}
    assert remote.calls == []


def test_invalid_json_body_returns_500(client: TestClient, gateway_env, remote):
    response = client.post("/api/agent", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"
    assert remote.calls == []
