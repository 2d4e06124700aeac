"""End-to-end tests for the proxy route with a faked upstream."""

import pytest
from fastapi.testclient import TestClient

import src.api.main as main
from src.database.redis import RedisCache
from src.integrations.policy.response_wrappers import UpstreamError
from src.utils.config_loader import ProxyConfig, SheetsConfig


class FakeUpstream:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    async def request(self, method, path, headers=None, body=None, params=None):
        self.calls.append({"method": method, "path": path, "headers": headers, "body": body, "params": params})
        status, payload = self.responses[path]
        if status >= 400:
            raise UpstreamError(status, payload)
        return payload


@pytest.fixture
def upstream(monkeypatch):
    fake = FakeUpstream({
        "/api/v1/bankList": (200, [{"id": "sberbank", "name": "Сбербанк"}]),
        "/api/v1/calculation": (200, {"price": 512.5}),
        "/api/v1/calculation/complex": (400, {"errors": [{"message": "Ошибка расчёта"}]}),
        "/api/v1/profile": (401, {"error": "unauthorized"}),
    })
    monkeypatch.setattr(main, "upstream_client", fake)
    return fake


@pytest.fixture
def client(monkeypatch, upstream, spreadsheet):
    config = ProxyConfig(sheets=SheetsConfig(min_delay=0, max_delay=0))
    monkeypatch.setattr(main, "manager", main.build_manager(config, source=spreadsheet, store=RedisCache()))
    return TestClient(main.app)


QUOTE = {
    "bankId": "sberbank",
    "companyId": "makc",
    "creditSum": 100000,
    "property": True,
    "propertyType": "flat",
    "title": True,
}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_bank_list_is_merged(client, upstream):
    response = client.get("/api/v1/bankList", params={"type": "mortgage"}, headers={"Authorization": "Bearer t"})
    assert response.status_code == 200
    assert response.json() == [
        {"id": "vtb", "name": "ВТБ", "extra": True},
        {"id": "sberbank", "name": "Сбербанк", "extra": False},
    ]
    call = upstream.calls[0]
    assert call["params"] == [("type", "mortgage")]
    assert call["headers"]["authorization"] == "Bearer t"


def test_calculation_gets_estimate(client, upstream):
    response = client.post("/api/v1/calculation", json=QUOTE)
    assert response.status_code == 200
    assert response.json() == {
        "price": 512.5,
        "tildaExtra": {"available": True, "total": 300.0, "partnerKv": 45.0},
    }
    assert upstream.calls[0]["body"] == QUOTE


def test_calculation_400_is_recovered(client):
    response = client.post("/api/v1/calculation/complex", json=QUOTE)
    assert response.status_code == 200
    assert response.json() == {"tildaExtra": {"available": True, "total": 300.0, "partnerKv": 45.0}}


def test_upstream_error_is_forwarded(client):
    response = client.get("/api/v1/profile")
    assert response.status_code == 401
    assert response.json() == {"error": "unauthorized"}


def test_other_methods_are_rejected(client, upstream):
    assert client.put("/api/v1/calculation", json=QUOTE).status_code == 405
    assert client.delete("/api/v1/bankList").status_code == 405
    assert upstream.calls == []


def test_non_api_paths_are_not_proxied(client, upstream):
    assert client.get("/static/app.js").status_code == 404
    assert upstream.calls == []


def test_unexpected_failure_is_500(client, monkeypatch):
    class Broken:
        async def request(self, *args, **kwargs):
            raise RuntimeError("boom")

    monkeypatch.setattr(main, "upstream_client", Broken())
    response = client.get("/api/v1/profile")
    assert response.status_code == 500
    assert response.json() == {"error": "Unexpected server error"}
