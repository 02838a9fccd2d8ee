import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from softwhere import currency, main
from softwhere.currency import CurrencyRates
from softwhere.main import app, get_currency_rates, get_orchestrator

PAYLOAD = {
    "projectType": "other",
    "complexity": "mvp",
    "pages": 1,
    "features": [],
    "techStack": [],
}


def test_root(client):
    assert client.get("/").status_code == 200


def test_post_estimate(client):
    resp = client.post("/api/estimate", json=PAYLOAD)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert data["developmentCost"] == 7525
    assert data["deadlineWeeks"] == 6
    assert data["supportCost"] == 753
    assert data["source"] == "formula"
    assert data["breakdown"]["hourlyRate"] == 35


def test_post_estimate_validation_error(client):
    resp = client.post("/api/estimate", json={**PAYLOAD, "projectType": "spaceship"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Invalid projectType"}


def test_post_estimate_missing_fields(client):
    resp = client.post("/api/estimate", json={"projectType": "web"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required fields"


def test_post_estimate_unexpected_error(client, orchestrator, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("db on fire")

    monkeypatch.setattr(orchestrator, "get_estimate", boom)
    resp = client.post("/api/estimate", json=PAYLOAD)
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Failed to process estimate request"}


def test_formula_endpoint(client):
    resp = client.post("/api/estimate/formula", json={**PAYLOAD, "projectType": "desktop", "subtype": "tauri"})
    assert resp.status_code == 200
    assert resp.json()["data"]["breakdown"]["techAdjustmentFactor"] == 0.95


def test_save_get_and_pdf(client):
    resp = client.post("/api/estimate/save", json={**PAYLOAD, "name": "Dana", "email": "dana@example.com"})
    assert resp.status_code == 200
    quote_id = resp.json()["data"]["quoteId"]

    quote = client.get(f"/api/estimate/quotes/{quote_id}")
    assert quote.status_code == 200
    body = quote.json()
    assert body["quoteId"] == quote_id
    assert body["customerInfo"]["name"] == "Dana"
    assert body["estimate"]["developmentCost"] == 7525

    pdf = client.get(f"/api/estimate/quotes/{quote_id}/pdf")
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    listed = client.get("/api/estimate/quotes", params={"project_type": "other"})
    assert [q["quoteId"] for q in listed.json()["data"]] == [quote_id]
    assert client.get("/api/estimate/quotes", params={"project_type": "web"}).json()["data"] == []


def test_save_rejects_bad_email(client):
    resp = client.post("/api/estimate/save", json={**PAYLOAD, "email": "dana-at-example"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid email format"


def test_missing_quote(client):
    assert client.get("/api/estimate/quotes/quote_0_nope").status_code == 404
    assert client.get("/api/estimate/quotes/quote_0_nope/pdf").status_code == 404


def test_options(client):
    resp = client.get("/api/estimate/options", params={"project_type": "desktop", "subtype": "electron"})
    assert resp.status_code == 200
    service = resp.json()["services"][0]
    assert service["id"] == "desktop"
    assert "electron" not in [o["id"] for g in service["techStack"] for o in g["options"]]

    assert len(client.get("/api/estimate/options").json()["services"]) == 6
    assert client.get("/api/estimate/options", params={"project_type": "spaceship"}).status_code == 400


def test_health(client):
    resp = client.get("/api/health/db")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_health_failure(client, orchestrator, monkeypatch):
    def broken():
        raise RuntimeError("no database")

    monkeypatch.setattr(orchestrator.quote_store, "ping", broken)
    resp = client.get("/api/health/db")
    assert resp.status_code == 503
    assert resp.json()["status"] == "error"


def test_dependency_is_overridden(client, orchestrator):
    assert app.dependency_overrides[get_orchestrator]() is orchestrator


@pytest.mark.parametrize("path", ["/api/estimate", "/api/estimate/formula", "/api/estimate/save"])
@pytest.mark.parametrize("body", [["web"], "web", 5])
def test_non_object_body_is_400(client, path, body):
    resp = client.post(path, json=body)
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Request body must be an object"}


def test_malformed_json_is_400(client):
    resp = client.post("/api/estimate", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Request body must be valid JSON"}


def test_bad_query_param_is_400(client):
    resp = client.get("/api/estimate/quotes", params={"start_date": "yesterday-ish"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"].startswith("Invalid start_date")


def test_save_rejects_string_use_ai(client):
    resp = client.post("/api/estimate/save", json={**PAYLOAD, "useAi": "false"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "useAi must be a boolean"


@pytest.fixture
def rates_client(client, monkeypatch):
    calls = []
    replies = []

    def fake_get(url, timeout=None):
        calls.append(url)
        return replies.pop(0)

    monkeypatch.setattr(currency.requests, "get", fake_get)
    provider = CurrencyRates(api_key="")
    app.dependency_overrides[get_currency_rates] = lambda: provider
    return client, calls, replies


class RatesReply:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload

    def json(self):
        return self._payload


def test_currency_rates(rates_client):
    client, calls, replies = rates_client
    replies.append(RatesReply(200, {"result": "success", "base_code": "USD", "rates": {"USD": 1, "EUR": 0.92}}))

    first = client.get("/api/currency/rates")
    second = client.get("/api/currency/rates")

    assert first.status_code == 200
    assert first.json() == {"base": "USD", "rates": {"USD": 1, "EUR": 0.92}, "currencies": ["USD", "UZS", "EUR", "RUB"]}
    assert second.json() == first.json()
    assert len(calls) == 1


def test_currency_rates_upstream_failure(rates_client):
    client, _, replies = rates_client
    replies.append(RatesReply(503))

    resp = client.get("/api/currency/rates")
    assert resp.status_code == 502
    assert resp.json() == {"success": False, "error": "Failed to fetch rates"}


def test_default_orchestrator_built_once_under_concurrency(monkeypatch):
    built = []

    class SlowOrchestrator:
        def __init__(self, db_path):
            time.sleep(0.05)
            built.append(db_path)

    monkeypatch.setattr(main, "EstimateOrchestrator", SlowOrchestrator)
    monkeypatch.setattr(main, "_orchestrator", None)

    with ThreadPoolExecutor(max_workers=8) as pool:
        instances = list(pool.map(lambda _: main.get_orchestrator(), range(8)))

    assert len(built) == 1
    assert all(i is instances[0] for i in instances)
