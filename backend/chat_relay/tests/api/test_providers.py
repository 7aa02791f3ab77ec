from chat_relay.api.deps import get_settings
from chat_relay.main import app
from chat_relay.tests.utils.utils import make_settings


def test_lists_catalog(client):
    r = client.get("/api/providers")
    assert r.status_code == 200
    body = r.json()
    assert body["auto"] == "claude"
    assert [p["id"] for p in body["providers"]] == ["claude", "openai", "gemini", "grok"]
    claude = body["providers"][0]
    assert claude["configured"] is True
    assert claude["default_model"] == "claude-sonnet-4-5-20250929"
    assert claude["fast_model"] == "claude-haiku-4-5-20251001"
    assert not any(p["configured"] for p in body["providers"][1:])


def test_auto_follows_credentials(client):
    app.dependency_overrides[get_settings] = lambda: make_settings(
        GOOGLE_API_KEY="g", XAI_API_KEY="x"
    )
    body = client.get("/api/providers").json()
    assert body["auto"] == "gemini"
    assert {p["id"] for p in body["providers"] if p["configured"]} == {"gemini", "grok"}


def test_metrics_endpoint(client):
    client.get("/api/providers")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "http_requests_total" in r.text


def test_wrong_method_uses_error_body(client):
    r = client.post("/api/providers")
    assert r.status_code == 405
    assert r.json() == {"error": "Method not allowed"}
