import pytest
from fastapi.testclient import TestClient

from inkshare.core.config import settings
from inkshare.main import app

WEBHOOK = f"{settings.API_PREFIX}/telegram/webhook"

UPDATE = {
    "update_id": 501,
    "message": {
        "message_id": 7,
        "date": 1700000000,
        "chat": {"id": 1001, "type": "private"},
        "from": {"id": 1001, "is_bot": False, "first_name": "Alice", "username": "alice"},
        "text": "/help",
    },
}


class RecordingDispatcher:
    def __init__(self):
        self.interactions = []

    async def dispatch(self, interaction):
        self.interactions.append(interaction)
        return {"status": "success"}


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def recorder(client):
    dispatcher = RecordingDispatcher()
    client.app.state.dispatcher = dispatcher
    return dispatcher


def test_update_is_acknowledged_and_dispatched(client, recorder):
    response = client.post(WEBHOOK, json=UPDATE)

    assert response.status_code == 200
    assert response.json() == {"ok": True, "update_id": 501, "queued": True}
    assert len(recorder.interactions) == 1
    assert recorder.interactions[0].sender_handle == "alice"
    assert recorder.interactions[0].text == "/help"


def test_secret_token_mismatch(client, recorder, monkeypatch):
    monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", "s3cret")

    rejected = client.post(WEBHOOK, json=UPDATE, headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"})
    accepted = client.post(WEBHOOK, json=UPDATE, headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"})

    assert rejected.status_code == 401
    assert rejected.json()["code"] == "AUTHENTICATION_FAILED"
    assert accepted.status_code == 200
    assert len(recorder.interactions) == 1


def test_malformed_update(client, recorder):
    response = client.post(WEBHOOK, json={"message": {"text": "/help"}})

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert recorder.interactions == []


def test_webhook_verification(client):
    response = client.get(WEBHOOK)

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_health_endpoints(client):
    health = client.get("/health")

    assert health.status_code == 200
    assert health.json()["checks"]["store"] == "healthy"
    assert client.get("/live").json() == {"status": "alive"}
    assert client.get("/ready").json() == {"status": "ready"}


def test_no_cors_headers(client):
    response = client.get("/live", headers={"Origin": "https://evil.example"})

    assert "access-control-allow-origin" not in response.headers
