"""
Tests for the HTTP surface
"""

import base64

import pytest
from fastapi.testclient import TestClient

from conftest import FakeProvider, factory_for, failures
from llm_relay.api.app import create_app
from llm_relay.core.manager import LLMManager

CONFIG = {
    "chat": {"default_model": "gpt-4o", "retry": 1, "retry_delay": 0,
             "other_models": {"claude": "claude-3-haiku-20240307"}},
    "voice": {"default_model": "gpt-4o-mini", "retry": 1, "retry_delay": 0},
}

MESSAGES = {"messages": [{"role": "user", "content": "hi"}]}


@pytest.fixture
def providers():
    return {"openai": FakeProvider("openai"), "claude": FakeProvider("claude")}


@pytest.fixture
def manager(providers):
    return LLMManager(CONFIG, provider_factory=factory_for(providers), health_interval_seconds=60)


@pytest.fixture
def client(manager):
    with TestClient(create_app(manager)) as client:
        yield client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_chat(client, providers):
    providers["openai"].results = ["hello there"]

    response = client.post("/chat/chat", json=MESSAGES)

    assert response.status_code == 200
    assert response.json() == {"success": True, "service_key": "chat", "content": "hello there"}


def test_chat_unknown_service(client):
    response = client.post("/chat/nope", json=MESSAGES)
    assert response.status_code == 404
    assert response.json()["error_code"] == "configuration_error"


def test_chat_all_providers_failed(client, providers):
    providers["openai"].results = failures(1, "openai")
    providers["claude"].results = failures(1, "claude")

    response = client.post("/chat/chat", json=MESSAGES)

    assert response.status_code == 502
    body = response.json()
    assert body["success"] is False
    assert body["attempted_providers"] == ["openai", "claude"]


def test_chat_validation(client):
    assert client.post("/chat/chat", json={"messages": []}).status_code == 422


def test_tts_returns_audio(client, providers):
    providers["openai"].results = [b"ID3audio"]

    response = client.post("/tts/voice", json={"text": "hello"})

    assert response.status_code == 200
    assert response.content == b"ID3audio"
    assert response.headers["content-type"] == "audio/mpeg"


def test_stt(client, providers):
    providers["openai"].results = ["transcribed words"]
    audio = base64.b64encode(b"RIFF....WAVE").decode()

    response = client.post("/stt/voice", json={"audio_base64": audio, "format": "wav"})

    assert response.status_code == 200
    assert response.json()["text"] == "transcribed words"


def test_stt_rejects_bad_base64(client):
    response = client.post("/stt/voice", json={"audio_base64": "***"})
    assert response.status_code == 422


def test_provider_health_endpoints(client):
    client.post("/chat/chat", json=MESSAGES)

    order = client.get("/providers/order").json()["order"]
    assert order[0] == "openai"

    records = client.get("/providers/health").json()["providers"]
    assert [r["provider"] for r in records] == order
    assert records[0]["status"] == "up"

    single = client.get("/providers/health/openai")
    assert single.status_code == 200
    assert single.json()["priority"] == 1
    assert client.get("/providers/health/mystery").status_code == 404


def test_manual_health_check(client, providers):
    providers["openai"].probe_error = RuntimeError("503 unavailable")

    response = client.post("/providers/health/check")

    assert response.status_code == 200
    body = response.json()
    statuses = {r["provider"]: r["status"] for r in body["results"]}
    assert statuses == {"openai": "down", "claude": "up"}
    assert body["order"] == ["claude", "openai"]


def test_shutdown_destroys_manager(manager, providers):
    with TestClient(create_app(manager)) as client:
        assert client.get("/health").status_code == 200
    assert manager.destroyed
    assert providers["openai"].closed
