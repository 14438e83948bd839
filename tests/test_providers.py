"""
Tests for vendor payload shaping, response parsing and provider construction
"""

import pytest

from llm_relay.core.errors import ConfigurationError, NotSupportedError, VendorError
from llm_relay.models.data_classes import GenerationParameters
from llm_relay.models.enums import HealthStatus, OperationKind
from llm_relay.models.schemas import Message, ServiceConfig, TTSOptions
from llm_relay.providers import (
    AzureProvider, ClaudeProvider, GeminiProvider, OpenAIProvider, ProviderFactory
)

MESSAGES = [
    Message(role="system", content="Be terse."),
    Message(role="user", content="List three colors."),
]
SCHEMA = {"type": "object", "properties": {"colors": {"type": "array"}}}


def test_openai_structured_output_for_capable_models():
    provider = OpenAIProvider(api_key="k")
    params = GenerationParameters(temperature=0.2, max_tokens=100, response_schema=SCHEMA)

    payload = provider.build_chat_payload(MESSAGES, params, "gpt-4o-mini")

    assert payload["model"] == "gpt-4o-mini"
    assert payload["temperature"] == 0.2
    assert payload["max_tokens"] == 100
    assert payload["response_format"] == {
        "type": "json_schema",
        "json_schema": {"name": "response", "schema": SCHEMA}
    }
    assert payload["messages"][-1]["content"] == "List three colors."


def test_openai_json_hint_for_older_models():
    provider = OpenAIProvider(api_key="k")
    params = GenerationParameters(response_schema=SCHEMA)

    payload = provider.build_chat_payload(MESSAGES, params, "gpt-4")

    assert "response_format" not in payload
    assert payload["messages"][-1]["content"].endswith("Please respond in JSON format.")
    assert MESSAGES[-1].content == "List three colors."


async def test_openai_chat_cleans_json_when_asked(monkeypatch):
    provider = OpenAIProvider(api_key="k")
    seen = {}

    async def fake_request(method, path, **kwargs):
        seen["path"] = path
        seen["json"] = kwargs["json"]
        return {"choices": [{"message": {"content": "```json\n{\"a\": 1}\n```"}}]}

    monkeypatch.setattr(provider, "_request", fake_request)

    text = await provider.chat(MESSAGES, GenerationParameters(clean_json_response=True), "gpt-4o")

    assert text == '{"a": 1}'
    assert seen["path"] == "/chat/completions"
    assert seen["json"]["model"] == "gpt-4o"


def test_openai_unparseable_response():
    with pytest.raises(VendorError):
        OpenAIProvider.parse_chat_response({"choices": []})


def test_openai_tts_defaults():
    payload = OpenAIProvider(api_key="k").build_tts_payload(TTSOptions(text="hi"), "tts-1")
    assert payload == {"model": "tts-1", "input": "hi", "voice": "alloy",
                       "response_format": "mp3", "speed": 1.0}


def test_claude_payload_moves_system_prompt():
    provider = ClaudeProvider(api_key="secret")
    payload = provider.build_chat_payload(MESSAGES, GenerationParameters(temperature=0.5), "claude-3-opus")

    assert payload["system"] == "Be terse."
    assert payload["messages"] == [{"role": "user", "content": "List three colors."}]
    assert payload["max_tokens"] == 1000
    assert payload["temperature"] == 0.5
    assert provider._headers() == {"x-api-key": "secret", "anthropic-version": "2023-06-01"}


def test_claude_parse_response():
    data = {"content": [{"type": "text", "text": "red, "}, {"type": "text", "text": "blue"}]}
    assert ClaudeProvider.parse_chat_response(data) == "red, blue"


async def test_claude_has_no_speech():
    provider = ClaudeProvider(api_key="k")
    assert not provider.supports(OperationKind.TTS)
    with pytest.raises(NotSupportedError):
        await provider.tts(TTSOptions(text="hi"))


def test_gemini_payload():
    provider = GeminiProvider(api_key="k")
    messages = MESSAGES + [Message(role="assistant", content="red"), Message(role="user", content="more")]
    params = GenerationParameters(temperature=0.3, max_tokens=50, top_p=0.8,
                                  response_mime_type="application/json", response_schema=SCHEMA)

    payload = provider.build_chat_payload(messages, params)

    assert [c["role"] for c in payload["contents"]] == ["user", "model", "user"]
    assert payload["systemInstruction"] == {"parts": [{"text": "Be terse."}]}
    assert payload["generationConfig"] == {
        "temperature": 0.3,
        "maxOutputTokens": 50,
        "topP": 0.8,
        "responseMimeType": "application/json",
        "responseSchema": SCHEMA,
    }


def test_gemini_cleans_json_by_default():
    assert GeminiProvider(api_key="k").default_parameters.clean_json_response is True
    assert OpenAIProvider(api_key="k").default_parameters.clean_json_response is None


def test_gemini_blocked_prompt():
    with pytest.raises(VendorError, match="SAFETY"):
        GeminiProvider.parse_chat_response({"promptFeedback": {"blockReason": "SAFETY"}})


def test_azure_requires_endpoint():
    with pytest.raises(ConfigurationError):
        AzureProvider(api_key="k")


async def test_azure_uses_deployment_urls(monkeypatch):
    provider = AzureProvider(api_key="k", endpoint="https://acme.openai.azure.com/openai/deployments/")
    seen = {}

    async def fake_request(method, path, **kwargs):
        seen.update(path=path, **kwargs)
        return {"choices": [{"message": {"content": "ok"}}]}

    monkeypatch.setattr(provider, "_request", fake_request)

    assert await provider.chat(MESSAGES, GenerationParameters(), "prod-gpt4") == "ok"
    assert seen["path"] == "/prod-gpt4/chat/completions"
    assert seen["params"] == {"api-version": "2024-02-15-preview"}
    assert "model" not in seen["json"]
    assert provider._headers() == {"api-key": "k"}


async def test_probe_failure_reported_as_down():
    class Unreachable(OpenAIProvider):
        async def _probe(self):
            raise ConnectionError("connection refused")

    result = await Unreachable(api_key="k").probe_health()

    assert result.status == HealthStatus.DOWN
    assert "connection refused" in result.error
    assert result.response_time_ms is not None


async def test_probe_success_is_timed():
    class Reachable(ClaudeProvider):
        async def _probe(self):
            return None

    result = await Reachable(api_key="k").probe_health()
    assert result.status == HealthStatus.UP
    assert result.provider == "claude"
    assert result.response_time_ms >= 0


def test_factory_prefers_environment_keys(monkeypatch):
    config = ServiceConfig(default_model="gpt-4o", openai_key="from-config", claude_key="claude-config")
    monkeypatch.setenv("OPENAI_API_KEY", "from-env")

    assert ProviderFactory.create_provider("openai", config).api_key == "from-env"
    assert ProviderFactory.create_provider("claude", config).api_key == "claude-config"


def test_factory_generic_key_and_azure_endpoint(monkeypatch):
    config = ServiceConfig(default_model="my-deploy", api_key="shared")
    monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://acme.openai.azure.com/openai/deployments")

    gemini = ProviderFactory.create_provider("gemini", config)
    azure = ProviderFactory.create_provider("azure", config)

    assert gemini.api_key == "shared"
    assert azure.endpoint == "https://acme.openai.azure.com/openai/deployments"
    assert azure.default_model == "my-deploy"


def test_factory_unknown_provider():
    with pytest.raises(ConfigurationError):
        ProviderFactory.create_provider("mistral", ServiceConfig(default_model="mistral-large"))
