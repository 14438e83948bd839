"""
Shared fixtures: scripted in-memory providers standing in for vendor APIs
"""

from typing import Any, Dict, Iterable, List, Optional

import pytest

from llm_relay.core.capabilities import DEFAULT_CAPABILITIES
from llm_relay.core.errors import ConfigurationError, TransientError
from llm_relay.models.enums import OperationKind
from llm_relay.providers.base import BaseProvider


class FakeProvider(BaseProvider):
    """Provider whose results are scripted per call.

    Each entry of ``results`` is consumed by one call: exceptions are raised,
    anything else is returned. Once the script runs out the provider answers
    ``"<name>-ok"``.
    """

    def __init__(self, name: str, results: Optional[Iterable[Any]] = None,
                 capabilities: Optional[Iterable[OperationKind]] = None,
                 probe_error: Optional[BaseException] = None):
        self.name = name
        self.capabilities = frozenset(capabilities) if capabilities is not None \
            else DEFAULT_CAPABILITIES.get(name, frozenset({OperationKind.TEXT}))
        super().__init__(api_key="test-key")
        self.results: List[Any] = list(results or [])
        self.calls: List[str] = []
        self.models: List[Optional[str]] = []
        self.params = []
        self.probe_error = probe_error
        self.probe_count = 0
        self.closed = False

    async def _next(self, kind: str, model: Optional[str]):
        self.calls.append(kind)
        self.models.append(model)
        if not self.results:
            return f"{self.name}-ok"
        outcome = self.results.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def chat(self, messages, params, model=None):
        self.params.append(params)
        return await self._next("text", model)

    async def tts(self, options, model=None):
        return await self._next("tts", model)

    async def stt(self, options, model=None):
        return await self._next("stt", model)

    async def _probe(self):
        self.probe_count += 1
        if self.probe_error is not None:
            raise self.probe_error

    async def close(self):
        self.closed = True


def failures(count: int, provider: str = "fake") -> List[BaseException]:
    return [TransientError(f"{provider} 503 service unavailable", provider=provider, status_code=503)
            for _ in range(count)]


def factory_for(providers: Dict[str, FakeProvider]):
    """Provider factory handing out prepared fakes"""
    def factory(provider_id, service_config):
        if provider_id not in providers:
            raise ConfigurationError(f"No fake prepared for {provider_id}")
        return providers[provider_id]
    return factory


@pytest.fixture(autouse=True)
def health_check_enabled(monkeypatch):
    monkeypatch.setenv("LLM_RELAY_HEALTH_CHECK_ENABLED", "true")
    for name in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GOOGLE_API_KEY",
                 "AZURE_OPENAI_API_KEY", "AZURE_OPENAI_ENDPOINT"):
        monkeypatch.delenv(name, raising=False)
