"""
Base class for provider clients
"""

import os
import time
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, List, Optional, Sequence

import aiohttp

from ..models.enums import HealthStatus, OperationKind
from ..models.data_classes import GenerationParameters, HealthCheckResult
from ..models.schemas import Message, TTSOptions, STTOptions
from ..core.capabilities import TEXT_ONLY
from ..core.errors import NotSupportedError, ProviderError
from ..core.failure_classifier import FailureClassifier
from ..utils.json_cleaner import clean_json_response
from ..utils.logging import setup_logging

logger = setup_logging()


class BaseProvider(ABC):
    """Abstract base class for every provider client.

    Subclasses set ``name``, ``base_url`` and ``DEFAULT_MODEL`` and implement
    ``chat`` and ``_probe``. TTS and STT are opt-in.
    """

    # Override these in subclasses
    name: str = "base"
    base_url: str = ""
    DEFAULT_MODEL: str = ""
    capabilities: FrozenSet[OperationKind] = TEXT_ONLY

    def __init__(self, api_key: Optional[str] = None,
                 endpoint: Optional[str] = None,
                 default_model: Optional[str] = None,
                 default_parameters: Optional[GenerationParameters] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.api_key = api_key or ""
        self.endpoint = (endpoint or self.base_url).rstrip("/")
        self.default_model = default_model or self.DEFAULT_MODEL
        self.default_parameters = default_parameters or self.provider_defaults()

        self.request_timeout = float(os.getenv("LLM_RELAY_REQUEST_TIMEOUT_SECONDS", "30"))
        self.probe_timeout = float(os.getenv("LLM_RELAY_PROBE_TIMEOUT_SECONDS", "10"))

        self._session = session
        self._owns_session = session is None

        if not self.api_key:
            logger.warning("Provider created without API key", provider=self.name)

    @classmethod
    def provider_defaults(cls) -> GenerationParameters:
        return GenerationParameters(temperature=0.7, max_tokens=1000)

    def supports(self, operation_kind: OperationKind) -> bool:
        return OperationKind(operation_kind) in self.capabilities

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _request(self, method: str, path: str, *,
                       json: Optional[Dict[str, Any]] = None,
                       data: Any = None,
                       params: Optional[Dict[str, str]] = None,
                       timeout: Optional[float] = None,
                       raw: bool = False) -> Any:
        """Send one request; non-2xx responses and client errors become ProviderErrors"""
        session = await self._get_session()
        url = f"{self.endpoint}{path}"
        client_timeout = aiohttp.ClientTimeout(total=timeout or self.request_timeout)

        try:
            async with session.request(method, url, headers=self._headers(), json=json,
                                       data=data, params=params,
                                       timeout=client_timeout) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise FailureClassifier.error_for_response(self.name, response.status, body)
                if raw:
                    return await response.read()
                return await response.json(content_type=None)
        except ProviderError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FailureClassifier.error_for_exception(self.name, e) from e

    @staticmethod
    def message_dicts(messages: Sequence[Any]) -> List[Dict[str, str]]:
        """Normalize Message models or plain dicts to role/content dicts"""
        result = []
        for message in messages:
            if isinstance(message, Message):
                result.append({"role": message.role, "content": message.content})
            else:
                result.append({"role": message["role"], "content": message["content"]})
        return result

    @staticmethod
    def finish_text(text: str, params: GenerationParameters) -> str:
        if params.clean_json_response:
            return clean_json_response(text)
        return text

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @abstractmethod
    async def chat(self, messages: Sequence[Any], params: GenerationParameters,
                   model: Optional[str] = None) -> str:
        """Return the completion text for a conversation"""
        pass

    async def tts(self, options: TTSOptions, model: Optional[str] = None) -> bytes:
        raise NotSupportedError(f"TTS not supported by provider {self.name}", provider=self.name)

    async def stt(self, options: STTOptions, model: Optional[str] = None) -> str:
        raise NotSupportedError(f"STT not supported by provider {self.name}", provider=self.name)

    @abstractmethod
    async def _probe(self):
        """Cheapest request that proves the provider answers"""
        pass

    async def probe_health(self) -> HealthCheckResult:
        """Run the probe and time it; any failure is reported as down"""
        start_time = time.monotonic()
        try:
            await asyncio.wait_for(self._probe(), timeout=self.probe_timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = FailureClassifier.error_for_exception(self.name, e)
            return HealthCheckResult(
                provider=self.name,
                status=HealthStatus.DOWN,
                response_time_ms=(time.monotonic() - start_time) * 1000,
                error=str(error)
            )

        return HealthCheckResult(
            provider=self.name,
            status=HealthStatus.UP,
            response_time_ms=(time.monotonic() - start_time) * 1000
        )

    async def close(self):
        """Close the HTTP session if this provider created it"""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
