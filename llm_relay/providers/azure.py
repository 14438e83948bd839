"""
Azure OpenAI provider - deployment-scoped variant of the OpenAI API
"""

from typing import Dict, Optional

from ..models.schemas import TTSOptions, STTOptions
from ..core.errors import ConfigurationError
from .openai import OpenAIProvider


class AzureProvider(OpenAIProvider):
    """Models are Azure deployment names; the endpoint points at .../openai/deployments"""

    name = "azure"
    base_url = ""
    DEFAULT_MODEL = "gpt-4"
    API_VERSION = "2024-02-15-preview"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if not self.endpoint:
            raise ConfigurationError("Azure provider requires an endpoint (AZURE_OPENAI_ENDPOINT)")

    def _headers(self) -> Dict[str, str]:
        return {"api-key": self.api_key}

    def _version_params(self) -> Dict[str, str]:
        return {"api-version": self.API_VERSION}

    async def chat(self, messages, params, model=None) -> str:
        deployment = model or self.default_model
        payload = self.build_chat_payload(messages, params, deployment)
        payload.pop("model", None)
        data = await self._request("POST", f"/{deployment}/chat/completions",
                                   json=payload, params=self._version_params())
        return self.finish_text(self.parse_chat_response(data), params)

    async def tts(self, options: TTSOptions, model: Optional[str] = None) -> bytes:
        payload = self.build_tts_payload(options)
        return await self._request("POST", f"/{self.TTS_MODEL}/audio/speech", json=payload,
                                   params=self._version_params(), raw=True)

    async def stt(self, options: STTOptions, model: Optional[str] = None) -> str:
        form = self.build_stt_form(options)
        data = await self._request("POST", f"/{self.STT_MODEL}/audio/transcriptions", data=form,
                                   params=self._version_params())
        return data.get("text") or ""

    async def _probe(self):
        await self._request("POST", f"/{self.default_model}/chat/completions", json={
            "messages": [{"role": "user", "content": "Hi"}],
            "max_tokens": 1,
            "temperature": 0
        }, params=self._version_params(), timeout=self.probe_timeout)
