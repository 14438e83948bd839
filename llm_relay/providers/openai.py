"""
OpenAI provider: chat completions, speech synthesis and Whisper transcription
"""

from typing import Any, Dict, Optional, Sequence

import aiohttp

from ..models.data_classes import GenerationParameters
from ..models.schemas import TTSOptions, STTOptions
from ..core.capabilities import ALL_OPERATIONS
from ..core.errors import VendorError
from .base import BaseProvider

JSON_HINT = "\n\nPlease respond in JSON format."

# Models that accept response_format=json_schema
STRUCTURED_OUTPUT_MARKERS = ("gpt-4o", "gpt-3.5")
STRUCTURED_OUTPUT_EXACT = ("gpt-4-turbo",)


def supports_structured_output(model: str) -> bool:
    return any(marker in model for marker in STRUCTURED_OUTPUT_MARKERS) or model in STRUCTURED_OUTPUT_EXACT


class OpenAIProvider(BaseProvider):
    name = "openai"
    base_url = "https://api.openai.com/v1"
    DEFAULT_MODEL = "gpt-4o-mini"
    capabilities = ALL_OPERATIONS

    TTS_MODEL = "tts-1"
    STT_MODEL = "whisper-1"

    def build_chat_payload(self, messages: Sequence[Any], params: GenerationParameters,
                           model: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": self.message_dicts(messages),
            "stream": False
        }
        if params.temperature is not None:
            payload["temperature"] = params.temperature
        if params.max_tokens is not None:
            payload["max_tokens"] = params.max_tokens
        if params.top_p is not None:
            payload["top_p"] = params.top_p

        if params.response_schema:
            if supports_structured_output(model):
                payload["response_format"] = {
                    "type": "json_schema",
                    "json_schema": {"name": "response", "schema": params.response_schema}
                }
            elif payload["messages"]:
                payload["messages"][-1]["content"] += JSON_HINT

        return payload

    @staticmethod
    def parse_chat_response(data: Dict[str, Any]) -> str:
        try:
            return data["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError):
            raise VendorError("Could not extract content from chat completion response") from None

    async def chat(self, messages, params, model=None) -> str:
        payload = self.build_chat_payload(messages, params, model or self.default_model)
        data = await self._request("POST", "/chat/completions", json=payload)
        return self.finish_text(self.parse_chat_response(data), params)

    def build_tts_payload(self, options: TTSOptions, model: Optional[str] = None) -> Dict[str, Any]:
        payload = {
            "input": options.text,
            "voice": options.voice or "alloy",
            "response_format": options.format or "mp3",
            "speed": options.speed or 1.0
        }
        if model:
            payload["model"] = model
        return payload

    async def tts(self, options: TTSOptions, model: Optional[str] = None) -> bytes:
        payload = self.build_tts_payload(options, self.TTS_MODEL)
        return await self._request("POST", "/audio/speech", json=payload, raw=True)

    def build_stt_form(self, options: STTOptions, model: Optional[str] = None) -> aiohttp.FormData:
        form = aiohttp.FormData()
        filename = options.filename
        if options.format and "." not in filename:
            filename = f"{filename}.{options.format}"
        form.add_field("file", options.audio, filename=filename,
                       content_type="application/octet-stream")
        if model:
            form.add_field("model", model)
        form.add_field("language", options.language or "en")
        return form

    async def stt(self, options: STTOptions, model: Optional[str] = None) -> str:
        form = self.build_stt_form(options, self.STT_MODEL)
        data = await self._request("POST", "/audio/transcriptions", data=form)
        return data.get("text") or ""

    async def _probe(self):
        await self._request("POST", "/chat/completions", json={
            "model": self.default_model,
            "messages": [{"role": "user", "content": "Hi"}],
            "max_tokens": 1,
            "temperature": 0
        }, timeout=self.probe_timeout)
