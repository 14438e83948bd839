"""
Google Gemini provider (generateContent API)
"""

from typing import Any, Dict, Sequence

from ..models.data_classes import GenerationParameters
from ..core.errors import VendorError
from .base import BaseProvider


class GeminiProvider(BaseProvider):
    name = "gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL = "gemini-1.5-flash"

    @classmethod
    def provider_defaults(cls) -> GenerationParameters:
        # Gemini tends to wrap JSON in markdown fences
        return GenerationParameters(temperature=0.7, max_tokens=1000, clean_json_response=True)

    def _headers(self) -> Dict[str, str]:
        return {}

    def _key_params(self) -> Dict[str, str]:
        return {"key": self.api_key}

    def build_chat_payload(self, messages: Sequence[Any], params: GenerationParameters) -> Dict[str, Any]:
        contents = []
        system_parts = []
        for message in self.message_dicts(messages):
            if message["role"] == "system":
                system_parts.append({"text": message["content"]})
                continue
            contents.append({
                "role": "model" if message["role"] == "assistant" else "user",
                "parts": [{"text": message["content"]}]
            })

        generation_config: Dict[str, Any] = {}
        if params.temperature is not None:
            generation_config["temperature"] = params.temperature
        if params.max_tokens is not None:
            generation_config["maxOutputTokens"] = params.max_tokens
        if params.top_p is not None:
            generation_config["topP"] = params.top_p
        if params.response_mime_type:
            generation_config["responseMimeType"] = params.response_mime_type
        if params.response_schema:
            generation_config["responseSchema"] = params.response_schema

        payload: Dict[str, Any] = {"contents": contents}
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        if generation_config:
            payload["generationConfig"] = generation_config
        return payload

    @staticmethod
    def parse_chat_response(data: Dict[str, Any]) -> str:
        try:
            candidate = data["candidates"][0]
            parts = candidate["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            block_reason = (data.get("promptFeedback") or {}).get("blockReason") if isinstance(data, dict) else None
            if block_reason:
                raise VendorError(f"Gemini blocked the prompt: {block_reason}") from None
            raise VendorError("Could not extract content from Gemini response") from None
        return "".join(part.get("text", "") for part in parts)

    async def chat(self, messages, params, model=None) -> str:
        payload = self.build_chat_payload(messages, params)
        data = await self._request("POST", f"/models/{model or self.default_model}:generateContent",
                                   json=payload, params=self._key_params())
        return self.finish_text(self.parse_chat_response(data), params)

    async def _probe(self):
        await self._request("GET", "/models", params=self._key_params(), timeout=self.probe_timeout)
