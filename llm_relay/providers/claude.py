"""
Anthropic Claude provider (messages API)
"""

from typing import Any, Dict, Sequence

from ..models.data_classes import GenerationParameters
from ..core.errors import VendorError
from .base import BaseProvider


class ClaudeProvider(BaseProvider):
    name = "claude"
    base_url = "https://api.anthropic.com/v1"
    DEFAULT_MODEL = "claude-3-sonnet-20240229"
    ANTHROPIC_VERSION = "2023-06-01"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": self.ANTHROPIC_VERSION
        }

    def build_chat_payload(self, messages: Sequence[Any], params: GenerationParameters,
                           model: str) -> Dict[str, Any]:
        # System prompts travel in a top-level field, not in the message list
        system_parts = []
        conversation = []
        for message in self.message_dicts(messages):
            if message["role"] == "system":
                system_parts.append(message["content"])
            else:
                conversation.append(message)

        payload: Dict[str, Any] = {
            "model": model,
            "max_tokens": params.max_tokens or 1000,
            "messages": conversation
        }
        if system_parts:
            payload["system"] = "\n\n".join(system_parts)
        if params.temperature is not None:
            payload["temperature"] = params.temperature
        if params.top_p is not None:
            payload["top_p"] = params.top_p
        return payload

    @staticmethod
    def parse_chat_response(data: Dict[str, Any]) -> str:
        try:
            blocks = data["content"]
        except (KeyError, TypeError):
            raise VendorError("Could not extract content from Claude response") from None
        return "".join(block.get("text", "") for block in blocks if block.get("type", "text") == "text")

    async def chat(self, messages, params, model=None) -> str:
        payload = self.build_chat_payload(messages, params, model or self.default_model)
        data = await self._request("POST", "/messages", json=payload)
        return self.finish_text(self.parse_chat_response(data), params)

    async def _probe(self):
        await self._request("POST", "/messages", json={
            "model": self.default_model,
            "max_tokens": 1,
            "messages": [{"role": "user", "content": "Hi"}]
        }, timeout=self.probe_timeout)
