"""
Provider construction from service configuration
"""

import os
from enum import Enum
from typing import Dict, Type, Union

from ..models.data_classes import provider_key
from ..models.schemas import ServiceConfig
from ..core.errors import ConfigurationError
from .base import BaseProvider
from .openai import OpenAIProvider
from .claude import ClaudeProvider
from .gemini import GeminiProvider
from .azure import AzureProvider


class ProviderFactory:
    """Builds provider clients; environment API keys win over configured ones"""

    PROVIDERS: Dict[str, Type[BaseProvider]] = {
        "openai": OpenAIProvider,
        "claude": ClaudeProvider,
        "gemini": GeminiProvider,
        "azure": AzureProvider,
    }

    API_KEY_ENV = {
        "openai": "OPENAI_API_KEY",
        "claude": "ANTHROPIC_API_KEY",
        "gemini": "GOOGLE_API_KEY",
        "azure": "AZURE_OPENAI_API_KEY",
    }

    @classmethod
    def create_provider(cls, provider: Union[str, Enum], service_config: ServiceConfig) -> BaseProvider:
        key = provider_key(provider)
        provider_class = cls.PROVIDERS.get(key)
        if provider_class is None:
            raise ConfigurationError(f"Unsupported provider: {key}")

        env_name = cls.API_KEY_ENV.get(key)
        api_key = (os.getenv(env_name) if env_name else None) or service_config.key_for(key)

        if key == "azure":
            endpoint = os.getenv("AZURE_OPENAI_ENDPOINT") or service_config.endpoint
            return provider_class(api_key=api_key, endpoint=endpoint,
                                  default_model=service_config.default_model)

        return provider_class(api_key=api_key)
