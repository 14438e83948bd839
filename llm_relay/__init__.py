"""
llm-relay - Failover routing and health ranking for LLM, TTS and STT providers

Routes each request for a configured service to the healthiest capable
provider, retrying with a fixed delay and failing over down a ranked list
that is kept current by live call outcomes and periodic health probes.
"""

__version__ = "1.0.0"
__author__ = "llm-relay Development Team"
__description__ = "Failover routing and health ranking for LLM, TTS and STT providers"

# Import main components for easy access
from .core.manager import LLMManager, create_chat
from .core.config import ConfigManager
from .core.capabilities import ProviderCapabilityResolver
from .core.health_registry import HealthRegistry
from .core.config_merger import ConfigurationMerger
from .core.executor import FailoverExecutor
from .core.errors import (
    LLMRelayError, ConfigurationError, ManagerDestroyedError,
    AllProvidersExhausted, ProviderError, TransientError,
    AuthenticationError, VendorError, NotSupportedError
)

from .models.enums import ProviderType, OperationKind, HealthStatus
from .models.data_classes import DISABLED, GenerationParameters, ProviderRecord, ServiceProfile
from .models.schemas import ServiceConfig, Message, ChatOptions, TTSOptions, STTOptions

from .providers import BaseProvider, ProviderFactory

__all__ = [
    # Core
    'LLMManager',
    'create_chat',
    'ConfigManager',
    'ProviderCapabilityResolver',
    'HealthRegistry',
    'ConfigurationMerger',
    'FailoverExecutor',

    # Errors
    'LLMRelayError',
    'ConfigurationError',
    'ManagerDestroyedError',
    'AllProvidersExhausted',
    'ProviderError',
    'TransientError',
    'AuthenticationError',
    'VendorError',
    'NotSupportedError',

    # Models and schemas
    'ProviderType',
    'OperationKind',
    'HealthStatus',
    'DISABLED',
    'GenerationParameters',
    'ProviderRecord',
    'ServiceProfile',
    'ServiceConfig',
    'Message',
    'ChatOptions',
    'TTSOptions',
    'STTOptions',

    # Providers
    'BaseProvider',
    'ProviderFactory'
]
