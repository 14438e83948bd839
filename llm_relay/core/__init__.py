"""
Core package - routing, health ranking and configuration for llm-relay
"""

from .errors import (
    LLMRelayError, ConfigurationError, CapabilityMismatch, ManagerDestroyedError,
    ProviderError, TransientError, AuthenticationError, VendorError,
    NotSupportedError, AllProvidersExhausted
)
from .capabilities import ProviderCapabilityResolver
from .health_registry import HealthRegistry
from .config_merger import ConfigurationMerger
from .failure_classifier import FailureClassifier
from .executor import FailoverExecutor
from .config import ConfigManager
from .manager import LLMManager, create_chat

__all__ = [
    'ProviderCapabilityResolver',
    'HealthRegistry',
    'ConfigurationMerger',
    'FailureClassifier',
    'FailoverExecutor',
    'ConfigManager',
    'LLMManager',
    'create_chat',

    # Errors
    'LLMRelayError',
    'ConfigurationError',
    'CapabilityMismatch',
    'ManagerDestroyedError',
    'ProviderError',
    'TransientError',
    'AuthenticationError',
    'VendorError',
    'NotSupportedError',
    'AllProvidersExhausted'
]
