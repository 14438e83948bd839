"""
Models package - Data structures and schemas for llm-relay
"""

from .enums import ProviderType, OperationKind, HealthStatus, FailureType
from .data_classes import (
    DISABLED, provider_key,
    ProviderRecord, HealthCheckResult, GenerationParameters,
    ServiceProfile, CallAttempt, ProviderHandle
)
from .schemas import (
    ServiceConfig, Message, ChatOptions, TTSOptions, STTOptions,
    STTRequest, ChatResponse, TranscriptionResponse, ErrorResponse
)

__all__ = [
    # Enums
    'ProviderType',
    'OperationKind',
    'HealthStatus',
    'FailureType',

    # Data classes
    'DISABLED',
    'provider_key',
    'ProviderRecord',
    'HealthCheckResult',
    'GenerationParameters',
    'ServiceProfile',
    'CallAttempt',
    'ProviderHandle',

    # Pydantic schemas
    'ServiceConfig',
    'Message',
    'ChatOptions',
    'TTSOptions',
    'STTOptions',
    'STTRequest',
    'ChatResponse',
    'TranscriptionResponse',
    'ErrorResponse'
]
