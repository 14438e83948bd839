"""
Enums for llm-relay
"""

from enum import Enum


class ProviderType(str, Enum):
    """Provider identities known out of the box"""
    OPENAI = "openai"
    CLAUDE = "claude"
    GEMINI = "gemini"
    AZURE = "azure"


class OperationKind(str, Enum):
    """Kinds of work a provider can perform"""
    TEXT = "text"
    TTS = "tts"
    STT = "stt"


class HealthStatus(str, Enum):
    """Provider health status"""
    UP = "up"
    DOWN = "down"
    UNKNOWN = "unknown"


class FailureType(str, Enum):
    """Types of failures a provider call can produce"""
    RATE_LIMIT_429 = "rate_limit_429"
    SERVICE_ERROR_5XX = "service_error_5xx"
    AUTH_ERROR_4XX = "auth_error_4xx"
    TIMEOUT_ERROR = "timeout_error"
    CONTENT_ERROR = "content_error"
    NOT_SUPPORTED = "not_supported"
    UNKNOWN_ERROR = "unknown_error"
