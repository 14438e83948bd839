"""
Error taxonomy for llm-relay
"""

from typing import List, Optional

from ..models.enums import FailureType


class LLMRelayError(Exception):
    """Base class for every error raised by llm-relay"""


class ConfigurationError(LLMRelayError):
    """Unknown service key, unknown provider id or malformed configuration. Never retried."""


class CapabilityMismatch(LLMRelayError):
    """A provider cannot perform the requested operation kind"""

    def __init__(self, provider: str, operation_kind: str):
        super().__init__(f"Provider {provider} does not support {operation_kind}")
        self.provider = provider
        self.operation_kind = operation_kind


class ManagerDestroyedError(LLMRelayError):
    """The manager was torn down before the call started"""


class ProviderError(LLMRelayError):
    """Failure of a single provider call"""

    failure_type = FailureType.UNKNOWN_ERROR

    def __init__(self, message: str, provider: Optional[str] = None,
                 status_code: Optional[int] = None,
                 failure_type: Optional[FailureType] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        if failure_type is not None:
            self.failure_type = failure_type


class TransientError(ProviderError):
    """Network, rate-limit or vendor 5xx failure"""

    failure_type = FailureType.SERVICE_ERROR_5XX


class AuthenticationError(ProviderError):
    """Rejected credentials (401/403)"""

    failure_type = FailureType.AUTH_ERROR_4XX


class VendorError(ProviderError):
    """Any other error reported by the vendor API"""


class NotSupportedError(ProviderError):
    """The provider has no implementation for the requested operation"""

    failure_type = FailureType.NOT_SUPPORTED


class AllProvidersExhausted(LLMRelayError):
    """Every candidate failed; carries the last underlying error"""

    def __init__(self, service_key: str, operation_kind: str,
                 last_error: Optional[BaseException], attempted: List[str],
                 attempts: Optional[list] = None):
        if attempted:
            message = (f"All {len(attempted)} providers failed for service '{service_key}' "
                       f"({operation_kind}): {', '.join(attempted)}. Last error: {last_error}")
        else:
            message = f"No provider supports {operation_kind} for service '{service_key}'"
        super().__init__(message)
        self.service_key = service_key
        self.operation_kind = operation_kind
        self.last_error = last_error
        self.attempted = list(attempted)
        self.attempts = list(attempts or [])
