"""
Failure classification for provider calls
"""

import asyncio
from typing import Optional

import aiohttp

from ..models.enums import FailureType
from .errors import (
    ProviderError, TransientError, AuthenticationError, VendorError
)


class FailureClassifier:
    """Maps HTTP statuses, error messages and client exceptions to provider errors"""

    RATE_LIMIT_PHRASES = [
        "rate limit", "429", "quota", "exceeded", "resource_exhausted",
        "too many requests", "rate_limit_exceeded"
    ]
    AUTH_PHRASES = [
        "401", "403", "unauthorized", "forbidden", "invalid api key",
        "authentication failed", "invalid_api_key", "invalid key"
    ]
    SERVICE_PHRASES = [
        "500", "502", "503", "504", "internal server error",
        "bad gateway", "service unavailable", "gateway timeout",
        "server error", "internal error", "overloaded"
    ]
    TIMEOUT_PHRASES = [
        "timeout", "timed out", "connection", "network",
        "connection refused", "connection reset", "connection aborted"
    ]
    CONTENT_PHRASES = [
        "empty content", "could not extract content", "no content",
        "parse error", "json decode", "invalid response", "content filter", "safety"
    ]

    # Failure types the router treats as transient
    TRANSIENT_TYPES = {
        FailureType.RATE_LIMIT_429,
        FailureType.SERVICE_ERROR_5XX,
        FailureType.TIMEOUT_ERROR
    }

    @classmethod
    def classify_error(cls, error_message: str, status_code: Optional[int] = None) -> FailureType:
        """
        Classify an error based on message and status code

        Args:
            error_message: Error message from API or exception
            status_code: HTTP status code if available

        Returns:
            FailureType enum value
        """
        # Status code first (most reliable)
        if status_code:
            if status_code == 429:
                return FailureType.RATE_LIMIT_429
            if 500 <= status_code < 600:
                return FailureType.SERVICE_ERROR_5XX
            if status_code in (401, 403):
                return FailureType.AUTH_ERROR_4XX
            if status_code == 408:
                return FailureType.TIMEOUT_ERROR

        error_lower = (error_message or "").lower()

        if any(phrase in error_lower for phrase in cls.RATE_LIMIT_PHRASES):
            return FailureType.RATE_LIMIT_429
        if any(phrase in error_lower for phrase in cls.AUTH_PHRASES):
            return FailureType.AUTH_ERROR_4XX
        if any(phrase in error_lower for phrase in cls.SERVICE_PHRASES):
            return FailureType.SERVICE_ERROR_5XX
        if any(phrase in error_lower for phrase in cls.TIMEOUT_PHRASES):
            return FailureType.TIMEOUT_ERROR
        if any(phrase in error_lower for phrase in cls.CONTENT_PHRASES):
            return FailureType.CONTENT_ERROR

        return FailureType.UNKNOWN_ERROR

    @classmethod
    def error_for_response(cls, provider: str, status_code: int, body: str) -> ProviderError:
        """Build the provider error for a non-success HTTP response"""
        message = f"{provider} API error {status_code}: {body[:500]}"
        failure_type = cls.classify_error(body, status_code)
        return cls._build(provider, message, failure_type, status_code)

    @classmethod
    def error_for_exception(cls, provider: str, exc: BaseException) -> ProviderError:
        """Wrap a client-side exception raised while talking to a provider"""
        if isinstance(exc, ProviderError):
            return exc
        if isinstance(exc, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
            return TransientError(f"{provider} request timed out", provider=provider,
                                  failure_type=FailureType.TIMEOUT_ERROR)
        if isinstance(exc, aiohttp.ClientResponseError):
            return cls.error_for_response(provider, exc.status, exc.message or "")
        if isinstance(exc, aiohttp.ClientError):
            return TransientError(f"{provider} connection error: {exc}", provider=provider,
                                  failure_type=FailureType.TIMEOUT_ERROR)

        message = str(exc) or exc.__class__.__name__
        return cls._build(provider, message, cls.classify_error(message), None)

    @classmethod
    def _build(cls, provider: str, message: str, failure_type: FailureType,
               status_code: Optional[int]) -> ProviderError:
        if failure_type == FailureType.AUTH_ERROR_4XX:
            return AuthenticationError(message, provider=provider, status_code=status_code)
        if failure_type in cls.TRANSIENT_TYPES:
            return TransientError(message, provider=provider, status_code=status_code,
                                  failure_type=failure_type)
        return VendorError(message, provider=provider, status_code=status_code,
                           failure_type=failure_type)

    @classmethod
    def failure_type_of(cls, exc: BaseException) -> FailureType:
        """Failure type for any exception raised by an operation"""
        if isinstance(exc, ProviderError):
            return exc.failure_type
        return cls.classify_error(str(exc))
