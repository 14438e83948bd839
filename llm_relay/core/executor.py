"""
Failover executor - sequential retry and fallback across providers
"""

import time
import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar

from ..models.enums import HealthStatus, OperationKind
from ..models.data_classes import (
    CallAttempt, GenerationParameters, ProviderHandle, ServiceProfile
)
from .capabilities import ProviderCapabilityResolver
from .config_merger import ConfigurationMerger
from .errors import (
    AllProvidersExhausted, ConfigurationError, ManagerDestroyedError
)
from .failure_classifier import FailureClassifier
from .health_registry import HealthRegistry
from ..utils.logging import setup_logging

logger = setup_logging()

T = TypeVar("T")
Operation = Callable[[ProviderHandle], Awaitable[T]]


class FailoverExecutor:
    """Runs one logical operation against a service's providers until one succeeds.

    Candidates and attempts are strictly sequential. Each call takes a single
    snapshot of the health ranking and keeps it for its whole lifetime.
    """

    def __init__(self, profiles: Mapping[str, ServiceProfile],
                 providers: Mapping[str, Any],
                 resolver: ProviderCapabilityResolver,
                 registry: HealthRegistry,
                 merger: Optional[ConfigurationMerger] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.profiles = profiles
        self.providers = providers
        self.resolver = resolver
        self.registry = registry
        self.merger = merger or ConfigurationMerger()
        self._sleep = sleep
        self._closed = False

    def close(self):
        """Reject every execute() call from now on"""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def get_profile(self, service_key: str) -> ServiceProfile:
        profile = self.profiles.get(service_key)
        if profile is None:
            raise ConfigurationError(f"Service configuration not found for: {service_key}")
        return profile

    def static_candidates(self, profile: ServiceProfile, operation_kind: OperationKind) -> List[str]:
        """Primary then fallbacks, keeping only instantiated providers able to do the work"""
        candidates = []
        for provider_id in profile.candidates:
            if provider_id in candidates:
                continue
            if provider_id not in self.providers:
                logger.debug("Skipping provider that is not instantiated",
                             service_key=profile.service_key, provider=provider_id)
                continue
            if not self.resolver.is_known(provider_id) or \
                    not self.resolver.supports(provider_id, operation_kind):
                logger.debug("Skipping provider without capability",
                             service_key=profile.service_key,
                             provider=provider_id,
                             operation_kind=operation_kind.value)
                continue
            candidates.append(provider_id)
        return candidates

    @staticmethod
    def blend_order(static: Sequence[str], ranking: Sequence[str]) -> List[str]:
        """Order candidates by health rank; unranked ones follow in static order"""
        position = {provider: index for index, provider in enumerate(ranking)}
        static_index = {provider: index for index, provider in enumerate(static)}

        ranked = sorted((p for p in static if p in position),
                        key=lambda p: (position[p], static_index[p]))
        unranked = [p for p in static if p not in position]
        return ranked + unranked

    def plan(self, service_key: str, operation_kind: OperationKind) -> List[str]:
        """Effective candidate order for a call made right now"""
        profile = self.get_profile(service_key)
        static = self.static_candidates(profile, OperationKind(operation_kind))
        return self.blend_order(static, self.registry.ordered_providers())

    def _handle_for(self, profile: ServiceProfile, provider_id: str, provider: Any,
                    call_params: Optional[GenerationParameters]) -> ProviderHandle:
        model = profile.models.get(provider_id) or getattr(provider, "default_model", None)
        parameters = self.merger.effective(
            call_params,
            profile.default_parameters,
            getattr(provider, "default_parameters", None)
        )
        return ProviderHandle(provider_id=provider_id, provider=provider,
                              model=model, parameters=parameters)

    async def execute(self, service_key: str, operation_kind: OperationKind,
                      operation: Operation, call_params: Optional[GenerationParameters] = None):
        """
        Execute an operation with retry logic and automatic failover

        Args:
            service_key: Configured service to route for
            operation_kind: Kind of work; providers lacking it are skipped
            operation: Coroutine function called with a ProviderHandle
            call_params: Per-call generation parameters

        Returns:
            Whatever the first successful operation returned

        Raises:
            ManagerDestroyedError: the executor was closed before the call
            ConfigurationError: unknown service key
            AllProvidersExhausted: every candidate failed
        """
        if self._closed:
            raise ManagerDestroyedError("LLM manager has been destroyed")

        operation_kind = OperationKind(operation_kind)
        profile = self.get_profile(service_key)

        static = self.static_candidates(profile, operation_kind)
        order = self.blend_order(static, self.registry.ordered_providers())
        # Instances are pinned for the whole call; later removals do not affect it
        candidates = [(provider_id, self.providers[provider_id]) for provider_id in order]

        logger.info("Routing request",
                    service_key=service_key,
                    operation_kind=operation_kind.value,
                    candidates=order,
                    max_retries=profile.max_retries,
                    retry_delay_ms=profile.retry_delay_ms)

        attempts: List[CallAttempt] = []
        attempted: List[str] = []
        last_error: Optional[BaseException] = None

        for provider_id, provider in candidates:
            attempted.append(provider_id)
            handle = self._handle_for(profile, provider_id, provider, call_params)

            for attempt in range(1, profile.max_retries + 1):
                started = time.monotonic()
                try:
                    result = await operation(handle)
                except ConfigurationError:
                    raise
                except Exception as e:
                    elapsed_ms = (time.monotonic() - started) * 1000
                    last_error = e
                    attempts.append(CallAttempt(
                        provider=provider_id,
                        attempt=attempt,
                        success=False,
                        elapsed_ms=elapsed_ms,
                        error=str(e),
                        failure_type=FailureClassifier.failure_type_of(e)
                    ))
                    logger.warning("Attempt failed",
                                   service_key=service_key,
                                   provider=provider_id,
                                   attempt=attempt,
                                   max_retries=profile.max_retries,
                                   error=str(e))

                    if attempt < profile.max_retries:
                        await self._sleep(profile.retry_delay_ms / 1000)
                    continue

                elapsed_ms = (time.monotonic() - started) * 1000
                attempts.append(CallAttempt(
                    provider=provider_id,
                    attempt=attempt,
                    success=True,
                    elapsed_ms=elapsed_ms
                ))
                self.registry.record_outcome(provider_id, HealthStatus.UP, response_time_ms=elapsed_ms)

                logger.info("Response received",
                            service_key=service_key,
                            operation_kind=operation_kind.value,
                            provider=provider_id,
                            model=handle.model,
                            attempt=attempt,
                            elapsed_ms=round(elapsed_ms, 1))
                return result

            self.registry.record_outcome(
                provider_id,
                HealthStatus.DOWN,
                error_detail=str(last_error) if last_error is not None else None
            )
            logger.error("Provider exhausted after retries",
                         service_key=service_key,
                         provider=provider_id,
                         retries=profile.max_retries)

        logger.error("All providers exhausted",
                     service_key=service_key,
                     operation_kind=operation_kind.value,
                     attempted=attempted,
                     total_attempts=len(attempts),
                     last_error=str(last_error) if last_error is not None else None)

        raise AllProvidersExhausted(
            service_key=service_key,
            operation_kind=operation_kind.value,
            last_error=last_error,
            attempted=attempted,
            attempts=attempts
        )
