"""
Process-wide provider health table with live ranking and periodic refresh
"""

import os
import math
import asyncio
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..models.enums import HealthStatus, OperationKind
from ..models.data_classes import ProviderRecord, HealthCheckResult, provider_key
from ..utils.logging import setup_logging

logger = setup_logging()

ProbeFunction = Callable[[str], Awaitable[Union[HealthCheckResult, float, None]]]

# Sort key for records that have no observation yet
NEVER_CHECKED = datetime.min.replace(tzinfo=timezone.utc)


class HealthRegistry:
    """Owns every ProviderRecord and the ranking derived from them.

    All reads and writes of the record map go through one lock. Each re-rank
    publishes a new immutable tuple of provider ids, so readers never observe a
    half-updated order.

    Ranking rules:
        1. providers with status ``up`` come first, fastest response time first
           (a missing response time sorts last among them);
        2. every other provider follows, most recently checked first; providers
           that were never checked come last;
        3. ties keep the previous order, which makes re-ranking idempotent.
    """

    def __init__(self, interval_seconds: Optional[float] = None):
        if interval_seconds is None:
            interval_seconds = float(os.getenv("LLM_RELAY_HEALTH_INTERVAL_SECONDS", "60"))
        self.interval_seconds = interval_seconds
        self.enabled = os.getenv("LLM_RELAY_HEALTH_CHECK_ENABLED", "true").lower() == "true"

        self._records: Dict[str, ProviderRecord] = {}
        self._ranked: Tuple[str, ...] = ()
        self._lock = threading.Lock()

        self._probe_fn: Optional[ProbeFunction] = None
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._destroyed = False

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def register(self, provider: Union[str, Enum],
                 capabilities: Iterable[OperationKind] = ()) -> ProviderRecord:
        """Add an ``unknown`` record for a provider; existing records are kept"""
        key = provider_key(provider)
        with self._lock:
            record = self._records.get(key)
            if record is None:
                record = ProviderRecord(
                    provider=key,
                    capabilities=frozenset(capabilities),
                    priority=len(self._records) + 1
                )
                self._records[key] = record
                self._rerank_locked()
            return record.copy()

    def unregister(self, provider: Union[str, Enum]) -> bool:
        key = provider_key(provider)
        with self._lock:
            if self._records.pop(key, None) is None:
                return False
            self._rerank_locked()
            return True

    def record_outcome(self, provider: Union[str, Enum], status: HealthStatus,
                       response_time_ms: Optional[float] = None,
                       error_detail: Optional[str] = None,
                       checked_at: Optional[datetime] = None) -> bool:
        """
        Overwrite the latest observation for a provider and re-rank

        Args:
            provider: Provider id
            status: Observed status
            response_time_ms: Latency of the probe or call, if measured
            error_detail: Error message for failed observations
            checked_at: Observation time (defaults to now)

        Returns:
            False when the provider is not registered (e.g. a late write after teardown)
        """
        key = provider_key(provider)
        status = HealthStatus(status)

        with self._lock:
            record = self._records.get(key)
            if record is None:
                stored = False
            else:
                record.status = status
                record.last_checked = checked_at or datetime.now(timezone.utc)
                record.response_time_ms = response_time_ms
                record.last_error = error_detail
                self._rerank_locked()
                stored = True
                ranked = self._ranked

        if not stored:
            logger.debug("Ignoring health outcome for unregistered provider",
                         provider=key, status=status.value)
            return False

        logger.info("Provider health updated",
                    provider=key,
                    status=status.value,
                    response_time_ms=response_time_ms,
                    error=error_detail,
                    order=list(ranked))
        return True

    def record_result(self, result: HealthCheckResult) -> bool:
        return self.record_outcome(
            result.provider,
            result.status,
            response_time_ms=result.response_time_ms,
            error_detail=result.error,
            checked_at=result.last_checked
        )

    def rerank(self) -> List[str]:
        with self._lock:
            self._rerank_locked()
            return list(self._ranked)

    def _rerank_locked(self):
        """Recompute priorities (caller holds lock)"""
        current = sorted(self._records.values(), key=lambda r: r.priority)

        healthy = [r for r in current if r.status == HealthStatus.UP]
        unhealthy = [r for r in current if r.status != HealthStatus.UP]

        healthy.sort(key=lambda r: r.response_time_ms if r.response_time_ms is not None else math.inf)
        unhealthy.sort(key=lambda r: r.last_checked or NEVER_CHECKED, reverse=True)

        ranked = healthy + unhealthy
        for priority, record in enumerate(ranked, start=1):
            record.priority = priority
        self._ranked = tuple(r.provider for r in ranked)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def ordered_providers(self) -> List[str]:
        """All registered providers, best rank first"""
        with self._lock:
            return list(self._ranked)

    def is_healthy(self, provider: Union[str, Enum]) -> bool:
        with self._lock:
            record = self._records.get(provider_key(provider))
            return record is not None and record.status == HealthStatus.UP

    def get(self, provider: Union[str, Enum]) -> Optional[ProviderRecord]:
        with self._lock:
            record = self._records.get(provider_key(provider))
            return record.copy() if record else None

    def all_health(self) -> List[ProviderRecord]:
        with self._lock:
            return [self._records[key].copy() for key in self._ranked]

    def registered_providers(self) -> List[str]:
        with self._lock:
            return list(self._records)

    def __contains__(self, provider) -> bool:
        with self._lock:
            return provider_key(provider) in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    async def check_all(self, probe_fn: ProbeFunction) -> List[HealthCheckResult]:
        """Probe every registered provider once, one after another"""
        results = []
        for provider in self.registered_providers():
            if self._destroyed:
                break
            results.append(await self._probe_one(probe_fn, provider))
        return results

    async def _probe_one(self, probe_fn: ProbeFunction, provider: str) -> HealthCheckResult:
        try:
            outcome = await probe_fn(provider)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error_msg = str(e) or e.__class__.__name__
            logger.warning("Health probe raised", provider=provider, error=error_msg)
            result = HealthCheckResult(provider=provider, status=HealthStatus.DOWN, error=error_msg)
        else:
            if isinstance(outcome, HealthCheckResult):
                result = outcome
                result.provider = provider
            else:
                result = HealthCheckResult(
                    provider=provider,
                    status=HealthStatus.UP,
                    response_time_ms=float(outcome) if outcome is not None else None
                )

        self.record_result(result)
        return result

    async def start_periodic_check(self, probe_fn: ProbeFunction,
                                   interval_seconds: Optional[float] = None):
        """Start (or restart) the background refresh loop"""
        if self._destroyed:
            logger.warning("Health registry destroyed, not starting periodic check")
            return

        if not self.enabled:
            logger.info("Periodic health check disabled")
            return

        if self._running:
            await self.stop_periodic_check()

        if interval_seconds is not None:
            self.interval_seconds = interval_seconds

        self._probe_fn = probe_fn
        self._running = True
        self._task = asyncio.create_task(self._worker_loop(), name="llm_relay_health_check")

        logger.info("Periodic health check started", interval_seconds=self.interval_seconds)

    async def stop_periodic_check(self):
        """Cancel the refresh loop; safe to call any number of times"""
        if not self._running and self._task is None:
            return

        self._running = False
        task, self._task = self._task, None

        if task and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        logger.info("Periodic health check stopped")

    @property
    def running(self) -> bool:
        return self._running

    async def _worker_loop(self):
        """Main refresh loop: one sequential probe cycle per interval"""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)
                if not self._running:
                    break
                await self.check_all(self._probe_fn)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error in health check loop", error=str(e))

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def destroy(self):
        """Stop the refresh loop and drop every record"""
        self._destroyed = True
        await self.stop_periodic_check()
        with self._lock:
            self._records.clear()
            self._ranked = ()
        logger.info("Health registry destroyed")

    @property
    def destroyed(self) -> bool:
        return self._destroyed
