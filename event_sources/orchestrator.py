"""
Collection Orchestrator - concurrent fan-out over all source adapters.

The orchestrator:
1. Runs every registered adapter concurrently (bounded)
2. Bounds each adapter with a cycle timeout
3. Turns crashes and timeouts into failed CollectionResults
4. Merges events in registration order, keeping SIMULATED events apart
5. Writes merged events to the bounded cache
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from core.clock import ClockProtocol, get_clock
from normalization.models import CanonicalEconomicEvent
from normalization.normalizer import CanonicalNormalizer

from .base import BaseEventSource
from .cache import BoundedEventCache
from .config import CollectionConfig, SIMULATED, get_config
from .models import (
    CollectionBatch,
    CollectionResult,
    SourceHealth,
    SourceIncident,
    SourceStatus,
)
from .providers import PROVIDERS


logger = logging.getLogger(__name__)


MAX_INCIDENTS = 100


class CollectionOrchestrator:
    """
    Central manager for event source adapters.

    DESIGN PRINCIPLES:
    1. NON-BLOCKING - No adapter can stall the cycle past its timeout
    2. GRACEFUL - Partial data is better than no data
    3. ISOLATED - One adapter failing never affects another
    4. EXPLICIT - Simulated events never blend into real ones silently
    5. TRANSPARENT - Health, stats and incidents available

    Usage:
        orchestrator = CollectionOrchestrator(config)
        orchestrator.register(ForexFactoryFeedSource())
        orchestrator.register(InvestingCalendarSource())

        batch = await orchestrator.collect_all()
    """

    def __init__(
        self,
        config: Optional[CollectionConfig] = None,
        cache: Optional[BoundedEventCache] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self.config = config or get_config()
        self.cache = cache or BoundedEventCache(
            capacity=self.config.cache_capacity,
            max_keys=self.config.cache_max_keys,
        )
        self._clock = clock or get_clock()
        self._sources: dict[str, BaseEventSource] = {}
        self._incidents: list[SourceIncident] = []
        self._last_success: dict[str, datetime] = {}

        # Statistics
        self._stats = {
            "total_cycles": 0,
            "successful_cycles": 0,
            "partial_cycles": 0,
            "failed_cycles": 0,
            "events_merged": 0,
            "simulated_events_held": 0,
        }

    @property
    def sources(self) -> list[BaseEventSource]:
        return list(self._sources.values())

    def register(self, source: BaseEventSource) -> None:
        """Register an adapter; order of registration is merge order."""
        name = source.metadata.name
        if name in self._sources:
            logger.warning(f"Overwriting existing source: {name}")

        self._sources[name] = source
        logger.info(f"Registered event source: {name}")

    def unregister(self, name: str) -> bool:
        """Unregister an adapter."""
        if name in self._sources:
            del self._sources[name]
            logger.info(f"Unregistered event source: {name}")
            return True
        return False

    async def collect_all(
        self,
        source_names: Optional[Sequence[str]] = None,
    ) -> CollectionBatch:
        """
        Run one collection cycle.

        NEVER raises. Every selected adapter settles into a CollectionResult;
        when all of them fail the batch is empty and the per-source errors
        are in its results.

        Args:
            source_names: Restrict the cycle to these adapters (registration
                order is kept). None runs every registered adapter.
        """
        self._stats["total_cycles"] += 1
        started_at = self._clock.now()

        selected = [
            source for name, source in self._sources.items()
            if source_names is None or name in source_names
        ]

        if not selected:
            logger.warning("No event sources registered for this cycle")
            self._stats["failed_cycles"] += 1
            return CollectionBatch(
                results=[],
                events=[],
                started_at=started_at,
                completed_at=self._clock.now(),
            )

        semaphore = asyncio.Semaphore(max(1, self.config.max_concurrency))
        tasks = [
            asyncio.create_task(
                self._collect_with_timeout(source, semaphore),
                name=source.metadata.name,
            )
            for source in selected
        ]
        settled = await asyncio.gather(*tasks, return_exceptions=True)

        results: list[CollectionResult] = []
        events: list[CanonicalEconomicEvent] = []
        simulated_events: list[CanonicalEconomicEvent] = []

        for source, outcome in zip(selected, settled):
            name = source.metadata.name
            if isinstance(outcome, BaseException):
                # CancelledError and friends escape _collect_with_timeout
                outcome = CollectionResult(
                    source=name,
                    success=False,
                    error=str(outcome) or type(outcome).__name__,
                    is_simulated=source.metadata.is_simulated,
                )

            results.append(outcome)

            if not outcome.success:
                self._record_incident(
                    name,
                    "timeout" if outcome.error == self._timeout_message() else "collection_failed",
                    outcome.error or "unknown error",
                    outcome.status_code,
                )
                continue

            self._last_success[name] = self._clock.now()

            if outcome.is_simulated or name == SIMULATED:
                simulated_events.extend(outcome.events)
                if not self.config.include_simulated:
                    continue
            else:
                events.extend(outcome.events)

            self.cache.add(outcome.events, data_type=source.metadata.data_type)

        if self.config.include_simulated:
            events.extend(simulated_events)

        succeeded = sum(1 for r in results if r.success)
        if succeeded == len(results):
            self._stats["successful_cycles"] += 1
        elif succeeded:
            self._stats["partial_cycles"] += 1
        else:
            self._stats["failed_cycles"] += 1
        self._stats["events_merged"] += len(events)
        self._stats["simulated_events_held"] += len(simulated_events)

        batch = CollectionBatch(
            results=results,
            events=events,
            started_at=started_at,
            completed_at=self._clock.now(),
            simulated_events=simulated_events,
        )

        logger.info(
            f"Collection cycle finished: {len(events)} events from "
            f"{succeeded}/{len(results)} sources"
            + (f" ({len(simulated_events)} simulated held apart)"
               if simulated_events and not self.config.include_simulated else "")
        )
        return batch

    async def _collect_with_timeout(
        self,
        source: BaseEventSource,
        semaphore: asyncio.Semaphore,
    ) -> CollectionResult:
        """Collect from one adapter under the semaphore and cycle timeout."""
        name = source.metadata.name
        timeout = self.config.source_timeout_seconds

        async with semaphore:
            try:
                return await asyncio.wait_for(source.collect(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Source {name} timed out after {timeout}s")
                return CollectionResult(
                    source=name,
                    success=False,
                    error=self._timeout_message(),
                    is_simulated=source.metadata.is_simulated,
                )
            except Exception as e:
                logger.error(f"Source {name} error: {e}")
                return CollectionResult(
                    source=name,
                    success=False,
                    error=str(e),
                    is_simulated=source.metadata.is_simulated,
                )

    def _record_incident(
        self,
        source_name: str,
        incident_type: str,
        error_message: str,
        status_code: Optional[int] = None,
    ) -> None:
        """Record an incident for debugging."""
        incident = SourceIncident(
            source_name=source_name,
            incident_type=incident_type,
            timestamp=self._clock.now(),
            error_message=error_message,
            status_code=status_code or None,
        )
        self._incidents.append(incident)

        # Keep only last 100 incidents
        if len(self._incidents) > MAX_INCIDENTS:
            self._incidents = self._incidents[-MAX_INCIDENTS:]

    def _timeout_message(self) -> str:
        return f"timed out after {self.config.source_timeout_seconds}s"

    # ─────────────────────────────────────────────────────────────
    # Health and statistics
    # ─────────────────────────────────────────────────────────────

    async def get_health(self) -> dict[str, SourceHealth]:
        """Get health status of all adapters."""
        health = {}
        for name, source in self._sources.items():
            health[name] = await source.get_health()
        return health

    async def get_health_summary(self) -> dict[str, Any]:
        """Get summary health information."""
        health = await self.get_health()

        total = len(health)
        healthy = sum(1 for h in health.values() if h.status == SourceStatus.HEALTHY)
        degraded = sum(1 for h in health.values() if h.status == SourceStatus.DEGRADED)
        rate_limited = sum(1 for h in health.values() if h.status == SourceStatus.RATE_LIMITED)
        unavailable = sum(1 for h in health.values() if h.status == SourceStatus.UNAVAILABLE)

        return {
            "total_sources": total,
            "healthy": healthy,
            "degraded": degraded,
            "rate_limited": rate_limited,
            "unavailable": unavailable,
            "health_pct": round(healthy / total * 100, 1) if total > 0 else 0,
            "sources": {name: h.status.value for name, h in health.items()},
            "last_success": {
                name: moment.isoformat() for name, moment in self._last_success.items()
            },
        }

    def get_stats(self) -> dict[str, Any]:
        """Get orchestrator statistics."""
        return {
            **self._stats,
            "registered_sources": len(self._sources),
            "source_names": list(self._sources.keys()),
            "source_stats": {name: s.get_stats() for name, s in self._sources.items()},
            "cache": self.cache.stats(),
            "recent_incidents": len(self._incidents),
        }

    def get_incidents(
        self,
        limit: int = 20,
        source_name: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Get recent incidents."""
        incidents = self._incidents

        if source_name:
            incidents = [i for i in incidents if i.source_name == source_name]

        return [i.to_dict() for i in incidents[-limit:]]

    async def close(self) -> None:
        """Close all adapter sessions."""
        for source in self._sources.values():
            await source.close()


# =============================================================
# FACTORY
# =============================================================


def create_default_orchestrator(
    config: Optional[CollectionConfig] = None,
    normalizer: Optional[CanonicalNormalizer] = None,
    clock: Optional[ClockProtocol] = None,
) -> CollectionOrchestrator:
    """
    Build an orchestrator with every enabled adapter registered.

    Adapters requiring a key are registered even without one; they
    report themselves unavailable for the cycle instead of crashing.
    The global rate limit caps each adapter's own default; a per-source
    <NAME>_RATE_LIMIT_RPM overrides both.
    """
    config = config or get_config()
    clock = clock or get_clock()
    normalizer = normalizer or CanonicalNormalizer(clock=clock)
    orchestrator = CollectionOrchestrator(config=config, clock=clock)

    for name, source_class in PROVIDERS.items():
        source_config = config.source(name)
        enabled = source_config.enabled or (name == SIMULATED and config.include_simulated)
        if not enabled:
            logger.debug(f"Source {name} disabled")
            continue

        kwargs: dict[str, Any] = dict(
            normalizer=normalizer,
            api_key=source_config.api_key,
            timeout=config.timeout_for(name),
            rate_limit_rpm=source_config.rate_limit_rpm
            or min(config.rate_limit_rpm, source_class.DEFAULT_RATE_LIMIT_RPM),
            delay_range=config.delay_range,
        )
        if name == SIMULATED:
            kwargs["currencies"] = config.currencies
            kwargs.pop("delay_range")

        orchestrator.register(source_class(**kwargs))

    return orchestrator
