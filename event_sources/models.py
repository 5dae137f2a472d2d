"""
Event Source Models - adapter metadata, health and collection outcomes.

CollectionResult is diagnostic metadata about one adapter run; it is
not persisted as domain data. CollectionBatch is what the collection
orchestrator hands to the scoring stages.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from normalization.models import CanonicalEconomicEvent, DataType


class SourceStatus(Enum):
    """Health status of an event source."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


class FallbackMode(Enum):
    """How an adapter treats its request variants."""
    MERGE_ALL = "merge_all"          # keep every successful variant
    FIRST_SUCCESS = "first_success"  # stop at the first variant with records


@dataclass
class SourceMetadata:
    """Metadata about an event source."""
    name: str
    display_name: str
    version: str = "1.0.0"
    reliability_weight: float = 0.5  # 0.0 to 1.0
    rate_limit_per_minute: Optional[int] = None
    requires_api_key: bool = False
    is_free_tier: bool = True
    base_url: str = ""
    documentation_url: str = ""
    priority: int = 0
    is_simulated: bool = False
    data_type: DataType = DataType.ECONOMIC_EVENT
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "version": self.version,
            "reliability_weight": self.reliability_weight,
            "rate_limit_per_minute": self.rate_limit_per_minute,
            "requires_api_key": self.requires_api_key,
            "is_free_tier": self.is_free_tier,
            "base_url": self.base_url,
            "priority": self.priority,
            "is_simulated": self.is_simulated,
            "data_type": self.data_type.value,
            "tags": self.tags,
        }


@dataclass
class SourceHealth:
    """Health status of an event source."""
    status: SourceStatus
    last_check: datetime
    latency_ms: Optional[float] = None
    error_count: int = 0
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None
    consecutive_failures: int = 0
    last_success: Optional[datetime] = None

    def is_healthy(self) -> bool:
        return self.status == SourceStatus.HEALTHY

    def is_usable(self) -> bool:
        return self.status in (SourceStatus.HEALTHY, SourceStatus.DEGRADED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "last_check": self.last_check.isoformat(),
            "latency_ms": self.latency_ms,
            "error_count": self.error_count,
            "last_error": self.last_error,
            "last_error_time": self.last_error_time.isoformat() if self.last_error_time else None,
            "consecutive_failures": self.consecutive_failures,
            "last_success": self.last_success.isoformat() if self.last_success else None,
        }


@dataclass(frozen=True)
class RequestVariant:
    """One URL / query variant of a logical source."""
    label: str
    url: str
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    expects_json: bool = False


@dataclass
class CollectionResult:
    """Per-source outcome of one collection run."""
    source: str
    success: bool
    events: list[CanonicalEconomicEvent] = field(default_factory=list)
    error: Optional[str] = None
    response_time_ms: float = 0.0
    status_code: int = 0
    records_dropped: int = 0
    variants_attempted: int = 0
    variants_succeeded: int = 0
    is_simulated: bool = False

    @property
    def event_count(self) -> int:
        return len(self.events)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "success": self.success,
            "event_count": self.event_count,
            "error": self.error,
            "response_time_ms": round(self.response_time_ms, 2),
            "status_code": self.status_code,
            "records_dropped": self.records_dropped,
            "variants_attempted": self.variants_attempted,
            "variants_succeeded": self.variants_succeeded,
            "is_simulated": self.is_simulated,
        }


@dataclass
class CollectionBatch:
    """
    Output of one orchestrator cycle.

    `events` only ever holds real events. Simulated events are kept
    apart in `simulated_events` and merged into `events` only when the
    orchestrator was explicitly told to include them.
    """
    results: list[CollectionResult]
    events: list[CanonicalEconomicEvent]
    started_at: datetime
    completed_at: datetime
    simulated_events: list[CanonicalEconomicEvent] = field(default_factory=list)

    @property
    def succeeded_sources(self) -> list[str]:
        return [r.source for r in self.results if r.success]

    @property
    def failed_sources(self) -> list[str]:
        return [r.source for r in self.results if not r.success]

    @property
    def is_empty(self) -> bool:
        return not self.events

    @property
    def duration_ms(self) -> float:
        return (self.completed_at - self.started_at).total_seconds() * 1000

    def errors(self) -> dict[str, str]:
        """Error message per failed source."""
        return {r.source: r.error or "unknown error" for r in self.results if not r.success}

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_ms": round(self.duration_ms, 2),
            "event_count": len(self.events),
            "simulated_event_count": len(self.simulated_events),
            "succeeded_sources": self.succeeded_sources,
            "failed_sources": self.failed_sources,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class SourceIncident:
    """Record of a source incident."""
    source_name: str
    incident_type: str
    timestamp: datetime
    error_message: str
    status_code: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_name": self.source_name,
            "incident_type": self.incident_type,
            "timestamp": self.timestamp.isoformat(),
            "error_message": self.error_message,
            "status_code": self.status_code,
        }
