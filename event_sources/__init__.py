"""
Event Sources Module - Economic calendar and currency news collection.

Collects raw calendar rows, feed items, API rows, macro observations and
headlines from independent sources, normalizes them into canonical
economic events and merges them per cycle.

Core principles:
- Every source is optional; failures become result metadata
- Each source tries an ordered chain of request variants
- Requests honour per-source rate limits and inter-request delays
- Simulated events are never merged silently

Usage:
    from event_sources import create_default_orchestrator

    orchestrator = create_default_orchestrator()
    batch = await orchestrator.collect_all()
    for event in batch.events:
        print(event.currency, event.title, event.sentiment.value)
    await orchestrator.close()
"""

from .base import BaseEventSource
from .cache import BoundedEventCache, infer_data_type
from .config import (
    DEFAULT_CURRENCIES,
    SOURCE_NAMES,
    CollectionConfig,
    SourceConfig,
    get_config,
    set_config,
)
from .exceptions import (
    EventSourceError,
    FetchError,
    NormalizationError,
    ParseError,
    RateLimitError,
    SourceUnavailableError,
)
from .extraction import ExtractionProfile
from .models import (
    CollectionBatch,
    CollectionResult,
    FallbackMode,
    RequestVariant,
    SourceHealth,
    SourceIncident,
    SourceMetadata,
    SourceStatus,
)
from .orchestrator import CollectionOrchestrator, create_default_orchestrator
from .providers import PROVIDERS
from .rate_limiter import RateLimiter, get_rate_limiter, reset_rate_limiters
from .scraping import ScrapedCalendarSource, ScrapedHeadlineSource


__all__ = [
    # Base
    "BaseEventSource",
    "ScrapedCalendarSource",
    "ScrapedHeadlineSource",
    "ExtractionProfile",
    # Orchestration
    "CollectionOrchestrator",
    "create_default_orchestrator",
    "PROVIDERS",
    # Cache / rate limiting
    "BoundedEventCache",
    "infer_data_type",
    "RateLimiter",
    "get_rate_limiter",
    "reset_rate_limiters",
    # Config
    "CollectionConfig",
    "SourceConfig",
    "DEFAULT_CURRENCIES",
    "SOURCE_NAMES",
    "get_config",
    "set_config",
    # Models
    "CollectionBatch",
    "CollectionResult",
    "FallbackMode",
    "RequestVariant",
    "SourceHealth",
    "SourceIncident",
    "SourceMetadata",
    "SourceStatus",
    # Exceptions
    "EventSourceError",
    "FetchError",
    "NormalizationError",
    "ParseError",
    "RateLimitError",
    "SourceUnavailableError",
]
