"""
Normalization Layer - one canonical event shape for every source.

This package provides:
- Tagged raw record variants emitted by source adapters
- CanonicalEconomicEvent, the shape all aggregation works on
- Single currency and impact lookup tables
- Sentiment / impact / confidence classifier
- CanonicalNormalizer dispatching on the record kind

Usage:
    from normalization import CanonicalNormalizer, ScrapedCalendarRow

    normalizer = CanonicalNormalizer()
    event = normalizer.normalize(
        ScrapedCalendarRow(
            source="Forex Factory",
            currency_text="USD",
            impact_text="High Impact Expected",
            event_text="Unemployment Claims",
            actual_text="231K",
            forecast_text="220K",
        )
    )
"""

from .classifier import (
    INDICATOR_PROFILES,
    IndicatorProfile,
    Polarity,
    categorize_event,
    clamp_confidence,
    compute_deviation,
    deviation_sentiment_score,
    infer_sentiment,
    keyword_sentiment,
    parse_numeric,
    score_confidence,
    sentiment_from_label,
    sentiment_from_score,
)
from .currency import (
    CURRENCY_ALIASES,
    extract_currencies,
    normalize_currency,
    resolve_currency,
)
from .impact import impact_from_headline, normalize_impact
from .models import (
    BASE_CURRENCY,
    SIMULATED_SOURCE,
    SUPPORTED_CURRENCIES,
    ApiRow,
    CanonicalEconomicEvent,
    DataType,
    FeedItem,
    Impact,
    MacroObservation,
    NewsArticle,
    RawSourceRecord,
    RecordKind,
    ScrapedCalendarRow,
    ScoredNewsArticle,
    ScrapedHeadline,
    Sentiment,
    SimulatedRecord,
)
from .normalizer import CanonicalNormalizer


__all__ = [
    # Models
    "BASE_CURRENCY",
    "SIMULATED_SOURCE",
    "SUPPORTED_CURRENCIES",
    "ApiRow",
    "CanonicalEconomicEvent",
    "DataType",
    "FeedItem",
    "Impact",
    "MacroObservation",
    "NewsArticle",
    "RawSourceRecord",
    "RecordKind",
    "ScoredNewsArticle",
    "ScrapedCalendarRow",
    "ScrapedHeadline",
    "Sentiment",
    "SimulatedRecord",
    # Lookup tables
    "CURRENCY_ALIASES",
    "extract_currencies",
    "normalize_currency",
    "resolve_currency",
    "impact_from_headline",
    "normalize_impact",
    # Classifier
    "INDICATOR_PROFILES",
    "IndicatorProfile",
    "Polarity",
    "categorize_event",
    "clamp_confidence",
    "compute_deviation",
    "deviation_sentiment_score",
    "infer_sentiment",
    "keyword_sentiment",
    "parse_numeric",
    "score_confidence",
    "sentiment_from_label",
    "sentiment_from_score",
    # Normalizer
    "CanonicalNormalizer",
]
