"""
Event Data Models - Raw source records and the canonical event shape.

Every source adapter emits exactly one RawSourceRecord variant.
The normalizer dispatches on the record's `kind` tag and produces
at most one CanonicalEconomicEvent per record. Raw records are
ephemeral and discarded once normalized.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Optional

from core.clock import ensure_utc, from_iso8601


# Currencies the whole pipeline understands. Anything else is dropped
# (adapters) or folded into BASE_CURRENCY (lossy normalize_currency).
SUPPORTED_CURRENCIES: tuple[str, ...] = (
    "USD", "EUR", "GBP", "JPY", "CAD", "AUD", "NZD", "CHF",
)
BASE_CURRENCY = "USD"

SIMULATED_SOURCE = "SIMULATED"


class Impact(Enum):
    """Source-asserted market-moving significance."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Sentiment(Enum):
    """Directional read of an event for its currency."""
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class RecordKind(Enum):
    """Discriminant of the RawSourceRecord variants."""
    SCRAPED_CALENDAR_ROW = "scraped_calendar_row"
    SCRAPED_HEADLINE = "scraped_headline"
    FEED_ITEM = "feed_item"
    API_ROW = "api_row"
    MACRO_OBSERVATION = "macro_observation"
    NEWS_ARTICLE = "news_article"
    SCORED_NEWS_ARTICLE = "scored_news_article"
    SIMULATED = "simulated"


class DataType(Enum):
    """Cache key component."""
    ECONOMIC_EVENT = "economic_event"
    INDICATOR = "indicator"
    NEWS = "news"


def clamp_confidence(value) -> float:
    """Clamp any numeric confidence into [0, 100]."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return max(0.0, min(100.0, number))


# =============================================================
# RAW SOURCE RECORDS
# =============================================================


@dataclass(frozen=True)
class RawSourceRecord:
    """Base of the tagged raw record family."""
    kind: ClassVar[RecordKind]

    source: str
    url: Optional[str] = None


@dataclass(frozen=True)
class ScrapedCalendarRow(RawSourceRecord):
    """One row scraped from an HTML economic calendar."""
    kind: ClassVar[RecordKind] = RecordKind.SCRAPED_CALENDAR_ROW

    currency_text: str = ""
    impact_text: str = ""
    event_text: str = ""
    time_text: str = ""
    date_text: str = ""
    actual_text: str = ""
    forecast_text: str = ""
    previous_text: str = ""


@dataclass(frozen=True)
class ScrapedHeadline(RawSourceRecord):
    """A news headline scraped from a listing page."""
    kind: ClassVar[RecordKind] = RecordKind.SCRAPED_HEADLINE

    title: str = ""
    summary: str = ""
    time_text: str = ""
    currencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class FeedItem(RawSourceRecord):
    """An item of a JSON calendar feed."""
    kind: ClassVar[RecordKind] = RecordKind.FEED_ITEM

    title: str = ""
    country: str = ""
    date: str = ""
    impact: str = ""
    actual: str = ""
    forecast: str = ""
    previous: str = ""


@dataclass(frozen=True)
class ApiRow(RawSourceRecord):
    """A row returned by a calendar REST API."""
    kind: ClassVar[RecordKind] = RecordKind.API_ROW

    country: str = ""
    category: str = ""
    event: str = ""
    date: str = ""
    importance: str = ""
    actual: str = ""
    forecast: str = ""
    previous: str = ""


@dataclass(frozen=True)
class MacroObservation(RawSourceRecord):
    """Latest observation of a macro-data series."""
    kind: ClassVar[RecordKind] = RecordKind.MACRO_OBSERVATION

    series_id: str = ""
    currency: str = ""
    event_type: str = ""
    title: str = ""
    date: str = ""
    value: Optional[float] = None
    previous_value: Optional[float] = None
    impact: str = ""


@dataclass(frozen=True)
class NewsArticle(RawSourceRecord):
    """An article returned by a news REST API."""
    kind: ClassVar[RecordKind] = RecordKind.NEWS_ARTICLE

    title: str = ""
    description: str = ""
    published_at: str = ""
    publisher: str = ""
    currencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoredNewsArticle(RawSourceRecord):
    """
    A news article the source has already scored.

    sentiment_label is the source's own label (e.g. "Somewhat-Bullish");
    confidence is on the 0-100 scale but not yet clamped.
    """
    kind: ClassVar[RecordKind] = RecordKind.SCORED_NEWS_ARTICLE

    title: str = ""
    summary: str = ""
    published_at: str = ""
    publisher: str = ""
    currencies: tuple[str, ...] = ()
    sentiment_label: str = ""
    confidence: Optional[float] = None


@dataclass(frozen=True)
class SimulatedRecord(RawSourceRecord):
    """
    Fully specified synthetic event.

    Only ever produced by the simulated calendar source and always
    normalized with source="SIMULATED".
    """
    kind: ClassVar[RecordKind] = RecordKind.SIMULATED

    currency: str = BASE_CURRENCY
    event_type: str = ""
    title: str = ""
    description: str = ""
    event_date: Optional[datetime] = None
    actual_value: Optional[float] = None
    expected_value: Optional[float] = None
    previous_value: Optional[float] = None
    impact: Impact = Impact.LOW
    sentiment: Sentiment = Sentiment.NEUTRAL
    confidence: float = 50.0
    sentiment_score: Optional[float] = None


# =============================================================
# CANONICAL EVENT
# =============================================================


@dataclass(frozen=True)
class CanonicalEconomicEvent:
    """
    The single normalized event shape all aggregation works on.

    Invariants:
    - currency is one of SUPPORTED_CURRENCIES
    - confidence_score is within [0, 100]
    - sentiment_score, when present, is within [0, 100]
    - event_date is a timezone-aware UTC datetime
    - related_currencies starts with currency and has no duplicates
    """
    currency: str
    event_type: str
    title: str
    event_date: datetime
    impact: Impact
    sentiment: Sentiment
    confidence_score: float
    source: str
    description: str = ""
    actual_value: Optional[float] = None
    expected_value: Optional[float] = None
    previous_value: Optional[float] = None
    price_impact: Optional[float] = None
    url: Optional[str] = None
    sentiment_score: Optional[float] = None
    related_currencies: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency!r}")

        object.__setattr__(self, "event_date", ensure_utc(self.event_date))

        object.__setattr__(self, "confidence_score", clamp_confidence(self.confidence_score))
        if self.sentiment_score is not None:
            score = self.sentiment_score
            object.__setattr__(
                self, "sentiment_score",
                None if score != score else clamp_confidence(score)
            )

        related = [self.currency]
        for code in self.related_currencies:
            if code in SUPPORTED_CURRENCIES and code not in related:
                related.append(code)
        object.__setattr__(self, "related_currencies", tuple(related))

    @property
    def currencies(self) -> tuple[str, ...]:
        """Every currency this event is tagged with, primary first."""
        return self.related_currencies

    @property
    def has_actual_and_expected(self) -> bool:
        return self.actual_value is not None and self.expected_value is not None

    @property
    def is_simulated(self) -> bool:
        return self.source == SIMULATED_SOURCE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "currency": self.currency,
            "event_type": self.event_type,
            "title": self.title,
            "description": self.description,
            "event_date": self.event_date.isoformat(),
            "actual_value": self.actual_value,
            "expected_value": self.expected_value,
            "previous_value": self.previous_value,
            "impact": self.impact.value,
            "sentiment": self.sentiment.value,
            "confidence_score": self.confidence_score,
            "price_impact": self.price_impact,
            "source": self.source,
            "url": self.url,
            "sentiment_score": self.sentiment_score,
            "related_currencies": list(self.related_currencies),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CanonicalEconomicEvent":
        """Create from dictionary."""
        event_date = data["event_date"]
        if isinstance(event_date, str):
            event_date = from_iso8601(event_date)
        return cls(
            currency=data["currency"],
            event_type=data.get("event_type", ""),
            title=data["title"],
            description=data.get("description", ""),
            event_date=event_date,
            actual_value=data.get("actual_value"),
            expected_value=data.get("expected_value"),
            previous_value=data.get("previous_value"),
            impact=Impact(data.get("impact", "LOW")),
            sentiment=Sentiment(data.get("sentiment", "NEUTRAL")),
            confidence_score=float(data.get("confidence_score", 0.0)),
            price_impact=data.get("price_impact"),
            source=data.get("source", ""),
            url=data.get("url"),
            sentiment_score=data.get("sentiment_score"),
            related_currencies=tuple(data.get("related_currencies", ())),
        )
