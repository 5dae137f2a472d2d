"""
Canonical Normalizer - RawSourceRecord -> CanonicalEconomicEvent.

Dispatches on the record's kind tag through a handler table; each
handler reads the fields its variant is known to carry. A record
whose currency or title cannot be resolved yields None and is
counted as dropped by normalize_batch().

Given a pinned clock the normalizer is pure: normalizing the same
record twice yields equal events.
"""

import logging
import re
from datetime import datetime, time, timedelta
from typing import Callable, Iterable, Optional

from dateutil import parser as date_parser

from core.clock import ClockProtocol, ensure_utc, get_clock

from .classifier import (
    NEWS,
    OTHER,
    categorize_event,
    clamp_confidence,
    infer_sentiment,
    keyword_sentiment,
    parse_numeric,
    score_confidence,
    sentiment_from_label,
)
from .currency import extract_currencies, resolve_currency
from .impact import impact_from_headline, normalize_impact
from .models import (
    SIMULATED_SOURCE,
    SUPPORTED_CURRENCIES,
    ApiRow,
    CanonicalEconomicEvent,
    FeedItem,
    MacroObservation,
    NewsArticle,
    RawSourceRecord,
    RecordKind,
    ScoredNewsArticle,
    ScrapedCalendarRow,
    ScrapedHeadline,
    Sentiment,
    SimulatedRecord,
)
from .text import clean_text, truncate


logger = logging.getLogger(__name__)


RELATIVE_DAYS: dict[str, int] = {
    "today": 0,
    "yesterday": -1,
    "tomorrow": 1,
}

# Time cells that carry no clock time.
NON_TIME_VALUES = frozenset({"all day", "all-day", "tentative", "day 1", "day 2", "--", "-"})

_AGO_PATTERN = re.compile(
    r"(\d+)\s*(m|min|mins|minute|minutes|h|hr|hrs|hour|hours|d|day|days)\s+ago"
)

_AGO_UNITS: dict[str, str] = {
    "m": "minutes", "min": "minutes", "mins": "minutes",
    "minute": "minutes", "minutes": "minutes",
    "h": "hours", "hr": "hours", "hrs": "hours",
    "hour": "hours", "hours": "hours",
    "d": "days", "day": "days", "days": "days",
}


class CanonicalNormalizer:
    """
    Converts tagged raw records into canonical events.

    Usage:
        normalizer = CanonicalNormalizer(clock=FixedClock(now))
        events, dropped = normalizer.normalize_batch(records)
    """

    def __init__(self, clock: Optional[ClockProtocol] = None) -> None:
        self._clock = clock or get_clock()
        self._handlers: dict[
            RecordKind,
            Callable[[RawSourceRecord], Optional[CanonicalEconomicEvent]],
        ] = {
            RecordKind.SCRAPED_CALENDAR_ROW: self._from_calendar_row,
            RecordKind.SCRAPED_HEADLINE: self._from_headline,
            RecordKind.FEED_ITEM: self._from_feed_item,
            RecordKind.API_ROW: self._from_api_row,
            RecordKind.MACRO_OBSERVATION: self._from_macro_observation,
            RecordKind.NEWS_ARTICLE: self._from_news_article,
            RecordKind.SCORED_NEWS_ARTICLE: self._from_scored_article,
            RecordKind.SIMULATED: self._from_simulated,
        }

    @property
    def clock(self) -> ClockProtocol:
        return self._clock

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    def normalize(self, record: RawSourceRecord) -> Optional[CanonicalEconomicEvent]:
        """Normalize one record; None when required fields are unresolvable."""
        handler = self._handlers.get(record.kind)
        if handler is None:
            logger.debug(f"No handler for record kind {record.kind}")
            return None

        try:
            return handler(record)
        except (ValueError, TypeError, OverflowError) as e:
            logger.warning(f"[{record.source}] Failed to normalize {record.kind.value}: {e}")
            return None

    def normalize_batch(
        self,
        records: Iterable[RawSourceRecord],
    ) -> tuple[list[CanonicalEconomicEvent], int]:
        """Normalize many records, returning (events, dropped_count)."""
        events: list[CanonicalEconomicEvent] = []
        dropped = 0
        for record in records:
            event = self.normalize(record)
            if event is None:
                dropped += 1
            else:
                events.append(event)
        return events, dropped

    def resolve_event_date(
        self,
        date_text: Optional[str],
        time_text: Optional[str] = None,
    ) -> datetime:
        """
        Resolve date and time cells to a UTC datetime.

        Handles explicit and ISO dates, Today/Yesterday/Tomorrow,
        "N hours ago", and bare times anchored to the reference day.
        Anything unresolvable becomes the clock's current time.
        """
        now = self._clock.now()
        date_part = clean_text(date_text)
        time_part = clean_text(time_text)

        for text in (time_part, date_part):
            relative = self._parse_ago(text, now)
            if relative is not None:
                return relative

        reference_day = self._clock.start_of_day().replace(tzinfo=None)

        if not date_part:
            anchor = reference_day
            has_clock_time = False
        elif date_part.lower() in RELATIVE_DAYS:
            anchor = reference_day + timedelta(days=RELATIVE_DAYS[date_part.lower()])
            has_clock_time = False
        else:
            parsed = self._parse_datetime(date_part, reference_day)
            if parsed is None:
                logger.debug(f"Unresolvable date {date_part!r}, using current time")
                return now
            anchor = parsed
            has_clock_time = parsed.time() != time.min or parsed.tzinfo is not None

        if time_part and time_part.lower() not in NON_TIME_VALUES:
            day_start = datetime.combine(anchor.date(), time.min)
            timed = self._parse_datetime(time_part, day_start)
            if timed is not None:
                return ensure_utc(timed)

        if not date_part and not time_part:
            return now

        if has_clock_time:
            return ensure_utc(anchor)
        return ensure_utc(datetime.combine(anchor.date(), time.min))

    # ─────────────────────────────────────────────────────────────
    # Handlers
    # ─────────────────────────────────────────────────────────────

    def _from_calendar_row(self, record: ScrapedCalendarRow) -> Optional[CanonicalEconomicEvent]:
        currency = resolve_currency(record.currency_text)
        title = truncate(clean_text(record.event_text))
        if currency is None or not title:
            return None

        return self._build_indicator_event(
            record,
            currency=currency,
            title=title,
            impact_text=record.impact_text,
            actual_text=record.actual_text,
            forecast_text=record.forecast_text,
            previous_text=record.previous_text,
            event_date=self.resolve_event_date(record.date_text, record.time_text),
        )

    def _from_feed_item(self, record: FeedItem) -> Optional[CanonicalEconomicEvent]:
        currency = resolve_currency(record.country)
        title = truncate(clean_text(record.title))
        if currency is None or not title:
            return None

        return self._build_indicator_event(
            record,
            currency=currency,
            title=title,
            impact_text=record.impact,
            actual_text=record.actual,
            forecast_text=record.forecast,
            previous_text=record.previous,
            event_date=self.resolve_event_date(record.date),
        )

    def _from_api_row(self, record: ApiRow) -> Optional[CanonicalEconomicEvent]:
        currency = resolve_currency(record.country)
        title = truncate(clean_text(record.event) or clean_text(record.category))
        if currency is None or not title:
            return None

        event_type = categorize_event(title)
        if event_type == OTHER and record.category:
            event_type = categorize_event(record.category)

        return self._build_indicator_event(
            record,
            currency=currency,
            title=title,
            impact_text=record.importance,
            actual_text=record.actual,
            forecast_text=record.forecast,
            previous_text=record.previous,
            event_date=self.resolve_event_date(record.date),
            event_type=event_type,
        )

    def _from_macro_observation(self, record: MacroObservation) -> Optional[CanonicalEconomicEvent]:
        currency = resolve_currency(record.currency)
        title = truncate(clean_text(record.title) or record.series_id)
        if currency is None or not title or record.value is None:
            return None

        event_type = record.event_type or categorize_event(title)
        impact = normalize_impact(record.impact)
        sentiment = infer_sentiment(event_type, record.value, None, record.previous_value)

        return CanonicalEconomicEvent(
            currency=currency,
            event_type=event_type,
            title=title,
            description=f"{record.series_id} latest observation",
            event_date=self.resolve_event_date(record.date),
            actual_value=record.value,
            expected_value=None,
            previous_value=record.previous_value,
            impact=impact,
            sentiment=sentiment,
            confidence_score=score_confidence(impact, record.source, record.value, None),
            source=record.source,
            url=record.url,
        )

    def _from_headline(self, record: ScrapedHeadline) -> Optional[CanonicalEconomicEvent]:
        return self._build_news_event(
            record,
            title=record.title,
            body=record.summary,
            date_text=record.time_text,
            tagged=record.currencies,
        )

    def _from_news_article(self, record: NewsArticle) -> Optional[CanonicalEconomicEvent]:
        return self._build_news_event(
            record,
            title=record.title,
            body=record.description,
            date_text=record.published_at,
            tagged=record.currencies,
        )

    def _from_scored_article(self, record: ScoredNewsArticle) -> Optional[CanonicalEconomicEvent]:
        return self._build_news_event(
            record,
            title=record.title,
            body=record.summary,
            date_text=record.published_at,
            tagged=record.currencies,
            sentiment=sentiment_from_label(record.sentiment_label),
            confidence=record.confidence,
        )

    def _from_simulated(self, record: SimulatedRecord) -> Optional[CanonicalEconomicEvent]:
        currency = resolve_currency(record.currency)
        title = truncate(clean_text(record.title))
        if currency is None or not title:
            return None

        return CanonicalEconomicEvent(
            currency=currency,
            event_type=record.event_type or categorize_event(title),
            title=title,
            description=clean_text(record.description),
            event_date=record.event_date or self._clock.now(),
            actual_value=record.actual_value,
            expected_value=record.expected_value,
            previous_value=record.previous_value,
            impact=record.impact,
            sentiment=record.sentiment,
            confidence_score=clamp_confidence(record.confidence),
            source=SIMULATED_SOURCE,
            url=record.url,
            sentiment_score=record.sentiment_score,
        )

    # ─────────────────────────────────────────────────────────────
    # Builders
    # ─────────────────────────────────────────────────────────────

    def _build_indicator_event(
        self,
        record: RawSourceRecord,
        currency: str,
        title: str,
        impact_text: str,
        actual_text: str,
        forecast_text: str,
        previous_text: str,
        event_date: datetime,
        event_type: Optional[str] = None,
    ) -> CanonicalEconomicEvent:
        actual = parse_numeric(actual_text)
        forecast = parse_numeric(forecast_text)
        previous = parse_numeric(previous_text)
        event_type = event_type or categorize_event(title)
        impact = normalize_impact(impact_text)

        return CanonicalEconomicEvent(
            currency=currency,
            event_type=event_type,
            title=title,
            description=_describe_values(actual_text, forecast_text, previous_text),
            event_date=event_date,
            actual_value=actual,
            expected_value=forecast,
            previous_value=previous,
            impact=impact,
            sentiment=infer_sentiment(event_type, actual, forecast, previous),
            confidence_score=score_confidence(impact, record.source, actual, forecast),
            source=record.source,
            url=record.url,
        )

    def _build_news_event(
        self,
        record: RawSourceRecord,
        title: str,
        body: str,
        date_text: str,
        tagged: tuple[str, ...],
        sentiment: Optional[Sentiment] = None,
        confidence: Optional[float] = None,
    ) -> Optional[CanonicalEconomicEvent]:
        """
        Headline-style event. An explicit sentiment or confidence from
        the source wins over keyword and impact scoring.
        """
        title = truncate(clean_text(title))
        if not title:
            return None

        body = clean_text(body)
        currencies = [code for code in tagged if code in SUPPORTED_CURRENCIES]
        if not currencies:
            currencies = extract_currencies(f"{title} {body}")
        if not currencies:
            return None

        text = f"{title} {body}".strip()
        impact = impact_from_headline(text)

        return CanonicalEconomicEvent(
            currency=currencies[0],
            event_type=NEWS,
            title=title,
            description=body,
            event_date=self.resolve_event_date(date_text),
            impact=impact,
            sentiment=sentiment or keyword_sentiment(text),
            confidence_score=(
                score_confidence(impact, record.source, None, None)
                if confidence is None
                else clamp_confidence(confidence)
            ),
            source=record.source,
            url=record.url,
            related_currencies=tuple(currencies),
        )

    # ─────────────────────────────────────────────────────────────
    # Date helpers
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def _parse_ago(text: str, now: datetime) -> Optional[datetime]:
        if not text:
            return None
        match = _AGO_PATTERN.search(text.lower())
        if not match:
            return None
        amount = int(match.group(1))
        unit = _AGO_UNITS[match.group(2)]
        return now - timedelta(**{unit: amount})

    @staticmethod
    def _parse_datetime(text: str, default: datetime) -> Optional[datetime]:
        try:
            return date_parser.parse(text, default=default)
        except (ValueError, OverflowError):
            return None


def _describe_values(actual: str, forecast: str, previous: str) -> str:
    parts = []
    for label, value in (("Actual", actual), ("Forecast", forecast), ("Previous", previous)):
        value = clean_text(value)
        if value:
            parts.append(f"{label}: {value}")
    return " | ".join(parts)
