"""
Tests for the Canonical Normalizer.

============================================================
PURPOSE
============================================================
1. Every raw record kind normalizes to one canonical event
2. Unresolvable records are dropped, not relabelled
3. Date resolution (explicit, relative, "ago", fallback)
4. Determinism under a pinned clock
5. Canonical event invariants

============================================================
"""

import pytest
from datetime import datetime, timedelta, timezone

from core.clock import FixedClock
from normalization.classifier import (
    BUSINESS_CONFIDENCE,
    CPI_HEADLINE,
    NEWS,
    UNEMPLOYMENT_RATE,
    score_confidence,
)
from normalization.currency import extract_currencies, normalize_currency, resolve_currency
from normalization.impact import impact_from_headline, normalize_impact
from normalization.models import (
    SIMULATED_SOURCE,
    ApiRow,
    CanonicalEconomicEvent,
    FeedItem,
    Impact,
    MacroObservation,
    NewsArticle,
    ScoredNewsArticle,
    ScrapedCalendarRow,
    ScrapedHeadline,
    Sentiment,
    SimulatedRecord,
)
from normalization.normalizer import CanonicalNormalizer


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def now():
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def normalizer(now):
    return CanonicalNormalizer(clock=FixedClock(now))


@pytest.fixture
def cpi_row():
    return ScrapedCalendarRow(
        source="Forex Factory",
        url="https://www.forexfactory.com/calendar",
        currency_text="USD",
        impact_text="High Impact Expected",
        event_text="CPI m/m",
        date_text="Mar 14",
        time_text="8:30am",
        actual_text="3.1%",
        forecast_text="3.0%",
        previous_text="2.9%",
    )


# ============================================================
# CALENDAR ROW TESTS
# ============================================================

class TestCalendarRow:
    """Scraped calendar rows."""

    def test_cpi_beat_is_bearish_for_usd(self, normalizer, cpi_row):
        event = normalizer.normalize(cpi_row)

        assert event is not None
        assert event.currency == "USD"
        assert event.event_type == CPI_HEADLINE
        assert event.impact is Impact.HIGH
        assert event.sentiment is Sentiment.BEARISH
        assert event.actual_value == pytest.approx(3.1)
        assert event.expected_value == pytest.approx(3.0)
        assert event.previous_value == pytest.approx(2.9)
        assert event.confidence_score == 95.0
        assert event.source == "Forex Factory"
        assert event.event_date == datetime(2024, 3, 14, 8, 30, tzinfo=timezone.utc)
        assert "Actual: 3.1%" in event.description

    def test_normalization_is_idempotent(self, normalizer, cpi_row):
        assert normalizer.normalize(cpi_row) == normalizer.normalize(cpi_row)

    def test_unresolvable_currency_is_dropped(self, normalizer):
        row = ScrapedCalendarRow(source="Forex Factory", currency_text="XYZ", event_text="CPI m/m")
        assert normalizer.normalize(row) is None

    def test_missing_title_is_dropped(self, normalizer):
        row = ScrapedCalendarRow(source="Forex Factory", currency_text="USD", event_text="   ")
        assert normalizer.normalize(row) is None

    def test_country_name_resolves(self, normalizer):
        row = ScrapedCalendarRow(source="Investing.com", currency_text="Euro Zone", event_text="ECB Press Conference")
        event = normalizer.normalize(row)
        assert event.currency == "EUR"
        assert event.sentiment is Sentiment.NEUTRAL

    def test_normalize_batch_counts_drops(self, normalizer, cpi_row):
        bad = ScrapedCalendarRow(source="Forex Factory", currency_text="???", event_text="GDP")
        events, dropped = normalizer.normalize_batch([cpi_row, bad, cpi_row])
        assert len(events) == 2
        assert dropped == 1


# ============================================================
# DATE RESOLUTION TESTS
# ============================================================

class TestDateResolution:
    """resolve_event_date against a pinned clock."""

    def test_relative_day(self, normalizer):
        resolved = normalizer.resolve_event_date("Yesterday")
        assert resolved == datetime(2024, 3, 14, tzinfo=timezone.utc)

    def test_relative_day_with_time(self, normalizer):
        resolved = normalizer.resolve_event_date("Tomorrow", "2:00pm")
        assert resolved == datetime(2024, 3, 16, 14, 0, tzinfo=timezone.utc)

    def test_hours_ago(self, normalizer, now):
        assert normalizer.resolve_event_date("3 hours ago") == now - timedelta(hours=3)

    def test_non_time_cell_keeps_midnight(self, normalizer):
        resolved = normalizer.resolve_event_date("Mar 14", "Tentative")
        assert resolved == datetime(2024, 3, 14, tzinfo=timezone.utc)

    def test_iso_with_offset(self, normalizer):
        resolved = normalizer.resolve_event_date("2024-03-12T10:00:00-04:00")
        assert resolved == datetime(2024, 3, 12, 14, 0, tzinfo=timezone.utc)

    def test_empty_falls_back_to_now(self, normalizer, now):
        assert normalizer.resolve_event_date("", "") == now

    def test_unparseable_falls_back_to_now(self, normalizer, now):
        assert normalizer.resolve_event_date("xyzzy") == now


# ============================================================
# OTHER RECORD KINDS
# ============================================================

class TestRecordKinds:
    """Feed items, API rows, macro observations, news, simulated."""

    def test_feed_item(self, normalizer):
        item = FeedItem(
            source="Forex Factory Feed",
            country="EUR",
            title="German ZEW Economic Sentiment",
            date="2024-03-12T10:00:00-04:00",
            impact="Medium",
            forecast="19.5",
            previous="19.9",
        )
        event = normalizer.normalize(item)
        assert event.currency == "EUR"
        assert event.event_type == BUSINESS_CONFIDENCE
        assert event.impact is Impact.MEDIUM
        assert event.actual_value is None
        assert event.event_date == datetime(2024, 3, 12, 14, 0, tzinfo=timezone.utc)

    def test_api_row(self, normalizer):
        row = ApiRow(
            source="Trading Economics",
            country="United States",
            category="Inflation Rate",
            event="Inflation Rate YoY",
            date="2024-03-12T12:30:00",
            importance="3",
            actual="3.2",
            forecast="3.1",
        )
        event = normalizer.normalize(row)
        assert event.currency == "USD"
        assert event.event_type == CPI_HEADLINE
        assert event.impact is Impact.HIGH
        assert event.sentiment is Sentiment.BEARISH
        assert event.confidence_score == 95.0

    def test_macro_observation_uses_previous(self, normalizer):
        observation = MacroObservation(
            source="FRED",
            url="https://fred.stlouisfed.org/series/UNRATE",
            series_id="UNRATE",
            currency="USD",
            event_type=UNEMPLOYMENT_RATE,
            title="Unemployment Rate",
            date="2024-02-01",
            value=3.9,
            previous_value=3.7,
            impact="high",
        )
        event = normalizer.normalize(observation)
        assert event.sentiment is Sentiment.BEARISH
        assert event.expected_value is None
        assert event.confidence_score == 90.0

    def test_macro_observation_without_value_is_dropped(self, normalizer):
        observation = MacroObservation(source="FRED", series_id="GDP", currency="USD", title="GDP")
        assert normalizer.normalize(observation) is None

    def test_headline_tags_every_currency(self, normalizer, now):
        headline = ScrapedHeadline(
            source="Yahoo Finance",
            title="EUR/USD rises as ECB turns hawkish",
            time_text="2 hours ago",
        )
        event = normalizer.normalize(headline)
        assert event.event_type == NEWS
        assert event.currency == "EUR"
        assert event.currencies == ("EUR", "USD")
        assert event.sentiment is Sentiment.BULLISH
        assert event.impact is Impact.HIGH
        assert event.event_date == now - timedelta(hours=2)

    def test_headline_without_currency_is_dropped(self, normalizer):
        headline = ScrapedHeadline(source="MarketWatch", title="Stocks close higher on Friday")
        assert normalizer.normalize(headline) is None

    def test_news_article_explicit_currencies(self, normalizer):
        article = NewsArticle(
            source="NewsAPI",
            title="Central bank watch",
            published_at="2024-03-15T09:00:00Z",
            currencies=("JPY", "XYZ", "GBP"),
        )
        event = normalizer.normalize(article)
        assert event.currencies == ("JPY", "GBP")

    def test_scored_article_label_and_confidence_win(self, normalizer):
        article = ScoredNewsArticle(
            source="Alpha Vantage",
            title="USD rallies as yields rise",
            published_at="2024-03-15T09:00:00Z",
            currencies=("USD",),
            sentiment_label="Somewhat-Bearish",
            confidence=-35.0,
        )
        event = normalizer.normalize(article)
        assert event.event_type == NEWS
        assert event.sentiment is Sentiment.BEARISH
        assert event.confidence_score == 0.0

    def test_scored_article_without_scores_falls_back(self, normalizer):
        article = ScoredNewsArticle(
            source="Alpha Vantage",
            title="USD rallies as yields rise",
            published_at="2024-03-15T09:00:00Z",
        )
        event = normalizer.normalize(article)
        assert event.currency == "USD"
        assert event.sentiment is Sentiment.BULLISH
        assert event.confidence_score == score_confidence(event.impact, "Alpha Vantage", None, None)

    def test_simulated_record_keeps_marker(self, normalizer, now):
        record = SimulatedRecord(
            source="ignored",
            currency="CAD",
            event_type="GDP_QUARTERLY",
            title="GDP q/q",
            event_date=now - timedelta(days=2),
            impact=Impact.MEDIUM,
            sentiment=Sentiment.BULLISH,
            confidence=250.0,
            sentiment_score=75.0,
        )
        event = normalizer.normalize(record)
        assert event.source == SIMULATED_SOURCE
        assert event.is_simulated
        assert event.confidence_score == 100.0
        assert event.sentiment_score == 75.0


# ============================================================
# CANONICAL EVENT TESTS
# ============================================================

class TestCanonicalEvent:
    """Invariants enforced on construction."""

    def _event(self, **overrides):
        fields = dict(
            currency="USD",
            event_type="NFP",
            title="Non-Farm Payrolls",
            event_date=datetime(2024, 3, 8, 13, 30),
            impact=Impact.HIGH,
            sentiment=Sentiment.NEUTRAL,
            confidence_score=80.0,
            source="Forex Factory",
        )
        fields.update(overrides)
        return CanonicalEconomicEvent(**fields)

    def test_rejects_unsupported_currency(self):
        with pytest.raises(ValueError):
            self._event(currency="XYZ")

    def test_clamps_scores(self):
        event = self._event(confidence_score=-10.0, sentiment_score=140.0)
        assert event.confidence_score == 0.0
        assert event.sentiment_score == 100.0

    def test_nan_scores(self):
        event = self._event(confidence_score=float("nan"), sentiment_score=float("nan"))
        assert event.confidence_score == 0.0
        assert event.sentiment_score is None

    def test_naive_date_becomes_utc(self):
        assert self._event().event_date.tzinfo == timezone.utc

    def test_related_currencies_primary_first(self):
        event = self._event(related_currencies=("EUR", "USD", "EUR", "XYZ"))
        assert event.currencies == ("USD", "EUR")

    def test_dict_round_trip(self):
        event = self._event(actual_value=275_000.0, url="https://example.com")
        assert CanonicalEconomicEvent.from_dict(event.to_dict()) == event


# ============================================================
# CURRENCY / IMPACT LOOKUP TESTS
# ============================================================

class TestCurrencyLookup:
    """Single alias table."""

    @pytest.mark.parametrize("text,expected", [
        ("EUR", "EUR"),
        ("jpy", "JPY"),
        ("Euro Zone", "EUR"),
        ("Japanese Yen", "JPY"),
        ("Bank of Canada", "CAD"),
        ("EUR/USD", "EUR"),
        ("Mars", None),
        ("", None),
    ])
    def test_resolve(self, text, expected):
        assert resolve_currency(text) == expected

    def test_normalize_falls_back_to_usd(self):
        assert normalize_currency("Mars") == "USD"

    def test_extract_in_mention_order(self):
        assert extract_currencies("Sterling slides while the Aussie gains vs JPY") == ["GBP", "AUD", "JPY"]

    def test_extract_ignores_ambiguous_words(self):
        assert extract_currencies("Tell us about the dollar") == []


class TestImpactLookup:
    """Ordered impact rules."""

    @pytest.mark.parametrize("descriptor,expected", [
        ("High Impact Expected", Impact.HIGH),
        ("red", Impact.HIGH),
        ("3", Impact.HIGH),
        ("Medium Impact Expected", Impact.MEDIUM),
        ("ora", Impact.MEDIUM),
        ("Low Impact Expected", Impact.LOW),
        ("", Impact.LOW),
        (None, Impact.LOW),
    ])
    def test_normalize(self, descriptor, expected):
        assert normalize_impact(descriptor) is expected

    def test_headline_impact(self):
        assert impact_from_headline("Fed holds rates steady") is Impact.HIGH
        assert impact_from_headline("Retail sales beat estimates") is Impact.MEDIUM
        assert impact_from_headline("Markets quiet ahead of weekend") is Impact.LOW
