"""
Tests for the Tiered Strength Aggregator.

============================================================
PURPOSE
============================================================
1. Tier mapping and weights
2. Tier scores: indicator weight, impact multiplier, time decay
3. Empty tiers contribute zero (no redistribution)
4. Labels, confidence level and trend against history
5. Neutral default on empty input or failure

============================================================
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from core.clock import FixedClock
from normalization.classifier import (
    CPI_HEADLINE,
    GDP_QUARTERLY,
    INTEREST_RATE_DECISION,
    JOBLESS_CLAIMS,
    NEWS,
    PPI,
    RETAIL_SALES,
    TRADE_BALANCE,
)
from normalization.models import CanonicalEconomicEvent, Impact, Sentiment
from scoring_engine.history import InMemoryStrengthHistory
from scoring_engine.rounding import round_half_up, round_half_up_int
from scoring_engine.strength_score import (
    TieredStrengthAggregator,
    Trend,
    determine_trend,
    time_decay,
)
from scoring_engine.tiers import (
    INDICATOR_WEIGHTS,
    TIER_WEIGHTS,
    IndicatorTier,
    get_tier,
    indicator_weight,
)


# ============================================================
# FIXTURES
# ============================================================

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_event(
    event_type=CPI_HEADLINE,
    currency="USD",
    impact=Impact.LOW,
    score=80.0,
    days_ago=1,
    actual=None,
    expected=None,
):
    return CanonicalEconomicEvent(
        currency=currency,
        event_type=event_type,
        title=f"{event_type} {days_ago}",
        event_date=NOW - timedelta(days=days_ago),
        impact=impact,
        sentiment=Sentiment.NEUTRAL,
        confidence_score=70.0,
        source="Forex Factory",
        actual_value=actual,
        expected_value=expected,
        sentiment_score=score,
    )


@pytest.fixture
def history():
    return InMemoryStrengthHistory()


@pytest.fixture
def aggregator(history):
    return TieredStrengthAggregator(history=history, clock=FixedClock(NOW))


# ============================================================
# TIER TESTS
# ============================================================

class TestTiers:

    def test_weights_sum_to_one(self):
        assert sum(TIER_WEIGHTS.values()) == pytest.approx(1.0)

    @pytest.mark.parametrize("event_type,tier", [
        (INTEREST_RATE_DECISION, IndicatorTier.MONETARY_POLICY),
        (CPI_HEADLINE, IndicatorTier.INFLATION),
        (JOBLESS_CLAIMS, IndicatorTier.GROWTH),
        (RETAIL_SALES, IndicatorTier.SENTIMENT),
        (TRADE_BALANCE, IndicatorTier.EXTERNAL),
        (NEWS, None),
        ("", None),
    ])
    def test_mapping(self, event_type, tier):
        assert get_tier(event_type) is tier

    def test_indicator_weights(self):
        assert indicator_weight(PPI) == INDICATOR_WEIGHTS[PPI]
        assert indicator_weight(RETAIL_SALES) == 1.0
        assert indicator_weight(PPI, {PPI: 0.2}) == 0.2

    def test_tier_keys(self):
        assert IndicatorTier.MONETARY_POLICY.key == "tier_1_score"
        assert IndicatorTier.EXTERNAL.key == "tier_5_score"


class TestHelpers:

    @pytest.mark.parametrize("age,factor", [
        (-3, 1.0),
        (0, 1.0),
        (7, 1.0),
        (7.5, 0.8),
        (30, 0.8),
        (60, 0.6),
        (90, 0.6),
        (200, 0.4),
    ])
    def test_time_decay(self, age, factor):
        assert time_decay(age) == factor

    def test_time_decay_never_increases_with_age(self):
        ages = [0, 3, 7, 8, 20, 30, 31, 89, 90, 91, 365]
        factors = [time_decay(a) for a in ages]
        assert factors == sorted(factors, reverse=True)

    def test_trend(self):
        assert determine_trend(60.0, None) is Trend.STABLE
        assert determine_trend(60.0, 54.0) is Trend.STRENGTHENING
        assert determine_trend(60.0, 66.0) is Trend.WEAKENING
        assert determine_trend(60.0, 55.0) is Trend.STABLE

    def test_round_half_up(self):
        assert round_half_up_int(2.5) == 3
        assert round_half_up_int(56.5) == 57
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(-2.5) == -3.0


# ============================================================
# AGGREGATION TESTS
# ============================================================

class TestAggregation:

    def test_single_event_only_fills_its_tier(self, aggregator):
        result = aggregator.calculate("USD", [make_event(impact=Impact.HIGH)])

        assert result.tier_breakdown == {
            "tier_1_score": 0.0,
            "tier_2_score": 240.0,
            "tier_3_score": 0.0,
            "tier_4_score": 0.0,
            "tier_5_score": 0.0,
        }
        assert result.strength_score == pytest.approx(60.0)
        assert result.sentiment is Sentiment.NEUTRAL
        assert result.confidence_level == 70
        assert result.indicators_count == 1
        assert result.last_update == NOW

    def test_indicator_weighted_average(self, aggregator):
        events = [make_event(CPI_HEADLINE, score=80.0), make_event(PPI, score=40.0)]
        result = aggregator.calculate("USD", events)

        assert result.tier_breakdown["tier_2_score"] == pytest.approx(108.0 / 1.7)
        assert result.strength_score == pytest.approx(108.0 / 1.7 * 0.25)

    def test_time_decay_applied(self, aggregator):
        result = aggregator.calculate("USD", [make_event(days_ago=45)])
        assert result.tier_breakdown["tier_2_score"] == pytest.approx(48.0)

    def test_future_event_counts_as_fresh(self, aggregator):
        result = aggregator.calculate("USD", [make_event(days_ago=-3)])
        assert result.tier_breakdown["tier_2_score"] == pytest.approx(80.0)

    def test_bullish_and_bearish_labels(self, aggregator):
        bullish = aggregator.calculate("USD", [make_event(INTEREST_RATE_DECISION, impact=Impact.HIGH, score=70.0)])
        bearish = aggregator.calculate("EUR", [make_event(INTEREST_RATE_DECISION, "EUR", Impact.HIGH, 20.0)])

        assert bullish.strength_score == pytest.approx(73.5)
        assert bullish.sentiment is Sentiment.BULLISH
        assert bearish.strength_score == pytest.approx(21.0)
        assert bearish.sentiment is Sentiment.BEARISH

    def test_strength_clamped(self, aggregator):
        events = [
            make_event(event_type, impact=Impact.HIGH, score=100.0)
            for event_type in (INTEREST_RATE_DECISION, CPI_HEADLINE, GDP_QUARTERLY, RETAIL_SALES, TRADE_BALANCE)
        ]
        assert aggregator.calculate("USD", events).strength_score == 100.0

    def test_score_derived_from_deviation(self, aggregator):
        event = make_event(GDP_QUARTERLY, score=None, actual=2.5, expected=2.0)
        result = aggregator.calculate("USD", [event])

        assert result.tier_breakdown["tier_3_score"] == pytest.approx(85.0)
        assert result.confidence_level == 90

    def test_confidence_is_mean_of_event_quality(self, aggregator):
        events = [
            make_event(GDP_QUARTERLY, score=None, actual=2.5, expected=2.0),
            make_event(CPI_HEADLINE, score=60.0),
            make_event(RETAIL_SALES, score=None),
        ]
        # (90 + 70 + 40) / 3 = 66.67
        assert aggregator.calculate("USD", events).confidence_level == 67

    def test_ignores_other_currencies_old_and_unmapped(self, aggregator, history):
        events = [
            make_event(currency="JPY"),
            make_event(days_ago=91),
            make_event(NEWS),
        ]
        result = aggregator.calculate("USD", events)

        assert result.strength_score == 50.0
        assert result.confidence_level == 0
        assert result.indicators_count == 0
        assert history.get_history("USD") == []

    def test_no_events_is_neutral_default(self, aggregator, history):
        aggregator.calculate("USD", [make_event(impact=Impact.HIGH, score=90.0)])
        result = aggregator.calculate("USD", [])

        assert result.strength_score == 50.0
        assert result.sentiment is Sentiment.NEUTRAL
        assert result.trend is Trend.STABLE
        assert result.confidence_level == 0
        assert result.indicators_count == 0
        assert set(result.tier_breakdown.values()) == {0.0}
        assert result.last_update == NOW
        assert len(history.get_history("USD")) == 1


# ============================================================
# HISTORY / FAILURE TESTS
# ============================================================

class TestHistoryAndFailures:

    def test_trend_against_previous_result(self, aggregator, history):
        first = aggregator.calculate("USD", [make_event(impact=Impact.HIGH, score=80.0)])
        second = aggregator.calculate("USD", [make_event(impact=Impact.HIGH, score=40.0)])

        assert first.trend is Trend.STABLE
        assert second.trend is Trend.WEAKENING
        assert [r.strength_score for r in history.get_history("USD")] == [
            pytest.approx(30.0),
            pytest.approx(60.0),
        ]

    def test_history_failures_do_not_propagate(self):
        history = MagicMock()
        history.get_previous_strength.side_effect = RuntimeError("db down")
        history.record.side_effect = RuntimeError("db down")
        aggregator = TieredStrengthAggregator(history=history, clock=FixedClock(NOW))

        result = aggregator.calculate("USD", [make_event(impact=Impact.HIGH)])

        assert result.strength_score == pytest.approx(60.0)
        assert result.trend is Trend.STABLE

    def test_internal_error_yields_default(self, aggregator):
        result = aggregator.calculate("USD", None)
        assert result.strength_score == 50.0
        assert result.sentiment is Sentiment.NEUTRAL

    def test_calculate_all_order(self, aggregator):
        events = [make_event(currency="GBP"), make_event(currency="USD"), make_event(currency="GBP")]

        assert [r.currency for r in aggregator.calculate_all(events)] == ["GBP", "USD"]
        assert [r.currency for r in aggregator.calculate_all(events, ["USD", "CAD"])] == ["USD", "CAD"]

    def test_to_dict(self, aggregator):
        data = aggregator.calculate("USD", [make_event(impact=Impact.HIGH)]).to_dict()

        assert data["currency"] == "USD"
        assert data["sentiment"] == "NEUTRAL"
        assert data["trend"] == "STABLE"
        assert data["tier_breakdown"]["tier_2_score"] == 240.0
        assert data["last_update"] == NOW.isoformat()
