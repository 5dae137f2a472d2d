"""
Scoring Engine - Tiered Currency Strength.

============================================================
RESPONSIBILITY
============================================================
Turns a currency's recent canonical events into one 0-100 strength
score with an explainable five-tier breakdown.

============================================================
AGGREGATION
============================================================
1. Keep the currency's events no older than 90 days
   (future-dated calendar events count as age 0)
2. Map each event to its tier; unmapped types are excluded
3. Sentiment score = supplied score, else derived from deviation
4. Tier score = sum(score * indicator weight * impact multiplier * decay)
                / sum(indicator weight)
   A tier without events scores 0 and is NOT redistributed
5. Strength = sum(tier score * tier weight), clamped to 0-100
6. Label: >= 65 BULLISH, <= 35 BEARISH, else NEUTRAL
7. Trend vs the previously stored strength (+/- 5 points)

Any internal failure is logged and yields the neutral default.
============================================================
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

from core.clock import ClockProtocol, get_clock
from normalization.classifier import deviation_sentiment_score, sentiment_from_score
from normalization.models import CanonicalEconomicEvent, Impact, Sentiment

from .history import InMemoryStrengthHistory, StrengthHistory
from .rounding import round_half_up_int
from .tiers import TIER_WEIGHTS, IndicatorTier, get_tier, indicator_weight


logger = logging.getLogger(__name__)


WINDOW_DAYS = 90

IMPACT_MULTIPLIERS: dict[Impact, float] = {
    Impact.HIGH: 3.0,
    Impact.MEDIUM: 1.5,
    Impact.LOW: 1.0,
}

# (max age in days inclusive, decay factor)
TIME_DECAY_STEPS: list[tuple[float, float]] = [
    (7, 1.0),
    (30, 0.8),
    (90, 0.6),
]
HISTORICAL_DECAY = 0.4

TREND_THRESHOLD = 5.0

# Per-event data quality used for the confidence level
CONFIDENCE_ACTUAL_AND_EXPECTED = 90
CONFIDENCE_SUPPLIED_SCORE = 70
CONFIDENCE_LIMITED_DATA = 40

DEFAULT_STRENGTH = 50.0


class Trend(Enum):
    STRENGTHENING = "STRENGTHENING"
    WEAKENING = "WEAKENING"
    STABLE = "STABLE"


def empty_breakdown() -> dict[str, float]:
    return {tier.key: 0.0 for tier in IndicatorTier}


def time_decay(age_days: float) -> float:
    """Stepwise decay: <=7d 1.0, <=30d 0.8, <=90d 0.6, older 0.4."""
    age = max(0.0, age_days)
    for max_age, factor in TIME_DECAY_STEPS:
        if age <= max_age:
            return factor
    return HISTORICAL_DECAY


def determine_trend(current: float, previous: Optional[float]) -> Trend:
    if previous is None:
        return Trend.STABLE
    difference = current - previous
    if difference > TREND_THRESHOLD:
        return Trend.STRENGTHENING
    if difference < -TREND_THRESHOLD:
        return Trend.WEAKENING
    return Trend.STABLE


@dataclass
class CurrencyStrengthResult:
    """Strength of one currency from one aggregation run."""
    currency: str
    strength_score: float
    sentiment: Sentiment
    confidence_level: int
    trend: Trend
    last_update: datetime
    tier_breakdown: dict[str, float] = field(default_factory=empty_breakdown)
    indicators_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "strength_score": round(self.strength_score, 2),
            "sentiment": self.sentiment.value,
            "confidence_level": self.confidence_level,
            "trend": self.trend.value,
            "tier_breakdown": {k: round(v, 2) for k, v in self.tier_breakdown.items()},
            "indicators_count": self.indicators_count,
            "last_update": self.last_update.isoformat(),
        }


class TieredStrengthAggregator:
    """
    Tiered, time-decayed currency strength.

    Usage:
        aggregator = TieredStrengthAggregator(history=InMemoryStrengthHistory())
        result = aggregator.calculate("USD", batch.events)
    """

    def __init__(
        self,
        history: Optional[StrengthHistory] = None,
        clock: Optional[ClockProtocol] = None,
        indicator_weights: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.history = history if history is not None else InMemoryStrengthHistory()
        self._clock = clock or get_clock()
        self._indicator_weights = indicator_weights

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    def calculate(
        self,
        currency: str,
        events: Iterable[CanonicalEconomicEvent],
    ) -> CurrencyStrengthResult:
        """Strength for one currency. Never raises."""
        try:
            return self._calculate(currency, events)
        except Exception as e:
            logger.error(f"Error calculating currency strength for {currency}: {e}")
            return self.default_result(currency)

    def calculate_all(
        self,
        events: Sequence[CanonicalEconomicEvent],
        currencies: Optional[Sequence[str]] = None,
    ) -> list[CurrencyStrengthResult]:
        """
        Strength for every currency, in the given order.

        Without an explicit list, currencies are taken from the events'
        primary currency in order of first appearance.
        """
        if currencies is None:
            currencies = list(dict.fromkeys(event.currency for event in events))
        return [self.calculate(currency, events) for currency in currencies]

    def default_result(self, currency: str) -> CurrencyStrengthResult:
        """Neutral result used when nothing can be scored."""
        return CurrencyStrengthResult(
            currency=currency,
            strength_score=DEFAULT_STRENGTH,
            sentiment=Sentiment.NEUTRAL,
            confidence_level=0,
            trend=Trend.STABLE,
            last_update=self._clock.now(),
            tier_breakdown=empty_breakdown(),
            indicators_count=0,
        )

    # ─────────────────────────────────────────────────────────────
    # Internal methods
    # ─────────────────────────────────────────────────────────────

    def _calculate(
        self,
        currency: str,
        events: Iterable[CanonicalEconomicEvent],
    ) -> CurrencyStrengthResult:
        eligible = self._eligible_events(currency, events)
        if not eligible:
            logger.debug(f"No scorable events for {currency}")
            return self.default_result(currency)

        breakdown = self._tier_scores(eligible)
        strength = max(0.0, min(100.0, sum(
            breakdown[tier.key] * weight for tier, weight in TIER_WEIGHTS.items()
        )))

        result = CurrencyStrengthResult(
            currency=currency,
            strength_score=strength,
            sentiment=sentiment_from_score(strength),
            confidence_level=self._confidence_level(eligible),
            trend=determine_trend(strength, self._previous_strength(currency)),
            last_update=self._clock.now(),
            tier_breakdown=breakdown,
            indicators_count=len(eligible),
        )

        self._record(result)
        return result

    def _eligible_events(
        self,
        currency: str,
        events: Iterable[CanonicalEconomicEvent],
    ) -> list[tuple[CanonicalEconomicEvent, IndicatorTier]]:
        eligible = []
        for event in events:
            if event.currency != currency:
                continue
            if self._clock.age_in_days(event.event_date) > WINDOW_DAYS:
                continue
            tier = get_tier(event.event_type)
            if tier is None:
                continue
            eligible.append((event, tier))
        return eligible

    def _tier_scores(
        self,
        eligible: list[tuple[CanonicalEconomicEvent, IndicatorTier]],
    ) -> dict[str, float]:
        weighted: dict[IndicatorTier, float] = {tier: 0.0 for tier in IndicatorTier}
        weights: dict[IndicatorTier, float] = {tier: 0.0 for tier in IndicatorTier}

        for event, tier in eligible:
            weight = indicator_weight(event.event_type, self._indicator_weights)
            decay = time_decay(self._clock.age_in_days(event.event_date))
            weighted[tier] += (
                self._sentiment_score(event) * weight * IMPACT_MULTIPLIERS[event.impact] * decay
            )
            weights[tier] += weight

        breakdown = empty_breakdown()
        for tier in IndicatorTier:
            if weights[tier] > 0:
                breakdown[tier.key] = weighted[tier] / weights[tier]
        return breakdown

    @staticmethod
    def _sentiment_score(event: CanonicalEconomicEvent) -> float:
        if event.sentiment_score is not None:
            return event.sentiment_score
        return deviation_sentiment_score(
            event.event_type,
            event.actual_value,
            event.expected_value,
            event.previous_value,
        )

    @staticmethod
    def _confidence_level(
        eligible: list[tuple[CanonicalEconomicEvent, IndicatorTier]],
    ) -> int:
        if not eligible:
            return 0
        total = 0
        for event, _ in eligible:
            if event.has_actual_and_expected:
                total += CONFIDENCE_ACTUAL_AND_EXPECTED
            elif event.sentiment_score is not None:
                total += CONFIDENCE_SUPPLIED_SCORE
            else:
                total += CONFIDENCE_LIMITED_DATA
        return round_half_up_int(total / len(eligible))

    def _previous_strength(self, currency: str) -> Optional[float]:
        try:
            return self.history.get_previous_strength(currency)
        except Exception as e:
            logger.error(f"Error determining trend for {currency}: {e}")
            return None

    def _record(self, result: CurrencyStrengthResult) -> None:
        try:
            self.history.record(result)
        except Exception as e:
            logger.error(f"Error storing currency strength for {result.currency}: {e}")

