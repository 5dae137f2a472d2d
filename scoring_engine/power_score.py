"""
Scoring Engine - Currency Power Ranking.

============================================================
RESPONSIBILITY
============================================================
Ranks currencies purely from event counts and ratios: no tiers,
no time decay. A cheap, source-agnostic view next to strength.

============================================================
SCORING
============================================================
Per currency (an event counts for every currency it is tagged with):
- Sentiment (0-100): 50 +/- 50 * |bullish - bearish ratio|, pulled
  halfway back to 50 when more than half the events are neutral
- Impact (0-100): 100 * high ratio + 50 * medium ratio
- Confidence (0-100): mean event confidence
- Total = 0.40 * sentiment + 0.35 * impact + 0.25 * confidence

All published scores are rounded half-up to integers.
============================================================
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

from core.clock import ClockProtocol, get_clock
from normalization.models import CanonicalEconomicEvent, Impact, Sentiment

from .rounding import round_half_up, round_half_up_int


logger = logging.getLogger(__name__)


SENTIMENT_WEIGHT = 0.40
IMPACT_WEIGHT = 0.35
CONFIDENCE_WEIGHT = 0.25

NEUTRAL_DAMPING_RATIO = 0.5
TREND_MIN_RATIO = 0.4

STRONG_THRESHOLD = 75
MODERATE_THRESHOLD = 50

NEUTRAL_SCORE = 50
TOP_PERFORMERS = 3


class PowerStrength(Enum):
    STRONG = "STRONG"
    MODERATE = "MODERATE"
    WEAK = "WEAK"


@dataclass
class CurrencyPowerScore:
    """Power score of one currency; `rank` is 1-based after ranking."""
    currency: str
    total_score: int = NEUTRAL_SCORE
    sentiment_score: int = NEUTRAL_SCORE
    impact_score: int = NEUTRAL_SCORE
    confidence_score: int = 0
    news_count: int = 0
    bullish_count: int = 0
    bearish_count: int = 0
    neutral_count: int = 0
    high_impact_count: int = 0
    medium_impact_count: int = 0
    low_impact_count: int = 0
    average_confidence: float = 0.0
    strength: PowerStrength = PowerStrength.MODERATE
    trend: Sentiment = Sentiment.NEUTRAL
    rank: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "rank": self.rank,
            "total_score": self.total_score,
            "sentiment_score": self.sentiment_score,
            "impact_score": self.impact_score,
            "confidence_score": self.confidence_score,
            "news_count": self.news_count,
            "bullish_count": self.bullish_count,
            "bearish_count": self.bearish_count,
            "neutral_count": self.neutral_count,
            "high_impact_count": self.high_impact_count,
            "medium_impact_count": self.medium_impact_count,
            "low_impact_count": self.low_impact_count,
            "average_confidence": round(self.average_confidence, 2),
            "strength": self.strength.value,
            "trend": self.trend.value,
        }


@dataclass
class _CurrencyTally:
    currency: str
    count: int = 0
    bullish: int = 0
    bearish: int = 0
    neutral: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    confidence_total: float = 0.0

    def add(self, event: CanonicalEconomicEvent) -> None:
        self.count += 1
        if event.sentiment is Sentiment.BULLISH:
            self.bullish += 1
        elif event.sentiment is Sentiment.BEARISH:
            self.bearish += 1
        else:
            self.neutral += 1

        if event.impact is Impact.HIGH:
            self.high += 1
        elif event.impact is Impact.MEDIUM:
            self.medium += 1
        else:
            self.low += 1

        self.confidence_total += event.confidence_score or 0.0


def sentiment_score(bullish: int, bearish: int, neutral: int) -> int:
    total = bullish + bearish + neutral
    if total == 0:
        return NEUTRAL_SCORE

    bullish_ratio = bullish / total
    bearish_ratio = bearish / total
    score = float(NEUTRAL_SCORE)
    if bullish_ratio > bearish_ratio:
        score = NEUTRAL_SCORE + (bullish_ratio - bearish_ratio) * 50
    elif bearish_ratio > bullish_ratio:
        score = NEUTRAL_SCORE - (bearish_ratio - bullish_ratio) * 50

    if neutral / total > NEUTRAL_DAMPING_RATIO:
        score = NEUTRAL_SCORE + (score - NEUTRAL_SCORE) * 0.5

    return max(0, min(100, round_half_up_int(score)))


def impact_score(high: int, medium: int, low: int) -> int:
    total = high + medium + low
    if total == 0:
        return NEUTRAL_SCORE
    return round_half_up_int(high / total * 100 + medium / total * 50)


def power_strength(total_score: float) -> PowerStrength:
    if total_score >= STRONG_THRESHOLD:
        return PowerStrength.STRONG
    if total_score >= MODERATE_THRESHOLD:
        return PowerStrength.MODERATE
    return PowerStrength.WEAK


def power_trend(bullish: int, bearish: int, total: int) -> Sentiment:
    if total == 0:
        return Sentiment.NEUTRAL
    bullish_ratio = bullish / total
    bearish_ratio = bearish / total
    if bullish_ratio > bearish_ratio and bullish_ratio > TREND_MIN_RATIO:
        return Sentiment.BULLISH
    if bearish_ratio > bullish_ratio and bearish_ratio > TREND_MIN_RATIO:
        return Sentiment.BEARISH
    return Sentiment.NEUTRAL


class PowerRankingEngine:
    """
    Ratio-based currency power ranking.

    Usage:
        engine = PowerRankingEngine(universe=["USD", "EUR", "JPY"])
        ranking = engine.rank(batch.events)
        print(engine.generate_report(ranking))
    """

    def __init__(
        self,
        universe: Optional[Sequence[str]] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self.universe = list(universe or [])
        self._clock = clock or get_clock()

    def rank(self, events: Iterable[CanonicalEconomicEvent]) -> list[CurrencyPowerScore]:
        """
        Score and rank every currency seen in the events.

        Grouping order is the order of first appearance, then universe
        currencies without events (neutral default). Ranking is a stable
        sort by descending total, so ties keep grouping order.
        """
        tallies: dict[str, _CurrencyTally] = {}
        for event in events:
            for currency in event.currencies:
                tally = tallies.get(currency)
                if tally is None:
                    tally = tallies[currency] = _CurrencyTally(currency)
                tally.add(event)

        scores = [self._score(tally) for tally in tallies.values()]
        scores.extend(
            CurrencyPowerScore(currency=currency)
            for currency in dict.fromkeys(self.universe)
            if currency not in tallies
        )

        scores.sort(key=lambda s: s.total_score, reverse=True)
        for index, score in enumerate(scores, start=1):
            score.rank = index

        logger.info(f"Currency power calculated for {len(scores)} currencies")
        return scores

    def generate_report(self, scores: Sequence[CurrencyPowerScore]) -> str:
        """Plain-text report: top performers then a per-currency breakdown."""
        lines = [
            "CURRENCY POWER ANALYSIS REPORT",
            "",
            f"Analysis Date: {self._clock.now().isoformat()}",
            f"Total Currencies Analyzed: {len(scores)}",
            "",
            "TOP PERFORMERS",
        ]
        for score in scores[:TOP_PERFORMERS]:
            lines.extend([
                f"{score.rank}. {score.currency} - Score: {score.total_score}/100 ({score.strength.value})",
                f"   Trend: {score.trend.value} | News: {score.news_count} | "
                f"Sentiment: {score.sentiment_score}/100",
                f"   Impact: {score.impact_score}/100 | Confidence: {score.confidence_score}/100",
                "",
            ])

        lines.append("DETAILED BREAKDOWN")
        for score in scores:
            lines.extend([
                f"{score.currency} (Rank #{score.rank})",
                f"  Total Score: {score.total_score}/100 ({score.strength.value})",
                f"  Trend: {score.trend.value}",
                f"  News Count: {score.news_count}",
                f"  Sentiment: {score.bullish_count}B / {score.bearish_count}E / {score.neutral_count}N",
                f"  Impact: {score.high_impact_count}H / {score.medium_impact_count}M / {score.low_impact_count}L",
                f"  Confidence: {score.confidence_score}/100",
                "",
            ])
        return "\n".join(lines)

    @staticmethod
    def _score(tally: _CurrencyTally) -> CurrencyPowerScore:
        average_confidence = tally.confidence_total / tally.count if tally.count else 0.0
        sentiment = sentiment_score(tally.bullish, tally.bearish, tally.neutral)
        impact = impact_score(tally.high, tally.medium, tally.low)
        confidence = round_half_up_int(average_confidence)
        total = round_half_up_int(
            sentiment * SENTIMENT_WEIGHT + impact * IMPACT_WEIGHT + confidence * CONFIDENCE_WEIGHT
        )

        return CurrencyPowerScore(
            currency=tally.currency,
            total_score=total,
            sentiment_score=sentiment,
            impact_score=impact,
            confidence_score=confidence,
            news_count=tally.count,
            bullish_count=tally.bullish,
            bearish_count=tally.bearish,
            neutral_count=tally.neutral,
            high_impact_count=tally.high,
            medium_impact_count=tally.medium,
            low_impact_count=tally.low,
            average_confidence=round_half_up(average_confidence, 2),
            strength=power_strength(total),
            trend=power_trend(tally.bullish, tally.bearish, tally.count),
        )
