"""
Scoring Engine Package.

This package turns canonical economic events into currency signals.

Modules:
- tiers: Indicator tier mapping and weights
- strength_score: Tiered, time-decayed currency strength
- power_score: Ratio-based currency power ranking
- history / repository: Strength history (in-memory, SQLAlchemy)
"""

from .history import InMemoryStrengthHistory, StrengthHistory
from .power_score import CurrencyPowerScore, PowerRankingEngine, PowerStrength
from .repository import SqlStrengthHistory
from .rounding import round_half_up
from .strength_score import (
    CurrencyStrengthResult,
    TieredStrengthAggregator,
    Trend,
    time_decay,
)
from .tiers import TIER_MAPPING, TIER_WEIGHTS, IndicatorTier, get_tier


__all__ = [
    "CurrencyPowerScore",
    "CurrencyStrengthResult",
    "InMemoryStrengthHistory",
    "IndicatorTier",
    "PowerRankingEngine",
    "PowerStrength",
    "SqlStrengthHistory",
    "StrengthHistory",
    "TIER_MAPPING",
    "TIER_WEIGHTS",
    "TieredStrengthAggregator",
    "Trend",
    "get_tier",
    "round_half_up",
    "time_decay",
]
