"""
Scoring Engine - Indicator Tiers.

============================================================
TIER MAPPING
============================================================
Every scorable event type belongs to exactly one of five tiers.
Tier weights sum to 1.0:

1. MONETARY_POLICY  35%  rate decisions, central bank meetings
2. INFLATION        25%  CPI, PPI, PCE, wages
3. GROWTH           20%  GDP, labour market, PMIs, production
4. SENTIMENT        15%  retail sales, confidence, income/spending
5. EXTERNAL          5%  trade, current account, commodities

Event types outside the mapping (news, OTHER) are not scored for
strength but remain visible to the power ranking.
============================================================
"""

from enum import Enum
from typing import Mapping, Optional

from normalization.classifier import (
    BOC_MEETING,
    BOE_MEETING,
    BOJ_MEETING,
    BUSINESS_CONFIDENCE,
    CAPACITY_UTILIZATION,
    CONSUMER_CONFIDENCE,
    CPI_CORE,
    CPI_HEADLINE,
    CURRENT_ACCOUNT,
    ECB_MEETING,
    FOMC_MEETING,
    FORWARD_GUIDANCE,
    GDP_ANNUAL,
    GDP_QUARTERLY,
    GOLD_PRICES,
    INDUSTRIAL_PRODUCTION,
    INTEREST_RATE_DECISION,
    JOBLESS_CLAIMS,
    NFP,
    OIL_PRICES,
    PCE,
    PERSONAL_INCOME,
    PERSONAL_SPENDING,
    PMI_MANUFACTURING,
    PMI_SERVICES,
    PPI,
    QUANTITATIVE_EASING,
    RETAIL_SALES,
    TRADE_BALANCE,
    UNEMPLOYMENT_RATE,
    WAGE_GROWTH,
)


class IndicatorTier(Enum):
    MONETARY_POLICY = 1
    INFLATION = 2
    GROWTH = 3
    SENTIMENT = 4
    EXTERNAL = 5

    @property
    def key(self) -> str:
        """Breakdown key, e.g. "tier_1_score"."""
        return f"tier_{self.value}_score"


TIER_WEIGHTS: dict[IndicatorTier, float] = {
    IndicatorTier.MONETARY_POLICY: 0.35,
    IndicatorTier.INFLATION: 0.25,
    IndicatorTier.GROWTH: 0.20,
    IndicatorTier.SENTIMENT: 0.15,
    IndicatorTier.EXTERNAL: 0.05,
}

TIER_MAPPING: dict[str, IndicatorTier] = {
    # Monetary policy
    INTEREST_RATE_DECISION: IndicatorTier.MONETARY_POLICY,
    FOMC_MEETING: IndicatorTier.MONETARY_POLICY,
    ECB_MEETING: IndicatorTier.MONETARY_POLICY,
    BOJ_MEETING: IndicatorTier.MONETARY_POLICY,
    BOE_MEETING: IndicatorTier.MONETARY_POLICY,
    BOC_MEETING: IndicatorTier.MONETARY_POLICY,
    FORWARD_GUIDANCE: IndicatorTier.MONETARY_POLICY,
    QUANTITATIVE_EASING: IndicatorTier.MONETARY_POLICY,

    # Inflation and price stability
    CPI_HEADLINE: IndicatorTier.INFLATION,
    CPI_CORE: IndicatorTier.INFLATION,
    PPI: IndicatorTier.INFLATION,
    PCE: IndicatorTier.INFLATION,
    WAGE_GROWTH: IndicatorTier.INFLATION,

    # Growth
    GDP_QUARTERLY: IndicatorTier.GROWTH,
    GDP_ANNUAL: IndicatorTier.GROWTH,
    NFP: IndicatorTier.GROWTH,
    UNEMPLOYMENT_RATE: IndicatorTier.GROWTH,
    JOBLESS_CLAIMS: IndicatorTier.GROWTH,
    PMI_MANUFACTURING: IndicatorTier.GROWTH,
    PMI_SERVICES: IndicatorTier.GROWTH,
    INDUSTRIAL_PRODUCTION: IndicatorTier.GROWTH,
    CAPACITY_UTILIZATION: IndicatorTier.GROWTH,

    # Consumer and business sentiment
    RETAIL_SALES: IndicatorTier.SENTIMENT,
    CONSUMER_CONFIDENCE: IndicatorTier.SENTIMENT,
    PERSONAL_INCOME: IndicatorTier.SENTIMENT,
    PERSONAL_SPENDING: IndicatorTier.SENTIMENT,
    BUSINESS_CONFIDENCE: IndicatorTier.SENTIMENT,

    # External factors
    TRADE_BALANCE: IndicatorTier.EXTERNAL,
    CURRENT_ACCOUNT: IndicatorTier.EXTERNAL,
    OIL_PRICES: IndicatorTier.EXTERNAL,
    GOLD_PRICES: IndicatorTier.EXTERNAL,
}

DEFAULT_INDICATOR_WEIGHT = 1.0

# Relative weight of an indicator inside its tier.
INDICATOR_WEIGHTS: dict[str, float] = {
    INTEREST_RATE_DECISION: 1.0,
    FORWARD_GUIDANCE: 0.8,
    QUANTITATIVE_EASING: 0.8,
    CPI_HEADLINE: 1.0,
    CPI_CORE: 1.0,
    PPI: 0.7,
    PCE: 0.9,
    WAGE_GROWTH: 0.7,
    GDP_QUARTERLY: 1.0,
    GDP_ANNUAL: 0.8,
    NFP: 1.0,
    UNEMPLOYMENT_RATE: 0.9,
    JOBLESS_CLAIMS: 0.6,
    PMI_MANUFACTURING: 0.8,
    PMI_SERVICES: 0.8,
    INDUSTRIAL_PRODUCTION: 0.6,
    CAPACITY_UTILIZATION: 0.5,
}


def get_tier(event_type: Optional[str]) -> Optional[IndicatorTier]:
    """Tier for an event type, or None when it is not scored."""
    if not event_type:
        return None
    return TIER_MAPPING.get(event_type)


def indicator_weight(
    event_type: str,
    weights: Optional[Mapping[str, float]] = None,
) -> float:
    table = INDICATOR_WEIGHTS if weights is None else weights
    return table.get(event_type, DEFAULT_INDICATOR_WEIGHT)
