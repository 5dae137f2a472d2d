"""
Sentiment / Impact Classifier.

============================================================
RESPONSIBILITY
============================================================
Derives what a source did not supply:

- Event type from the event title (ordered keyword rules)
- Sentiment from actual vs forecast (or previous) deviation
- A 0-100 sentiment score from the same deviation
- Sentiment from headline keywords for text-only records
- A 0-100 confidence score from impact, source and data presence

============================================================
SIGN CONVENTION
============================================================
Deviation d = (actual - reference) / |reference| * 100 where the
reference is the forecast, or the previous value when no forecast
exists. For POSITIVE indicators (GDP, payrolls, retail sales) a
higher print is good for the currency. For INVERTED indicators
(CPI, PPI, PCE, unemployment rate, jobless claims) the sign is
flipped before thresholds are applied. The table is explicit,
there is no global rule.

============================================================
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import Impact, Sentiment, clamp_confidence


# =============================================================
# EVENT TYPES
# =============================================================

INTEREST_RATE_DECISION = "INTEREST_RATE_DECISION"
FOMC_MEETING = "FOMC_MEETING"
ECB_MEETING = "ECB_MEETING"
BOJ_MEETING = "BOJ_MEETING"
BOE_MEETING = "BOE_MEETING"
BOC_MEETING = "BOC_MEETING"
FORWARD_GUIDANCE = "FORWARD_GUIDANCE"
QUANTITATIVE_EASING = "QUANTITATIVE_EASING"
CPI_HEADLINE = "CPI_HEADLINE"
CPI_CORE = "CPI_CORE"
PPI = "PPI"
PCE = "PCE"
WAGE_GROWTH = "WAGE_GROWTH"
GDP_QUARTERLY = "GDP_QUARTERLY"
GDP_ANNUAL = "GDP_ANNUAL"
NFP = "NFP"
UNEMPLOYMENT_RATE = "UNEMPLOYMENT_RATE"
JOBLESS_CLAIMS = "JOBLESS_CLAIMS"
PMI_MANUFACTURING = "PMI_MANUFACTURING"
PMI_SERVICES = "PMI_SERVICES"
INDUSTRIAL_PRODUCTION = "INDUSTRIAL_PRODUCTION"
CAPACITY_UTILIZATION = "CAPACITY_UTILIZATION"
RETAIL_SALES = "RETAIL_SALES"
CONSUMER_CONFIDENCE = "CONSUMER_CONFIDENCE"
PERSONAL_INCOME = "PERSONAL_INCOME"
PERSONAL_SPENDING = "PERSONAL_SPENDING"
BUSINESS_CONFIDENCE = "BUSINESS_CONFIDENCE"
TRADE_BALANCE = "TRADE_BALANCE"
CURRENT_ACCOUNT = "CURRENT_ACCOUNT"
OIL_PRICES = "OIL_PRICES"
GOLD_PRICES = "GOLD_PRICES"
NEWS = "NEWS"
OTHER = "OTHER"


# Checked in order, first match wins. More specific phrases come
# before the generic ones they contain (core CPI before CPI,
# claims before unemployment, services PMI before PMI).
EVENT_TYPE_RULES: list[tuple[str, tuple[str, ...]]] = [
    (CPI_CORE, ("core cpi", "cpi core", "core consumer price", "core inflation")),
    (PCE, ("core pce", "pce", "personal consumption expenditure")),
    (CPI_HEADLINE, ("cpi", "consumer price", "inflation rate", "hicp")),
    (PPI, ("ppi", "producer price")),
    (JOBLESS_CLAIMS, (
        "jobless claims", "initial claims", "continuing claims",
        "unemployment claims", "claimant count",
    )),
    (UNEMPLOYMENT_RATE, ("unemployment rate", "unemployment")),
    (NFP, ("non-farm", "nonfarm", "nfp", "payrolls", "employment change")),
    (WAGE_GROWTH, ("average hourly earnings", "average earnings", "wage", "wages")),
    (INTEREST_RATE_DECISION, (
        "interest rate decision", "rate decision", "rate statement", "cash rate",
        "official bank rate", "bank rate", "policy rate", "federal funds",
        "main refinancing rate", "overnight rate",
    )),
    (FOMC_MEETING, ("fomc",)),
    (ECB_MEETING, ("ecb",)),
    (BOJ_MEETING, ("boj", "bank of japan")),
    (BOE_MEETING, ("boe", "bank of england", "mpc")),
    (BOC_MEETING, ("boc", "bank of canada")),
    (QUANTITATIVE_EASING, ("quantitative easing", "asset purchase", "asset purchases")),
    (FORWARD_GUIDANCE, (
        "forward guidance", "press conference", "monetary policy statement",
        "monetary policy report",
    )),
    (GDP_ANNUAL, ("gdp y/y", "gdp yoy", "annual gdp", "gdp annual")),
    (GDP_QUARTERLY, ("gdp", "gross domestic product")),
    (PMI_SERVICES, ("services pmi", "non-manufacturing pmi", "ism services")),
    (PMI_MANUFACTURING, ("manufacturing pmi", "ism manufacturing", "pmi")),
    (INDUSTRIAL_PRODUCTION, ("industrial production", "industrial output")),
    (CAPACITY_UTILIZATION, ("capacity utilization",)),
    (RETAIL_SALES, ("retail sales",)),
    (CONSUMER_CONFIDENCE, ("consumer confidence", "consumer sentiment", "michigan")),
    (PERSONAL_INCOME, ("personal income",)),
    (PERSONAL_SPENDING, ("personal spending",)),
    (BUSINESS_CONFIDENCE, ("business confidence", "business climate", "ifo", "zew", "tankan")),
    (TRADE_BALANCE, ("trade balance",)),
    (CURRENT_ACCOUNT, ("current account",)),
    (OIL_PRICES, ("crude oil", "oil inventories", "oil price", "oil prices")),
    (GOLD_PRICES, ("gold",)),
]

_EVENT_TYPE_PATTERNS: list[tuple[str, re.Pattern]] = [
    (
        event_type,
        re.compile(r"\b(" + "|".join(re.escape(k) for k in keywords) + r")\b"),
    )
    for event_type, keywords in EVENT_TYPE_RULES
]


def categorize_event(title: Optional[str]) -> str:
    """Map an event title to a canonical event type (OTHER if unknown)."""
    if not title:
        return OTHER
    lowered = title.lower()
    for event_type, pattern in _EVENT_TYPE_PATTERNS:
        if pattern.search(lowered):
            return event_type
    return OTHER


# =============================================================
# NUMERIC PARSING
# =============================================================

_MISSING_VALUES = frozenset({"", "-", "--", "—", "n/a", "na", "null", "none", "."})

_SUFFIX_MULTIPLIERS: dict[str, float] = {
    "K": 1e3,
    "M": 1e6,
    "B": 1e9,
    "T": 1e12,
}

_NUMBER_PATTERN = re.compile(r"(-?\d+(?:\.\d+)?)\s*([KMBT])?\b")


def parse_numeric(text) -> Optional[float]:
    """
    Parse a calendar value such as "3.1%", "-0.2%", "250K" or "1.5B".

    Returns None for blanks, dashes, N/A and anything without a number.
    """
    if text is None:
        return None
    if isinstance(text, bool):
        return None
    if isinstance(text, (int, float)):
        return float(text)

    cleaned = str(text).strip()
    if cleaned.lower() in _MISSING_VALUES:
        return None

    cleaned = cleaned.replace(",", "").replace("−", "-").upper()
    match = _NUMBER_PATTERN.search(cleaned)
    if not match:
        return None

    value = float(match.group(1))
    suffix = match.group(2)
    if suffix:
        value *= _SUFFIX_MULTIPLIERS[suffix]
    return value


# =============================================================
# INDICATOR PROFILES
# =============================================================


class Polarity(Enum):
    """Whether a higher print is good (POSITIVE) or bad (INVERTED)."""
    POSITIVE = "positive"
    INVERTED = "inverted"


@dataclass(frozen=True)
class IndicatorProfile:
    """Sign convention and neutral band for one event type."""
    polarity: Polarity = Polarity.POSITIVE
    threshold_pct: float = 2.0           # vs forecast
    previous_threshold_pct: float = 5.0  # vs previous when no forecast


DEFAULT_PROFILE = IndicatorProfile()

INDICATOR_PROFILES: dict[str, IndicatorProfile] = {
    CPI_HEADLINE: IndicatorProfile(Polarity.INVERTED),
    CPI_CORE: IndicatorProfile(Polarity.INVERTED),
    PPI: IndicatorProfile(Polarity.INVERTED),
    PCE: IndicatorProfile(Polarity.INVERTED),
    UNEMPLOYMENT_RATE: IndicatorProfile(Polarity.INVERTED),
    JOBLESS_CLAIMS: IndicatorProfile(Polarity.INVERTED),
    INTEREST_RATE_DECISION: IndicatorProfile(Polarity.POSITIVE, threshold_pct=1.0),
    NFP: IndicatorProfile(Polarity.POSITIVE, threshold_pct=5.0, previous_threshold_pct=10.0),
    TRADE_BALANCE: IndicatorProfile(Polarity.POSITIVE, threshold_pct=5.0, previous_threshold_pct=10.0),
}


def get_profile(event_type: Optional[str]) -> IndicatorProfile:
    return INDICATOR_PROFILES.get(event_type or "", DEFAULT_PROFILE)


# =============================================================
# DEVIATION AND SENTIMENT
# =============================================================


def compute_deviation(
    actual: Optional[float],
    forecast: Optional[float],
    previous: Optional[float] = None,
) -> Optional[tuple[float, bool]]:
    """
    Signed percent deviation of actual from its reference.

    Returns (deviation, against_forecast) or None when actual or both
    references are missing. A zero reference yields +/-100 by the sign
    of the difference (0 when equal).
    """
    if actual is None:
        return None

    if forecast is not None:
        reference, against_forecast = forecast, True
    elif previous is not None:
        reference, against_forecast = previous, False
    else:
        return None

    diff = actual - reference
    if reference == 0:
        if diff > 0:
            return 100.0, against_forecast
        if diff < 0:
            return -100.0, against_forecast
        return 0.0, against_forecast

    return diff / abs(reference) * 100.0, against_forecast


def directional_deviation(
    event_type: Optional[str],
    actual: Optional[float],
    forecast: Optional[float],
    previous: Optional[float] = None,
) -> Optional[tuple[float, float]]:
    """
    Deviation with the event type's polarity applied.

    Returns (signed deviation, threshold) or None.
    """
    computed = compute_deviation(actual, forecast, previous)
    if computed is None:
        return None

    deviation, against_forecast = computed
    profile = get_profile(event_type)
    if profile.polarity is Polarity.INVERTED:
        deviation = -deviation

    threshold = profile.threshold_pct if against_forecast else profile.previous_threshold_pct
    return deviation, threshold


def infer_sentiment(
    event_type: Optional[str],
    actual: Optional[float],
    forecast: Optional[float],
    previous: Optional[float] = None,
) -> Sentiment:
    """BULLISH / BEARISH / NEUTRAL from the polarity-adjusted deviation."""
    result = directional_deviation(event_type, actual, forecast, previous)
    if result is None:
        return Sentiment.NEUTRAL

    deviation, threshold = result
    if deviation > threshold:
        return Sentiment.BULLISH
    if deviation < -threshold:
        return Sentiment.BEARISH
    return Sentiment.NEUTRAL


# (minimum |d| exclusive, offset from 50)
SCORE_BUCKETS: list[tuple[float, float]] = [
    (10.0, 35.0),
    (5.0, 25.0),
    (2.0, 15.0),
]

NEUTRAL_SCORE = 50.0


def deviation_sentiment_score(
    event_type: Optional[str],
    actual: Optional[float],
    forecast: Optional[float],
    previous: Optional[float] = None,
) -> float:
    """
    0-100 sentiment score (50 = neutral) from the deviation.

    Buckets are symmetric around 50: |d| > 10 -> 85/15,
    |d| > 5 -> 75/25, |d| > 2 -> 65/35, otherwise 50.
    """
    result = directional_deviation(event_type, actual, forecast, previous)
    if result is None:
        return NEUTRAL_SCORE

    deviation, _ = result
    magnitude = abs(deviation)
    for bound, offset in SCORE_BUCKETS:
        if magnitude > bound:
            return NEUTRAL_SCORE + offset if deviation > 0 else NEUTRAL_SCORE - offset
    return NEUTRAL_SCORE


def sentiment_from_score(score: float) -> Sentiment:
    """Label a 0-100 score: >= 65 BULLISH, <= 35 BEARISH."""
    if score >= 65:
        return Sentiment.BULLISH
    if score <= 35:
        return Sentiment.BEARISH
    return Sentiment.NEUTRAL


# =============================================================
# KEYWORD SENTIMENT
# =============================================================

BULLISH_KEYWORDS: tuple[str, ...] = (
    "rise", "rises", "rising", "rose", "gain", "gains", "surge", "surges",
    "rally", "rallies", "strong", "stronger", "strengthens", "beat", "beats",
    "higher", "hawkish", "jump", "jumps", "climb", "climbs", "boost",
    "boosts", "upbeat", "positive", "robust", "soar", "soars", "hike",
)

BEARISH_KEYWORDS: tuple[str, ...] = (
    "fall", "falls", "falling", "fell", "drop", "drops", "decline", "declines",
    "weak", "weaker", "weakens", "miss", "misses", "lower", "dovish", "slump",
    "slumps", "plunge", "plunges", "tumble", "tumbles", "slide", "slides",
    "negative", "recession", "cut", "cuts", "sink", "sinks", "losses",
)

_BULLISH_PATTERN = re.compile(r"\b(" + "|".join(BULLISH_KEYWORDS) + r")\b")
_BEARISH_PATTERN = re.compile(r"\b(" + "|".join(BEARISH_KEYWORDS) + r")\b")


def keyword_sentiment(text: Optional[str]) -> Sentiment:
    """Compare word-bounded bullish vs bearish keyword counts."""
    if not text:
        return Sentiment.NEUTRAL
    lowered = text.lower()
    bullish = len(_BULLISH_PATTERN.findall(lowered))
    bearish = len(_BEARISH_PATTERN.findall(lowered))
    if bullish > bearish:
        return Sentiment.BULLISH
    if bearish > bullish:
        return Sentiment.BEARISH
    return Sentiment.NEUTRAL


def sentiment_from_label(label: Optional[str]) -> Optional[Sentiment]:
    """
    Map a source-supplied sentiment label.

    "Bullish", "Somewhat-Bullish" and "positive" are BULLISH, the
    bearish and negative mirrors are BEARISH, "Neutral" is NEUTRAL.
    None for a missing or unrecognized label.
    """
    if not label:
        return None
    lowered = label.lower()
    if "bullish" in lowered or "positive" in lowered:
        return Sentiment.BULLISH
    if "bearish" in lowered or "negative" in lowered:
        return Sentiment.BEARISH
    if "neutral" in lowered:
        return Sentiment.NEUTRAL
    return None


# =============================================================
# CONFIDENCE
# =============================================================

BASE_CONFIDENCE: dict[Impact, float] = {
    Impact.HIGH: 85.0,
    Impact.MEDIUM: 65.0,
    Impact.LOW: 45.0,
}

CREDIBLE_SOURCE_BONUS = 5.0
COMPLETE_DATA_BONUS = 5.0

# Compared against the source name with spaces, dashes and case removed.
HIGH_CREDIBILITY_SOURCES: tuple[str, ...] = (
    "forexfactory",
    "tradingeconomics",
    "fred",
)


def _source_key(source: str) -> str:
    return re.sub(r"[^a-z0-9]", "", source.lower())


def is_credible_source(source: Optional[str]) -> bool:
    if not source:
        return False
    key = _source_key(source)
    return any(key.startswith(name) for name in HIGH_CREDIBILITY_SOURCES)


def score_confidence(
    impact: Impact,
    source: Optional[str],
    actual: Optional[float],
    forecast: Optional[float],
) -> float:
    """Base by impact plus credibility and completeness bonuses, clamped."""
    score = BASE_CONFIDENCE.get(impact, BASE_CONFIDENCE[Impact.LOW])
    if is_credible_source(source):
        score += CREDIBLE_SOURCE_BONUS
    if actual is not None and forecast is not None:
        score += COMPLETE_DATA_BONUS
    return clamp_confidence(score)
