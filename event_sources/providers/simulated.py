"""
Simulated Source - seeded synthetic calendar events.

Never touches the network. Used for demos and offline runs; disabled by
default and kept apart from real results unless explicitly included.
Every event it yields is tagged with source "SIMULATED".
"""

import logging
import random
from datetime import timedelta
from typing import Any, Optional, Sequence

from normalization.classifier import (
    CPI_HEADLINE,
    GDP_QUARTERLY,
    INTEREST_RATE_DECISION,
    NFP,
    PMI_MANUFACTURING,
    RETAIL_SALES,
    TRADE_BALANCE,
    UNEMPLOYMENT_RATE,
    deviation_sentiment_score,
    infer_sentiment,
)
from normalization.models import (
    SIMULATED_SOURCE,
    SUPPORTED_CURRENCIES,
    Impact,
    RawSourceRecord,
    SimulatedRecord,
)
from normalization.normalizer import CanonicalNormalizer

from ..base import BaseEventSource
from ..config import SIMULATED
from ..exceptions import ParseError
from ..models import FallbackMode, RequestVariant, SourceMetadata


logger = logging.getLogger(__name__)


# (event type, title, impact, typical value, spread)
EVENT_TEMPLATES: list[tuple[str, str, Impact, float, float]] = [
    (INTEREST_RATE_DECISION, "Interest Rate Decision", Impact.HIGH, 4.0, 0.25),
    (CPI_HEADLINE, "CPI y/y", Impact.HIGH, 3.0, 0.4),
    (NFP, "Employment Change", Impact.HIGH, 180.0, 60.0),
    (UNEMPLOYMENT_RATE, "Unemployment Rate", Impact.HIGH, 4.2, 0.3),
    (GDP_QUARTERLY, "GDP q/q", Impact.MEDIUM, 0.5, 0.3),
    (PMI_MANUFACTURING, "Manufacturing PMI", Impact.MEDIUM, 50.0, 2.5),
    (RETAIL_SALES, "Retail Sales m/m", Impact.MEDIUM, 0.3, 0.5),
    (TRADE_BALANCE, "Trade Balance", Impact.LOW, -5.0, 3.0),
]

EVENTS_PER_CURRENCY = 4
MAX_AGE_DAYS = 30


class SimulatedCalendarSource(BaseEventSource):
    """
    Deterministic synthetic calendar.

    The same seed and clock always produce the same events.
    """

    FALLBACK_MODE = FallbackMode.MERGE_ALL
    DEFAULT_DELAY_RANGE = (0.0, 0.0)
    RELIABILITY_WEIGHT = 0.0

    def __init__(
        self,
        normalizer: Optional[CanonicalNormalizer] = None,
        currencies: Optional[Sequence[str]] = None,
        seed: int = 42,
        events_per_currency: int = EVENTS_PER_CURRENCY,
        **kwargs,
    ) -> None:
        super().__init__(normalizer=normalizer, **kwargs)
        self.currencies = [c for c in (currencies or SUPPORTED_CURRENCIES) if c in SUPPORTED_CURRENCIES]
        self.seed = seed
        self.events_per_currency = events_per_currency

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=SIMULATED,
            display_name=SIMULATED_SOURCE,
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=False,
            priority=99,
            is_simulated=True,
            tags=["simulated", "offline"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [RequestVariant(label="seeded", url="simulated://calendar")]

    async def _fetch_variant(self, variant: RequestVariant) -> tuple[Any, int]:
        return self.generate(), 200

    def parse_payload(
        self,
        payload: Any,
        variant: RequestVariant,
    ) -> list[RawSourceRecord]:
        if not isinstance(payload, list):
            raise ParseError("Expected generated records", source_name=self.name)
        return payload

    def generate(self) -> list[SimulatedRecord]:
        """Build the synthetic records for every configured currency."""
        rng = random.Random(self.seed)
        now = self._normalizer.clock.now()
        records: list[SimulatedRecord] = []

        for currency in self.currencies:
            templates = rng.sample(EVENT_TEMPLATES, min(self.events_per_currency, len(EVENT_TEMPLATES)))
            for event_type, title, impact, typical, spread in templates:
                expected = round(typical + rng.uniform(-spread, spread), 2)
                actual = round(expected + rng.uniform(-spread, spread), 2)
                previous = round(typical + rng.uniform(-spread, spread), 2)
                records.append(
                    SimulatedRecord(
                        source=SIMULATED_SOURCE,
                        currency=currency,
                        event_type=event_type,
                        title=f"{currency} {title}",
                        description=f"Actual: {actual} | Forecast: {expected} | Previous: {previous}",
                        event_date=now - timedelta(days=rng.randint(0, MAX_AGE_DAYS)),
                        actual_value=actual,
                        expected_value=expected,
                        previous_value=previous,
                        impact=impact,
                        sentiment=infer_sentiment(event_type, actual, expected, previous),
                        confidence=rng.uniform(40, 70),
                        sentiment_score=deviation_sentiment_score(event_type, actual, expected, previous),
                    )
                )

        logger.debug(f"[{SIMULATED}] Generated {len(records)} records")
        return records
