"""
FRED Source - Federal Reserve Economic Data observations.

API Documentation: https://fred.stlouisfed.org/docs/api/fred/

Requires a free API key. One request per tracked series; the latest
valid observation becomes the event and the one before it the previous
value. FRED marks missing observations with ".".

All tracked series are US series, so every event is a USD event.
"""

import logging
from typing import Any, Optional

from normalization.classifier import (
    CPI_HEADLINE,
    GDP_QUARTERLY,
    INTEREST_RATE_DECISION,
    JOBLESS_CLAIMS,
    NFP,
    UNEMPLOYMENT_RATE,
    parse_numeric,
)
from normalization.models import DataType, MacroObservation, RawSourceRecord

from ..base import BaseEventSource
from ..config import FRED
from ..exceptions import ParseError
from ..models import FallbackMode, RequestVariant, SourceMetadata


logger = logging.getLogger(__name__)


# series_id -> (event type, title, impact)
FRED_SERIES: dict[str, tuple[str, str, str]] = {
    "FEDFUNDS": (INTEREST_RATE_DECISION, "Federal Funds Effective Rate", "high"),
    "CPIAUCSL": (CPI_HEADLINE, "Consumer Price Index (All Urban Consumers)", "high"),
    "UNRATE": (UNEMPLOYMENT_RATE, "Unemployment Rate", "high"),
    "PAYEMS": (NFP, "Nonfarm Payrolls (Total)", "high"),
    "GDP": (GDP_QUARTERLY, "Gross Domestic Product", "medium"),
    "ICSA": (JOBLESS_CLAIMS, "Initial Jobless Claims", "medium"),
}

OBSERVATION_LIMIT = 5


class FREDSource(BaseEventSource):
    """
    FRED series observations.

    Rate Limits: 120 requests per minute per key.
    """

    BASE_URL = "https://api.stlouisfed.org/fred"
    FALLBACK_MODE = FallbackMode.MERGE_ALL
    DEFAULT_RATE_LIMIT_RPM = 120
    DEFAULT_DELAY_RANGE = (0.2, 0.5)
    RELIABILITY_WEIGHT = 0.95

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=FRED,
            display_name="FRED",
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=True,
            is_free_tier=True,
            base_url=self.BASE_URL,
            documentation_url="https://fred.stlouisfed.org/docs/api/fred/",
            priority=1,
            data_type=DataType.INDICATOR,
            tags=["macro", "api", "json", "usd"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [
            RequestVariant(
                label=series_id,
                url=f"{self.BASE_URL}/series/observations",
                params={
                    "series_id": series_id,
                    "api_key": self.api_key or "",
                    "file_type": "json",
                    "sort_order": "desc",
                    "limit": str(OBSERVATION_LIMIT),
                },
                expects_json=True,
            )
            for series_id in FRED_SERIES
        ]

    def parse_payload(
        self,
        payload: Any,
        variant: RequestVariant,
    ) -> list[RawSourceRecord]:
        observations = payload.get("observations") if isinstance(payload, dict) else None
        if not isinstance(observations, list):
            raise ParseError(
                f"No observations in response for {variant.label}",
                source_name=self.name,
                raw_data=str(payload),
            )

        valid: list[tuple[str, float]] = []
        for observation in observations:
            value = self._observation_value(observation)
            if value is None:
                self._record_drop(f"missing value in {variant.label}")
                continue
            valid.append((str(observation.get("date", "")), value))
            if len(valid) == 2:
                break

        if not valid:
            return []

        event_type, title, impact = FRED_SERIES[variant.label]
        latest_date, latest_value = valid[0]
        previous_value = valid[1][1] if len(valid) > 1 else None

        return [
            MacroObservation(
                source=self.metadata.display_name,
                url=f"https://fred.stlouisfed.org/series/{variant.label}",
                series_id=variant.label,
                currency="USD",
                event_type=event_type,
                title=title,
                date=latest_date,
                value=latest_value,
                previous_value=previous_value,
                impact=impact,
            )
        ]

    @staticmethod
    def _observation_value(observation: Any) -> Optional[float]:
        if not isinstance(observation, dict):
            return None
        return parse_numeric(observation.get("value"))
