"""
Trading Economics Source - economic calendar REST API.

API Documentation: https://docs.tradingeconomics.com/

Requires an API key (query parameter c=<key>). One request per country
group; rows carry Country / Category / Event / Date / Actual / Forecast
/ Previous / Importance (1-3).
"""

import logging
from typing import Any

from normalization.models import ApiRow, RawSourceRecord

from ..base import BaseEventSource
from ..config import TRADINGECONOMICS
from ..exceptions import ParseError
from ..extraction import first_non_empty, json_field
from ..models import FallbackMode, RequestVariant, SourceMetadata


logger = logging.getLogger(__name__)


# Country path segments grouped so one request covers several currencies
COUNTRY_GROUPS: dict[str, str] = {
    "majors": "united states,euro area,japan,united kingdom",
    "commodity": "canada,australia,new zealand,switzerland",
}

ROW_FIELDS = {
    "country": (json_field("Country"),),
    "category": (json_field("Category"),),
    "event": (json_field("Event"),),
    "date": (json_field("Date"),),
    "importance": (json_field("Importance"),),
    "actual": (json_field("Actual"),),
    "forecast": (json_field("Forecast"), json_field("TEForecast")),
    "previous": (json_field("Previous"),),
}


class TradingEconomicsSource(BaseEventSource):
    """
    Trading Economics calendar API.

    Rate Limits (free tier): 1 request per second.
    """

    BASE_URL = "https://api.tradingeconomics.com"
    FALLBACK_MODE = FallbackMode.MERGE_ALL
    DEFAULT_RATE_LIMIT_RPM = 30
    DEFAULT_DELAY_RANGE = (1.0, 2.0)
    RELIABILITY_WEIGHT = 0.9

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=TRADINGECONOMICS,
            display_name="Trading Economics",
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=True,
            is_free_tier=True,
            base_url=self.BASE_URL,
            documentation_url="https://docs.tradingeconomics.com/",
            priority=1,
            tags=["calendar", "api", "json"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [
            RequestVariant(
                label=label,
                url=f"{self.BASE_URL}/calendar/country/{countries}",
                params={"c": self.api_key or "", "f": "json"},
                expects_json=True,
            )
            for label, countries in COUNTRY_GROUPS.items()
        ]

    def parse_payload(
        self,
        payload: Any,
        variant: RequestVariant,
    ) -> list[RawSourceRecord]:
        if not isinstance(payload, list):
            raise ParseError(
                f"Expected a JSON list from {variant.label}",
                source_name=self.name,
                raw_data=str(payload),
            )

        records: list[RawSourceRecord] = []
        for row in payload:
            if not isinstance(row, dict):
                self._record_drop("calendar row is not an object")
                continue
            values = {
                field_name: first_non_empty(rules, row) or ""
                for field_name, rules in ROW_FIELDS.items()
            }
            link = row.get("URL")
            records.append(
                ApiRow(
                    source=self.metadata.display_name,
                    url=f"https://tradingeconomics.com{link}" if link else variant.url,
                    **values,
                )
            )
        return records
