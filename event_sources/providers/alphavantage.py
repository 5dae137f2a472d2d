"""
Alpha Vantage Source - news articles with their own sentiment scores.

API Documentation: https://www.alphavantage.co/documentation/#news-sentiment

Requires an API key. Every feed item carries overall_sentiment_label
("Bearish" .. "Bullish") and overall_sentiment_score in [-1, 1]; the
score times 100 becomes the event's confidence, clamped on
normalization, so bearish articles end at 0.
"""

import logging
import re
from typing import Any, Optional

from normalization.classifier import parse_numeric
from normalization.models import (
    SUPPORTED_CURRENCIES,
    DataType,
    RawSourceRecord,
    ScoredNewsArticle,
)

from ..base import BaseEventSource
from ..config import ALPHA_VANTAGE
from ..exceptions import FetchError, ParseError, RateLimitError
from ..extraction import first_non_empty, json_field
from ..models import FallbackMode, RequestVariant, SourceMetadata


logger = logging.getLogger(__name__)


NEWS_TOPICS: dict[str, str] = {
    "forex": "forex",
    "monetary_policy": "economy_monetary",
    "macro": "economy_macro",
}

PAGE_LIMIT = 50

ITEM_FIELDS = {
    "title": (json_field("title"),),
    "summary": (json_field("summary"),),
    "published_at": (json_field("time_published"),),
    "publisher": (json_field("source"), json_field("source_domain")),
    "sentiment_label": (json_field("overall_sentiment_label"),),
}

# 20240315T093000 -> 2024-03-15T09:30:00Z
_COMPACT_TIMESTAMP = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})?$")


def expand_timestamp(text: str) -> str:
    match = _COMPACT_TIMESTAMP.match(text or "")
    if not match:
        return text
    year, month, day, hour, minute, second = match.groups()
    return f"{year}-{month}-{day}T{hour}:{minute}:{second or '00'}Z"


def ticker_currencies(item: dict[str, Any]) -> tuple[str, ...]:
    """Supported currencies named by FOREX:XXX entries of ticker_sentiment."""
    currencies: list[str] = []
    tickers = item.get("ticker_sentiment")
    if not isinstance(tickers, list):
        return ()
    for entry in tickers:
        if not isinstance(entry, dict):
            continue
        ticker = str(entry.get("ticker", "")).upper()
        if not ticker.startswith("FOREX:"):
            continue
        code = ticker.split(":", 1)[1]
        if code in SUPPORTED_CURRENCIES and code not in currencies:
            currencies.append(code)
    return tuple(currencies)


def score_to_confidence(score: Any) -> Optional[float]:
    value = parse_numeric(score)
    if value is None or value != value:
        return None
    return float(round(value * 100))


class AlphaVantageNewsSource(BaseEventSource):
    """
    Alpha Vantage NEWS_SENTIMENT.

    Rate Limits (free tier): 25 requests per day, 5 per minute.
    """

    BASE_URL = "https://www.alphavantage.co/query"
    FALLBACK_MODE = FallbackMode.MERGE_ALL
    DEFAULT_RATE_LIMIT_RPM = 5
    DEFAULT_DELAY_RANGE = (0.5, 1.0)
    RELIABILITY_WEIGHT = 0.6

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=ALPHA_VANTAGE,
            display_name="Alpha Vantage",
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=True,
            is_free_tier=True,
            base_url=self.BASE_URL,
            documentation_url="https://www.alphavantage.co/documentation/",
            priority=6,
            data_type=DataType.NEWS,
            tags=["news", "sentiment", "api", "json"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [
            RequestVariant(
                label=label,
                url=self.BASE_URL,
                params={
                    "function": "NEWS_SENTIMENT",
                    "topics": topic,
                    "sort": "LATEST",
                    "limit": str(PAGE_LIMIT),
                    "apikey": self.api_key or "",
                },
                expects_json=True,
            )
            for label, topic in NEWS_TOPICS.items()
        ]

    def parse_payload(
        self,
        payload: Any,
        variant: RequestVariant,
    ) -> list[RawSourceRecord]:
        if not isinstance(payload, dict):
            raise ParseError(
                f"Unexpected response shape for {variant.label}",
                source_name=self.name,
                raw_data=str(payload),
            )

        # Errors and quota notices come back with status 200
        notice = payload.get("Information") or payload.get("Note")
        if notice:
            if "rate limit" in str(notice).lower():
                raise RateLimitError(f"Alpha Vantage: {notice}", source_name=self.name)
            raise FetchError(f"Alpha Vantage: {notice}", source_name=self.name, url=variant.url)
        if payload.get("Error Message"):
            raise FetchError(
                f"Alpha Vantage error: {payload['Error Message']}",
                source_name=self.name,
                url=variant.url,
            )

        feed = payload.get("feed")
        if not isinstance(feed, list):
            raise ParseError(
                f"No feed in response for {variant.label}",
                source_name=self.name,
                raw_data=str(payload),
            )

        records: list[RawSourceRecord] = []
        for item in feed:
            if not isinstance(item, dict):
                self._record_drop("feed item is not an object")
                continue
            values = {
                field_name: first_non_empty(rules, item) or ""
                for field_name, rules in ITEM_FIELDS.items()
            }
            if not values["title"]:
                self._record_drop("feed item without title")
                continue
            values["published_at"] = expand_timestamp(values["published_at"])
            records.append(
                ScoredNewsArticle(
                    source=self.metadata.display_name,
                    url=item.get("url") or variant.url,
                    currencies=ticker_currencies(item),
                    confidence=score_to_confidence(item.get("overall_sentiment_score")),
                    **values,
                )
            )
        return records
