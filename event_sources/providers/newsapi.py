"""
NewsAPI Source - currency and macro news articles.

API Documentation: https://newsapi.org/docs/endpoints/everything

Requires an API key. Each query is one variant; articles come back as
{title, description, publishedAt, source: {name}, url}. Currencies are
taken from the article text during normalization.
"""

import logging
from typing import Any

from normalization.models import DataType, NewsArticle, RawSourceRecord

from ..base import BaseEventSource
from ..config import NEWSAPI
from ..exceptions import FetchError, ParseError
from ..extraction import first_non_empty, json_field
from ..models import FallbackMode, RequestVariant, SourceMetadata


logger = logging.getLogger(__name__)


NEWS_QUERIES: dict[str, str] = {
    "forex": "forex OR \"currency market\" OR \"exchange rate\"",
    "central_banks": "\"central bank\" AND (\"interest rate\" OR \"rate decision\")",
    "inflation": "inflation AND (CPI OR \"consumer prices\")",
}

PAGE_SIZE = 50

ARTICLE_FIELDS = {
    "title": (json_field("title"),),
    "description": (json_field("description"), json_field("content")),
    "published_at": (json_field("publishedAt"),),
    "publisher": (json_field("source", "name"),),
}


class NewsAPISource(BaseEventSource):
    """
    NewsAPI /v2/everything.

    Rate Limits (developer tier): 100 requests per day.
    """

    BASE_URL = "https://newsapi.org/v2"
    FALLBACK_MODE = FallbackMode.MERGE_ALL
    DEFAULT_RATE_LIMIT_RPM = 10
    DEFAULT_DELAY_RANGE = (0.5, 1.0)
    RELIABILITY_WEIGHT = 0.6

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=NEWSAPI,
            display_name="NewsAPI",
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=True,
            is_free_tier=True,
            base_url=self.BASE_URL,
            documentation_url="https://newsapi.org/docs",
            priority=6,
            data_type=DataType.NEWS,
            tags=["news", "api", "json"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [
            RequestVariant(
                label=label,
                url=f"{self.BASE_URL}/everything",
                params={
                    "q": query,
                    "language": "en",
                    "sortBy": "publishedAt",
                    "pageSize": str(PAGE_SIZE),
                },
                headers={"X-Api-Key": self.api_key or ""},
                expects_json=True,
            )
            for label, query in NEWS_QUERIES.items()
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

        if payload.get("status") == "error":
            raise FetchError(
                f"NewsAPI error: {payload.get('message', payload.get('code', 'unknown'))}",
                source_name=self.name,
                url=variant.url,
            )

        articles = payload.get("articles")
        if not isinstance(articles, list):
            raise ParseError(
                f"No articles in response for {variant.label}",
                source_name=self.name,
                raw_data=str(payload),
            )

        records: list[RawSourceRecord] = []
        for article in articles:
            if not isinstance(article, dict):
                self._record_drop("article is not an object")
                continue
            values = {
                field_name: first_non_empty(rules, article) or ""
                for field_name, rules in ARTICLE_FIELDS.items()
            }
            if not values["title"] or values["title"] == "[Removed]":
                self._record_drop("article without title")
                continue
            records.append(
                NewsArticle(
                    source=self.metadata.display_name,
                    url=article.get("url") or variant.url,
                    **values,
                )
            )
        return records
