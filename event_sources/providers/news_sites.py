"""
Scraped currency news listings: Yahoo Finance and MarketWatch.

Headlines carry no structured currency field; the currencies mentioned
in title and summary become the event's currencies.
"""

from normalization.models import DataType

from ..config import MARKETWATCH, YAHOO_FINANCE
from ..extraction import ExtractionProfile, css_attr, css_text
from ..models import FallbackMode, RequestVariant, SourceMetadata
from ..scraping import ScrapedHeadlineSource


YAHOO_PROFILE = ExtractionProfile(
    row_selectors=(
        "li.js-stream-content",
        ".news-item",
        ".article",
        ".story",
        ".news-story",
        ".news-article",
        ".news-list-item",
    ),
    fields={
        "title": (
            css_text("h3"),
            css_text(".title"),
            css_text(".headline"),
            css_text(".story-title"),
            css_text(".news-title"),
            css_text('[data-test="headline"]'),
        ),
        "summary": (
            css_text("p"),
            css_text(".summary"),
            css_text(".description"),
        ),
        "time": (
            css_attr("time", "datetime"),
            css_text("time"),
            css_text(".timestamp"),
        ),
        "link": (
            css_attr("h3 a", "href"),
            css_attr("a", "href"),
        ),
    },
)


class YahooFinanceNewsSource(ScrapedHeadlineSource):
    """Yahoo Finance currency news."""

    BASE_URL = "https://finance.yahoo.com"
    SITE_URL = "https://finance.yahoo.com/"
    FALLBACK_MODE = FallbackMode.MERGE_ALL
    RELIABILITY_WEIGHT = 0.6
    PROFILE = YAHOO_PROFILE

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=YAHOO_FINANCE,
            display_name="Yahoo Finance",
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=False,
            base_url=self.BASE_URL,
            priority=4,
            data_type=DataType.NEWS,
            tags=["news", "scraped", "html"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [
            RequestVariant(label="currencies", url=f"{self.BASE_URL}/currencies/news"),
            RequestVariant(label="forex", url=f"{self.BASE_URL}/news/forex"),
            RequestVariant(label="currency", url=f"{self.BASE_URL}/news/currency"),
        ]


MARKETWATCH_PROFILE = ExtractionProfile(
    row_selectors=(
        ".article__content",
        ".news-item",
        ".story",
        ".news-story",
    ),
    fields={
        "title": (
            css_text(".article__headline"),
            css_text(".headline"),
            css_text("h3"),
        ),
        "summary": (
            css_text(".article__summary"),
            css_text(".summary"),
        ),
        "time": (
            css_attr(".article__timestamp", "data-est"),
            css_text(".article__timestamp"),
            css_text("time"),
        ),
        "link": (
            css_attr(".article__headline a", "href"),
            css_attr("a", "href"),
        ),
    },
)


class MarketWatchNewsSource(ScrapedHeadlineSource):
    """MarketWatch currency news."""

    BASE_URL = "https://www.marketwatch.com"
    SITE_URL = "https://www.marketwatch.com/"
    FALLBACK_MODE = FallbackMode.MERGE_ALL
    RELIABILITY_WEIGHT = 0.6
    PROFILE = MARKETWATCH_PROFILE

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=MARKETWATCH,
            display_name="MarketWatch",
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=False,
            base_url=self.BASE_URL,
            priority=5,
            data_type=DataType.NEWS,
            tags=["news", "scraped", "html"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [
            RequestVariant(label="currency", url=f"{self.BASE_URL}/investing/currency"),
            RequestVariant(label="forex", url=f"{self.BASE_URL}/newsview/forex"),
            RequestVariant(label="currency_news", url=f"{self.BASE_URL}/newsview/currency"),
        ]
