"""
Forex Factory Sources - economic calendar page and JSON calendar feed.

Forex Factory provides:
- The HTML weekly calendar (behind an anti-bot wall more often than not)
- A public JSON feed of this week's and next week's events
- Impact as colour-coded icons (red / orange / yellow)

The HTML calendar is tried as a strategy chain that stops at the first
strategy yielding rows: direct request, rotated user agent, then the
alternative week endpoints.
"""

import logging
import random
from typing import Any

from normalization.models import FeedItem, RawSourceRecord

from ..base import USER_AGENTS, BaseEventSource
from ..config import FOREXFACTORY, FOREXFACTORY_FEED
from ..exceptions import ParseError
from ..extraction import ExtractionProfile, css_attr, css_text, json_field, own_attr, first_non_empty
from ..models import FallbackMode, RequestVariant, SourceMetadata
from ..scraping import ScrapedCalendarSource


logger = logging.getLogger(__name__)


CALENDAR_PROFILE = ExtractionProfile(
    row_selectors=(".calendar__row",),
    skip_classes=("calendar__row--header", "calendar__row--day-breaker"),
    fields={
        "date": (
            css_text(".calendar__date"),
            own_attr("data-day-dateline"),
        ),
        "time": (
            css_text(".calendar__time"),
        ),
        "currency": (
            css_text(".calendar__currency"),
            own_attr("data-currency"),
        ),
        "impact": (
            css_attr(".calendar__impact span", "title"),
            css_attr(".calendar__impact", "title"),
            css_attr(".calendar__impact span", "class"),
        ),
        "event": (
            css_text(".calendar__event-title"),
            css_text(".calendar__event"),
        ),
        "actual": (css_text(".calendar__actual"),),
        "forecast": (css_text(".calendar__forecast"),),
        "previous": (css_text(".calendar__previous"),),
        "link": (css_attr(".calendar__detail a", "href"),),
    },
)


class ForexFactoryCalendarSource(ScrapedCalendarSource):
    """
    Forex Factory HTML calendar.

    Strategy chain (first success wins):
    1. direct       - plain request with a fixed desktop user agent
    2. rotated_ua   - same page with a random user agent
    3. week_this    - alternative ?week=this endpoint
    4. week_all     - alternative endpoint with every impact level
    """

    BASE_URL = "https://www.forexfactory.com/calendar"
    SITE_URL = "https://www.forexfactory.com/"
    FALLBACK_MODE = FallbackMode.FIRST_SUCCESS
    ROTATE_USER_AGENT = False
    RELIABILITY_WEIGHT = 0.85
    PROFILE = CALENDAR_PROFILE

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=FOREXFACTORY,
            display_name="Forex Factory",
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=False,
            base_url=self.BASE_URL,
            priority=1,
            tags=["calendar", "scraped", "html"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [
            RequestVariant(label="direct", url=self.BASE_URL),
            RequestVariant(
                label="rotated_ua",
                url=self.BASE_URL,
                headers={"User-Agent": random.choice(USER_AGENTS[1:])},
            ),
            RequestVariant(
                label="week_this",
                url=self.BASE_URL,
                params={"week": "this"},
                headers={"Referer": "https://www.forexfactory.com/"},
            ),
            RequestVariant(
                label="week_all",
                url=self.BASE_URL,
                params={"week": "this", "impacts": "3,2,1,0"},
                headers={"Referer": "https://www.forexfactory.com/"},
            ),
        ]


FEED_FIELDS = {
    "title": (json_field("title"), json_field("event")),
    "country": (json_field("country"), json_field("currency")),
    "date": (json_field("date"),),
    "impact": (json_field("impact"),),
    "actual": (json_field("actual"),),
    "forecast": (json_field("forecast"),),
    "previous": (json_field("previous"),),
}


class ForexFactoryFeedSource(BaseEventSource):
    """
    Forex Factory JSON calendar feed (faireconomy mirror).

    Item shape: {title, country, date, impact, forecast, previous}
    where country is already a currency code.
    """

    BASE_URL = "https://nfs.faireconomy.media"
    FALLBACK_MODE = FallbackMode.MERGE_ALL
    RELIABILITY_WEIGHT = 0.85

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=FOREXFACTORY_FEED,
            display_name="Forex Factory Feed",
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=False,
            base_url=self.BASE_URL,
            priority=1,
            tags=["calendar", "feed", "json"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [
            RequestVariant(
                label="this_week",
                url=f"{self.BASE_URL}/ff_calendar_thisweek.json",
                expects_json=True,
            ),
            RequestVariant(
                label="next_week",
                url=f"{self.BASE_URL}/ff_calendar_nextweek.json",
                expects_json=True,
            ),
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
        for item in payload:
            if not isinstance(item, dict):
                self._record_drop("feed item is not an object")
                continue
            values = {
                field_name: first_non_empty(rules, item) or ""
                for field_name, rules in FEED_FIELDS.items()
            }
            records.append(
                FeedItem(
                    source=self.metadata.display_name,
                    url=variant.url,
                    **values,
                )
            )
        return records
