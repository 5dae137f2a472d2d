"""
FXStreet Source - scraped economic calendar.

Day, week and month pages are scraped and merged.
"""

from ..config import FXSTREET
from ..extraction import ExtractionProfile, css_attr, css_text, own_attr
from ..models import FallbackMode, RequestVariant, SourceMetadata
from ..scraping import ScrapedCalendarSource


FXSTREET_PROFILE = ExtractionProfile(
    row_selectors=(
        ".fxs_c_row",
        ".calendar-row",
        ".event-row",
        ".economic-event",
        ".ec-event",
        ".calendar-event",
    ),
    fields={
        "date": (
            own_attr("data-date"),
            css_text(".fxs_c_date"),
        ),
        "time": (
            css_text(".fxs_c_time"),
            css_text(".time"),
            css_text(".event-time"),
            css_attr("[data-time]", "data-time"),
        ),
        "currency": (
            css_text(".fxs_c_currency"),
            css_text(".currency"),
            css_text(".ccy"),
            css_attr("[data-currency]", "data-currency"),
            own_attr("data-currency"),
        ),
        "impact": (
            css_attr(".fxs_c_impact", "title"),
            css_attr(".impact", "title"),
            css_attr(".importance", "title"),
            css_attr("[data-impact]", "data-impact"),
            own_attr("data-impact"),
        ),
        "event": (
            css_text(".fxs_c_name"),
            css_text(".event"),
            css_text(".event-name"),
            css_text(".title"),
        ),
        "actual": (
            css_text(".fxs_c_actual"),
            css_text(".actual"),
            css_text(".actual-value"),
            css_attr("[data-actual]", "data-actual"),
        ),
        "forecast": (
            css_text(".fxs_c_consensus"),
            css_text(".forecast"),
            css_text(".forecast-value"),
            css_attr("[data-forecast]", "data-forecast"),
        ),
        "previous": (
            css_text(".fxs_c_previous"),
            css_text(".previous"),
            css_text(".previous-value"),
            css_attr("[data-previous]", "data-previous"),
        ),
        "link": (
            css_attr("a", "href"),
        ),
    },
)


class FXStreetCalendarSource(ScrapedCalendarSource):
    """FXStreet economic calendar (day / week / month pages, merged)."""

    BASE_URL = "https://www.fxstreet.com/economic-calendar"
    SITE_URL = "https://www.fxstreet.com/"
    FALLBACK_MODE = FallbackMode.MERGE_ALL
    RELIABILITY_WEIGHT = 0.7
    PROFILE = FXSTREET_PROFILE

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=FXSTREET,
            display_name="FXStreet",
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=False,
            base_url=self.BASE_URL,
            priority=3,
            tags=["calendar", "scraped", "html"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [
            RequestVariant(label="day", url=self.BASE_URL),
            RequestVariant(label="week", url=f"{self.BASE_URL}/week"),
            RequestVariant(label="month", url=f"{self.BASE_URL}/month"),
        ]
