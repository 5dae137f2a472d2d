"""
Investing.com Source - scraped economic calendar.

The calendar markup has changed several times; every field is read
through a fallback chain covering the known layouts. Day, week and
month pages are scraped and merged.
"""

from ..config import INVESTING
from ..extraction import ExtractionProfile, cell_text, css_attr, css_text, own_attr
from ..models import FallbackMode, RequestVariant, SourceMetadata
from ..scraping import ScrapedCalendarSource


INVESTING_PROFILE = ExtractionProfile(
    row_selectors=(
        "tr.js-event-item",
        ".economicCalendarRow",
        ".calendarRow",
        ".eventRow",
        ".ec-table-row",
        ".calendar-table-row",
        ".economic-event",
    ),
    fields={
        "date": (
            own_attr("data-event-datetime"),
            css_text(".theDay"),
        ),
        "time": (
            css_text(".time"),
            css_text(".eventTime"),
            css_text(".event-time"),
            css_attr("[data-time]", "data-time"),
        ),
        "currency": (
            css_text(".flagCur"),
            css_text(".currency"),
            css_text(".ccy"),
            css_attr("[data-currency]", "data-currency"),
            own_attr("data-currency"),
        ),
        "impact": (
            css_attr(".sentiment", "title"),
            css_attr(".grayFull", "title"),
            css_attr(".impact", "title"),
            css_attr(".importance", "title"),
            css_attr("[data-impact]", "data-impact"),
            own_attr("data-impact"),
        ),
        "event": (
            css_text(".event"),
            css_text(".eventName"),
            css_text(".event-name"),
            css_text(".title"),
            cell_text(3),
        ),
        "actual": (
            css_text(".act"),
            css_text(".actual"),
            css_text(".actualValue"),
            css_attr("[data-actual]", "data-actual"),
        ),
        "forecast": (
            css_text(".fore"),
            css_text(".forecast"),
            css_text(".forecastValue"),
            css_attr("[data-forecast]", "data-forecast"),
        ),
        "previous": (
            css_text(".prev"),
            css_text(".previous"),
            css_text(".previousValue"),
            css_attr("[data-previous]", "data-previous"),
        ),
        "link": (
            css_attr(".event a", "href"),
        ),
    },
)


class InvestingCalendarSource(ScrapedCalendarSource):
    """Investing.com economic calendar (day / week / month pages, merged)."""

    BASE_URL = "https://www.investing.com/economic-calendar"
    SITE_URL = "https://www.investing.com/"
    FALLBACK_MODE = FallbackMode.MERGE_ALL
    RELIABILITY_WEIGHT = 0.75
    PROFILE = INVESTING_PROFILE

    @property
    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=INVESTING,
            display_name="Investing.com",
            reliability_weight=self.RELIABILITY_WEIGHT,
            rate_limit_per_minute=self.rate_limit_rpm,
            requires_api_key=False,
            base_url=self.BASE_URL,
            priority=2,
            tags=["calendar", "scraped", "html"],
        )

    def build_variants(self) -> list[RequestVariant]:
        return [
            RequestVariant(label="day", url=f"{self.BASE_URL}/"),
            RequestVariant(label="week", url=f"{self.BASE_URL}/week"),
            RequestVariant(label="month", url=f"{self.BASE_URL}/month"),
        ]
