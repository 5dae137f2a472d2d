"""
Scraped HTML sources driven by extraction profiles.

ScrapedCalendarSource turns calendar table rows into ScrapedCalendarRow
records; ScrapedHeadlineSource turns news listing items into
ScrapedHeadline records. Concrete sites only provide metadata, their
URL variants and an ExtractionProfile.
"""

import logging
from typing import Any, Optional
from urllib.parse import urljoin

from normalization.currency import extract_currencies
from normalization.models import RawSourceRecord, ScrapedCalendarRow, ScrapedHeadline

from .base import BaseEventSource
from .exceptions import ParseError
from .extraction import ExtractionProfile, parse_html
from .models import RequestVariant


logger = logging.getLogger(__name__)


class ScrapedCalendarSource(BaseEventSource):
    """
    HTML economic calendar scraped row by row.

    Calendars print the date only on the first row of each day and the
    time only on the first event of a time slot, so both are carried
    forward to the following rows.
    """

    PROFILE: ExtractionProfile
    # Base for relative links found in rows
    SITE_URL: str = ""

    def parse_payload(
        self,
        payload: Any,
        variant: RequestVariant,
    ) -> list[RawSourceRecord]:
        if not isinstance(payload, str):
            raise ParseError("Expected HTML text", source_name=self.name)

        soup = parse_html(payload)
        rows = self.PROFILE.rows(soup)
        if not rows:
            logger.debug(f"[{self.name}] No calendar rows matched on {variant.label}")
            return []

        records: list[RawSourceRecord] = []
        last_date = ""
        last_time = ""

        for row in rows:
            fields = self.PROFILE.extract(row)

            if fields.get("date") and fields["date"] != last_date:
                last_date = fields["date"]
                last_time = ""
            if fields.get("time"):
                last_time = fields["time"]

            if not fields.get("event") and not fields.get("currency"):
                # day breakers, spacer rows
                continue

            records.append(
                ScrapedCalendarRow(
                    source=self.metadata.display_name,
                    url=self._row_url(fields.get("link"), variant),
                    currency_text=fields.get("currency", ""),
                    impact_text=fields.get("impact", ""),
                    event_text=fields.get("event", ""),
                    time_text=last_time,
                    date_text=last_date,
                    actual_text=fields.get("actual", ""),
                    forecast_text=fields.get("forecast", ""),
                    previous_text=fields.get("previous", ""),
                )
            )

        return records

    def _row_url(self, link: Optional[str], variant: RequestVariant) -> str:
        if link:
            return urljoin(self.SITE_URL or variant.url, link)
        return variant.url


class ScrapedHeadlineSource(BaseEventSource):
    """
    HTML news listing scraped item by item.

    Only headlines mentioning at least one supported currency are kept;
    the rest are counted as dropped.
    """

    PROFILE: ExtractionProfile
    SITE_URL: str = ""

    def parse_payload(
        self,
        payload: Any,
        variant: RequestVariant,
    ) -> list[RawSourceRecord]:
        if not isinstance(payload, str):
            raise ParseError("Expected HTML text", source_name=self.name)

        soup = parse_html(payload)
        records: list[RawSourceRecord] = []

        for item in self.PROFILE.rows(soup):
            fields = self.PROFILE.extract(item)
            title = fields.get("title", "")
            summary = fields.get("summary", "")
            if not title:
                self._record_drop("headline without title")
                continue

            currencies = extract_currencies(f"{title} {summary}")
            if not currencies:
                self._record_drop(f"no currency in headline {title[:60]!r}")
                continue

            link = fields.get("link")
            records.append(
                ScrapedHeadline(
                    source=self.metadata.display_name,
                    url=urljoin(self.SITE_URL, link) if link else variant.url,
                    title=title,
                    summary=summary,
                    time_text=fields.get("time", ""),
                    currencies=tuple(currencies),
                )
            )

        return records

