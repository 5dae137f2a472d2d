"""
Base Event Source - Abstract interface for all source adapters.

All sources follow the same non-blocking, graceful degradation pattern:
every failure becomes a CollectionResult with success=False, never an
exception raised to the caller.
"""

import asyncio
import json
import logging
import random
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp

from normalization.models import CanonicalEconomicEvent, RawSourceRecord
from normalization.normalizer import CanonicalNormalizer

from .exceptions import (
    EventSourceError,
    FetchError,
    ParseError,
    RateLimitError,
)
from .models import (
    CollectionResult,
    FallbackMode,
    RequestVariant,
    SourceHealth,
    SourceMetadata,
    SourceStatus,
)
from .rate_limiter import RateLimiter, get_rate_limiter


logger = logging.getLogger(__name__)


USER_AGENTS: list[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15",
]

BROWSER_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

# Markers of an anti-bot interstitial served with status 200.
CHALLENGE_MARKERS: tuple[str, ...] = (
    "Just a moment",
    "cf-browser-verification",
    "challenge-platform",
)

API_KEY_MISSING = "API key not configured"
NO_RECORDS = "no records"


class BaseEventSource(ABC):
    """
    Abstract base class for event sources.

    DESIGN PRINCIPLES:
    1. NEVER raise - every failure becomes CollectionResult metadata
    2. VARIANTS are independent - one failing never aborts the others
    3. SEQUENTIAL variants with jittered delays between requests
    4. RATE LIMIT aware - every request goes through the API's limiter
    5. DROP silently - unresolvable records are counted, not raised

    All subclasses must implement:
    - metadata - Source metadata property
    - build_variants() - Ordered URL/query variants to try
    - parse_payload() - Payload -> raw records
    """

    FALLBACK_MODE = FallbackMode.MERGE_ALL
    DEFAULT_TIMEOUT = 20.0
    DEFAULT_RATE_LIMIT_RPM = 60
    DEFAULT_DELAY_RANGE = (1.0, 3.0)
    ROTATE_USER_AGENT = True

    def __init__(
        self,
        normalizer: Optional[CanonicalNormalizer] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        rate_limit_rpm: Optional[int] = None,
        delay_range: Optional[tuple[float, float]] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.rate_limit_rpm = rate_limit_rpm or self.DEFAULT_RATE_LIMIT_RPM
        self.delay_range = delay_range if delay_range is not None else self.DEFAULT_DELAY_RANGE
        self._normalizer = normalizer or CanonicalNormalizer()
        self._rate_limiter = rate_limiter
        self._session: Optional[aiohttp.ClientSession] = None
        self._parse_drops = 0

        # Health tracking
        self._health = SourceHealth(
            status=SourceStatus.UNKNOWN,
            last_check=datetime.now(timezone.utc),
        )

        # Statistics
        self._stats = {
            "total_runs": 0,
            "successful_runs": 0,
            "failed_runs": 0,
            "variants_attempted": 0,
            "variants_failed": 0,
            "rate_limits_hit": 0,
            "events_collected": 0,
            "records_dropped": 0,
        }

    @property
    @abstractmethod
    def metadata(self) -> SourceMetadata:
        """Return source metadata."""
        pass

    @abstractmethod
    def build_variants(self) -> list[RequestVariant]:
        """
        Ordered URL/query variants for this source.

        Must be implemented by subclasses.
        """
        pass

    @abstractmethod
    def parse_payload(
        self,
        payload: Any,
        variant: RequestVariant,
    ) -> list[RawSourceRecord]:
        """
        Turn one fetched payload into raw records.

        Must be implemented by subclasses. Receives decoded JSON when the
        variant expects JSON, otherwise the response text. Should raise
        ParseError when the payload as a whole is unusable.
        """
        pass

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def rate_limiter(self) -> RateLimiter:
        if self._rate_limiter is None:
            self._rate_limiter = get_rate_limiter(self.metadata.name, self.rate_limit_rpm)
        return self._rate_limiter

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    async def collect(self) -> CollectionResult:
        """
        Run every variant and return the merged outcome.

        NEVER raises. success is True when at least one variant yielded
        events; a variant that parses to nothing counts as a failed
        variant with error "no records".
        """
        meta = self.metadata
        started = time.monotonic()
        self._stats["total_runs"] += 1

        if meta.requires_api_key and not self.api_key:
            logger.info(f"[{meta.name}] Skipped: {API_KEY_MISSING}")
            self._health.status = SourceStatus.UNAVAILABLE
            self._health.last_error = API_KEY_MISSING
            self._stats["failed_runs"] += 1
            return CollectionResult(
                source=meta.name,
                success=False,
                error=API_KEY_MISSING,
                is_simulated=meta.is_simulated,
            )

        try:
            variants = self.build_variants()
        except Exception as e:
            logger.error(f"[{meta.name}] Failed to build request variants: {e}")
            return self._failure(str(e), started, 0, 0)

        events: list[CanonicalEconomicEvent] = []
        seen: set[tuple[str, str, datetime]] = set()
        dropped = 0
        attempted = 0
        succeeded = 0
        status_code = 0
        last_error: Optional[str] = None
        rate_limited = False

        for index, variant in enumerate(variants):
            if index > 0:
                await self._pause_between_variants()

            attempted += 1
            self._parse_drops = 0
            try:
                payload, status = await self._fetch_variant(variant)
                records = self.parse_payload(payload, variant)

            except RateLimitError as e:
                logger.warning(f"[{meta.name}] Rate limit hit on {variant.label}: {e}")
                self._stats["rate_limits_hit"] += 1
                rate_limited = True
                last_error = str(e)
                status_code = 429
                continue

            except FetchError as e:
                logger.warning(f"[{meta.name}] Fetch error on {variant.label}: {e}")
                last_error = str(e)
                status_code = e.status_code or status_code
                continue

            except EventSourceError as e:
                logger.warning(f"[{meta.name}] Source error on {variant.label}: {e}")
                last_error = str(e)
                continue

            except Exception as e:
                logger.error(f"[{meta.name}] Unexpected error on {variant.label}: {e}")
                last_error = str(e)
                continue

            status_code = status

            normalized, rejected = self._normalizer.normalize_batch(records)
            dropped += rejected + self._parse_drops
            if rejected:
                logger.debug(f"[{meta.name}] Dropped {rejected} unresolvable records from {variant.label}")

            if not normalized:
                logger.warning(f"[{meta.name}] No records from {variant.label}")
                last_error = NO_RECORDS
                continue

            succeeded += 1

            fresh = self._dedupe(normalized, seen)
            events.extend(fresh)

            if self.FALLBACK_MODE is FallbackMode.FIRST_SUCCESS and fresh:
                break

        self._stats["variants_attempted"] += attempted
        self._stats["variants_failed"] += attempted - succeeded
        self._stats["records_dropped"] += dropped

        if not events:
            return self._failure(
                last_error or "no request variants",
                started,
                attempted,
                dropped,
                status_code=status_code,
                rate_limited=rate_limited,
            )

        elapsed_ms = (time.monotonic() - started) * 1000
        now = datetime.now(timezone.utc)
        self._health.status = (
            SourceStatus.HEALTHY if succeeded == attempted else SourceStatus.DEGRADED
        )
        self._health.latency_ms = elapsed_ms
        self._health.consecutive_failures = 0
        self._health.last_success = now
        self._health.last_check = now
        self._stats["successful_runs"] += 1
        self._stats["events_collected"] += len(events)

        logger.info(
            f"[{meta.name}] Collected {len(events)} events from "
            f"{succeeded}/{attempted} variants ({dropped} dropped)"
        )

        return CollectionResult(
            source=meta.name,
            success=True,
            events=events,
            error=last_error,
            response_time_ms=elapsed_ms,
            status_code=status_code,
            records_dropped=dropped,
            variants_attempted=attempted,
            variants_succeeded=succeeded,
            is_simulated=meta.is_simulated,
        )

    async def get_health(self) -> SourceHealth:
        """Get current health status."""
        self._health.last_check = datetime.now(timezone.utc)
        return self._health

    def get_stats(self) -> dict[str, Any]:
        """Get source statistics."""
        runs = self._stats["total_runs"]
        attempted = self._stats["variants_attempted"]
        success_rate = self._stats["successful_runs"] / runs * 100 if runs > 0 else 0
        variant_error_rate = (
            self._stats["variants_failed"] / attempted * 100 if attempted > 0 else 0
        )
        return {
            **self._stats,
            "success_rate_pct": round(success_rate, 2),
            "variant_error_rate_pct": round(variant_error_rate, 2),
            "source_name": self.metadata.name,
            "status": self._health.status.value,
        }

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    # ─────────────────────────────────────────────────────────────
    # Internal methods
    # ─────────────────────────────────────────────────────────────

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def _request_headers(self, variant: RequestVariant) -> dict[str, str]:
        headers: dict[str, str] = {}
        if not variant.expects_json:
            headers.update(BROWSER_HEADERS)
        if self.ROTATE_USER_AGENT:
            headers["User-Agent"] = random.choice(USER_AGENTS)
        else:
            headers["User-Agent"] = USER_AGENTS[0]
        headers.update(variant.headers)
        return headers

    async def _fetch_variant(self, variant: RequestVariant) -> tuple[Any, int]:
        """
        Fetch one variant through the rate limiter.

        Returns (payload, status). 429 raises RateLimitError; any other
        non-200, network error, timeout or challenge page raises
        FetchError; undecodable JSON raises ParseError.
        """
        await self.rate_limiter.acquire()
        session = await self._get_session()
        name = self.metadata.name

        try:
            async with session.get(
                variant.url,
                params=variant.params or None,
                headers=self._request_headers(variant),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status == 429:
                    retry_after = response.headers.get("Retry-After", "60")
                    raise RateLimitError(
                        f"{self.metadata.display_name} rate limit exceeded",
                        source_name=name,
                        retry_after_seconds=int(retry_after) if retry_after.isdigit() else None,
                    )

                text = await response.text()

                if response.status != 200:
                    raise FetchError(
                        f"{self.metadata.display_name} HTTP {response.status}",
                        source_name=name,
                        status_code=response.status,
                        url=str(response.url),
                        details={"response": text[:500]},
                    )

        except asyncio.TimeoutError:
            raise FetchError(
                f"Timed out after {self.timeout}s",
                source_name=name,
                url=variant.url,
            )
        except aiohttp.ClientError as e:
            raise FetchError(
                f"Network error: {e}",
                source_name=name,
                url=variant.url,
            )

        if variant.expects_json:
            try:
                return json.loads(text), response.status
            except ValueError as e:
                raise ParseError(
                    f"Invalid JSON: {e}",
                    source_name=name,
                    raw_data=text,
                )

        if any(marker in text for marker in CHALLENGE_MARKERS):
            raise FetchError(
                "Blocked by anti-bot challenge page",
                source_name=name,
                status_code=response.status,
                url=variant.url,
            )

        return text, response.status

    async def _pause_between_variants(self) -> None:
        low, high = self.delay_range
        if high <= 0:
            return
        await asyncio.sleep(random.uniform(low, high))

    def _record_drop(self, reason: str) -> None:
        """Count a record rejected before normalization."""
        self._parse_drops += 1
        logger.debug(f"[{self.metadata.name}] Dropped record: {reason}")

    @staticmethod
    def _dedupe(
        events: list[CanonicalEconomicEvent],
        seen: set[tuple[str, str, datetime]],
    ) -> list[CanonicalEconomicEvent]:
        fresh: list[CanonicalEconomicEvent] = []
        for event in events:
            key = (event.currency, event.title.lower(), event.event_date)
            if key in seen:
                continue
            seen.add(key)
            fresh.append(event)
        return fresh

    def _failure(
        self,
        error: str,
        started: float,
        attempted: int,
        dropped: int,
        status_code: int = 0,
        rate_limited: bool = False,
    ) -> CollectionResult:
        """Build a failed result and update health."""
        now = datetime.now(timezone.utc)
        self._stats["failed_runs"] += 1
        self._health.consecutive_failures += 1
        self._health.error_count += 1
        self._health.last_error = error
        self._health.last_error_time = now
        self._health.last_check = now

        if rate_limited:
            self._health.status = SourceStatus.RATE_LIMITED
        elif self._health.consecutive_failures >= 3:
            self._health.status = SourceStatus.UNAVAILABLE
        else:
            self._health.status = SourceStatus.DEGRADED

        logger.warning(f"[{self.metadata.name}] All {attempted} variants failed: {error}")

        return CollectionResult(
            source=self.metadata.name,
            success=False,
            events=[],
            error=error,
            response_time_ms=(time.monotonic() - started) * 1000,
            status_code=status_code,
            records_dropped=dropped,
            variants_attempted=attempted,
            variants_succeeded=0,
            is_simulated=self.metadata.is_simulated,
        )
