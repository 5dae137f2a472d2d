"""
Core Module - Clock.

============================================================
RESPONSIBILITY
============================================================
Provides the UTC clock abstraction used by the normalizer
(relative date resolution, missing-date fallback) and by the
aggregators (event age, time decay, last_update stamps).

- Production code uses SystemClock
- Tests pin time with FixedClock so that normalization and
  scoring are fully deterministic

============================================================
DESIGN PRINCIPLES
============================================================
- UTC only - naive datetimes are treated as UTC
- Mockable for testing
- Thread-safe

============================================================
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Generator, Optional
import threading


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the system clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass

    def today(self) -> date:
        """Get current UTC date."""
        return self.now().date()

    def start_of_day(self) -> datetime:
        """Midnight UTC of the current day."""
        return self.now().replace(hour=0, minute=0, second=0, microsecond=0)

    def age_in_days(self, moment: datetime) -> float:
        """
        Age of a moment relative to now, in fractional days.

        Moments in the future have age 0.
        """
        moment = ensure_utc(moment)
        delta = (self.now() - moment).total_seconds() / 86400.0
        return max(0.0, delta)


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """Production clock using actual system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


# ============================================================
# FIXED CLOCK (TESTING)
# ============================================================

class FixedClock(ClockProtocol):
    """
    Clock pinned to a given instant.

    Time only moves when advance() or set_time() is called.
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        self._time = ensure_utc(initial_time or datetime.now(timezone.utc))
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._time

    def set_time(self, new_time: datetime) -> None:
        """Set the current time."""
        with self._lock:
            self._time = ensure_utc(new_time)

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.

        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, etc.)
        """
        with self._lock:
            self._time = self._time + timedelta(seconds=seconds, **kwargs)

    @contextmanager
    def freeze(self, at_time: datetime) -> Generator[None, None, None]:
        """Temporarily move the clock to another instant."""
        with self._lock:
            original_time = self._time
            self._time = ensure_utc(at_time)
        try:
            yield
        finally:
            with self._lock:
                self._time = original_time


# ============================================================
# GLOBAL CLOCK
# ============================================================

_default_clock: Optional[ClockProtocol] = None
_clock_lock = threading.Lock()


def get_clock() -> ClockProtocol:
    """Get the global clock instance."""
    global _default_clock
    with _clock_lock:
        if _default_clock is None:
            _default_clock = SystemClock()
        return _default_clock


def set_clock(clock: Optional[ClockProtocol]) -> None:
    """Set the global clock instance (None resets to SystemClock)."""
    global _default_clock
    with _clock_lock:
        _default_clock = clock


# ============================================================
# TIMESTAMP UTILITIES
# ============================================================

def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso8601(dt: datetime) -> str:
    """Convert datetime to ISO 8601 string."""
    return ensure_utc(dt).isoformat()


def from_iso8601(iso_string: str) -> datetime:
    """Parse ISO 8601 string to a UTC datetime."""
    if iso_string.endswith("Z"):
        iso_string = iso_string[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(iso_string))


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "FixedClock",
    "get_clock",
    "set_clock",
    "ensure_utc",
    "to_iso8601",
    "from_iso8601",
]
