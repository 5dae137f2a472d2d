"""
Core Module Package.

Shared infrastructure that the collection, normalization and
scoring packages depend on.

Components:
- clock: UTC time abstraction (SystemClock, FixedClock)
"""

from .clock import (
    ClockProtocol,
    FixedClock,
    SystemClock,
    ensure_utc,
    from_iso8601,
    get_clock,
    set_clock,
    to_iso8601,
)


__all__ = [
    "ClockProtocol",
    "FixedClock",
    "SystemClock",
    "ensure_utc",
    "from_iso8601",
    "get_clock",
    "set_clock",
    "to_iso8601",
]
