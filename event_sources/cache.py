"""
Bounded event cache.

Keyed by (currency, DataType). Each key holds an append-only deque of
fixed capacity; when full, the oldest entry is evicted first. At most
`max_keys` keys are kept, evicting the least recently used key.
"""

import logging
import threading
from collections import OrderedDict, deque
from typing import Any, Iterable, Optional

from normalization.classifier import NEWS
from normalization.models import CanonicalEconomicEvent, DataType


logger = logging.getLogger(__name__)


CacheKey = tuple[str, DataType]


def infer_data_type(event: CanonicalEconomicEvent) -> DataType:
    if event.event_type == NEWS:
        return DataType.NEWS
    return DataType.ECONOMIC_EVENT


class BoundedEventCache:
    """
    Append-only per-key event store with a documented capacity.

    Usage:
        cache = BoundedEventCache(capacity=100, max_keys=64)
        cache.add(events)
        recent_usd_news = cache.get("USD", DataType.NEWS)
    """

    DEFAULT_CAPACITY = 100
    DEFAULT_MAX_KEYS = 64

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        max_keys: int = DEFAULT_MAX_KEYS,
    ) -> None:
        if capacity < 1 or max_keys < 1:
            raise ValueError("capacity and max_keys must be at least 1")
        self.capacity = capacity
        self.max_keys = max_keys
        self._store: "OrderedDict[CacheKey, deque[CanonicalEconomicEvent]]" = OrderedDict()
        self._lock = threading.Lock()
        self._stats = {
            "added": 0,
            "evicted_events": 0,
            "evicted_keys": 0,
        }

    def add(
        self,
        events: Iterable[CanonicalEconomicEvent],
        data_type: Optional[DataType] = None,
    ) -> int:
        """Append events under (primary currency, data type); returns count added."""
        added = 0
        with self._lock:
            for event in events:
                key = (event.currency, data_type or infer_data_type(event))
                bucket = self._touch(key)
                if len(bucket) == bucket.maxlen:
                    self._stats["evicted_events"] += 1
                bucket.append(event)
                added += 1
            self._stats["added"] += added
        return added

    def get(self, currency: str, data_type: DataType) -> list[CanonicalEconomicEvent]:
        """Events for a key, oldest first."""
        key = (currency.upper(), data_type)
        with self._lock:
            bucket = self._store.get(key)
            if bucket is None:
                return []
            self._store.move_to_end(key)
            return list(bucket)

    def all_events(self) -> list[CanonicalEconomicEvent]:
        """Every cached event, newest event_date first."""
        with self._lock:
            events = [event for bucket in self._store.values() for event in bucket]
        return sorted(events, key=lambda e: e.event_date, reverse=True)

    def keys(self) -> list[CacheKey]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._store.keys())

    @property
    def size(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._store.values())

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                **self._stats,
                "keys": len(self._store),
                "size": sum(len(bucket) for bucket in self._store.values()),
                "capacity": self.capacity,
                "max_keys": self.max_keys,
            }

    def _touch(self, key: CacheKey) -> "deque[CanonicalEconomicEvent]":
        bucket = self._store.get(key)
        if bucket is not None:
            self._store.move_to_end(key)
            return bucket

        if len(self._store) >= self.max_keys:
            evicted_key, evicted = self._store.popitem(last=False)
            self._stats["evicted_keys"] += 1
            logger.debug(f"Evicted cache key {evicted_key} ({len(evicted)} events)")

        bucket = deque(maxlen=self.capacity)
        self._store[key] = bucket
        return bucket
