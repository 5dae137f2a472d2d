"""
Strength history - previous results used as the trend baseline.

The aggregator only needs two operations: read the latest stored
strength for a currency and record a new result. Implementations
must never raise into the aggregator; failures are logged and read
as "no previous value".
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .strength_score import CurrencyStrengthResult


logger = logging.getLogger(__name__)


class StrengthHistory(ABC):
    """Read/write collaborator for past strength results."""

    @abstractmethod
    def get_previous_strength(self, currency: str) -> Optional[float]:
        """Latest stored strength score for the currency, if any."""
        pass

    @abstractmethod
    def record(self, result: "CurrencyStrengthResult") -> None:
        """Store a freshly computed result."""
        pass

    @abstractmethod
    def get_history(self, currency: str, limit: int = 20) -> list["CurrencyStrengthResult"]:
        """Stored results for the currency, newest first."""
        pass


class InMemoryStrengthHistory(StrengthHistory):
    """
    Process-local history.

    Keeps at most `max_per_currency` results per currency.
    """

    def __init__(self, max_per_currency: int = 500) -> None:
        self.max_per_currency = max_per_currency
        self._results: dict[str, deque] = defaultdict(lambda: deque(maxlen=self.max_per_currency))
        self._lock = threading.Lock()

    def get_previous_strength(self, currency: str) -> Optional[float]:
        with self._lock:
            results = self._results.get(currency)
            if not results:
                return None
            return results[-1].strength_score

    def record(self, result: "CurrencyStrengthResult") -> None:
        with self._lock:
            self._results[result.currency].append(result)

    def get_history(self, currency: str, limit: int = 20) -> list["CurrencyStrengthResult"]:
        with self._lock:
            results = list(self._results.get(currency, ()))
        return list(reversed(results))[:limit]

    def clear(self) -> None:
        with self._lock:
            self._results.clear()
