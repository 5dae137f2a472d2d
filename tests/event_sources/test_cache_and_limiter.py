"""
Tests for the Bounded Event Cache and Rate Limiter.

============================================================
PURPOSE
============================================================
1. Cache keys, per-key capacity and LRU key eviction
2. Sliding-window rate limiting under a fake clock
3. Shared limiter registry

============================================================
"""

import pytest
from datetime import datetime, timedelta, timezone

from event_sources.cache import BoundedEventCache, infer_data_type
from event_sources.rate_limiter import RateLimiter, get_rate_limiter, reset_rate_limiters
from normalization.models import CanonicalEconomicEvent, DataType, Impact, Sentiment


# ============================================================
# FIXTURES
# ============================================================

BASE = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_event(currency="USD", title="CPI m/m", event_type="CPI_HEADLINE", hours=0):
    return CanonicalEconomicEvent(
        currency=currency,
        event_type=event_type,
        title=title,
        event_date=BASE + timedelta(hours=hours),
        impact=Impact.MEDIUM,
        sentiment=Sentiment.NEUTRAL,
        confidence_score=60.0,
        source="Forex Factory",
    )


class FakeTime:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 1000.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture(autouse=True)
def clean_limiters():
    reset_rate_limiters()
    yield
    reset_rate_limiters()


# ============================================================
# CACHE TESTS
# ============================================================

class TestBoundedEventCache:
    """Per-key deques with documented capacity."""

    def test_keys_by_currency_and_type(self):
        cache = BoundedEventCache()
        cache.add([make_event("USD"), make_event("EUR")])
        cache.add([make_event("USD", title="Fed headline", event_type="NEWS")])

        assert len(cache.get("usd", DataType.ECONOMIC_EVENT)) == 1
        assert len(cache.get("USD", DataType.NEWS)) == 1
        assert cache.get("JPY", DataType.NEWS) == []

    def test_explicit_data_type_wins(self):
        cache = BoundedEventCache()
        cache.add([make_event("GBP")], data_type=DataType.NEWS)

        assert cache.get("GBP", DataType.ECONOMIC_EVENT) == []
        assert len(cache.get("GBP", DataType.NEWS)) == 1

    def test_oldest_evicted_when_full(self):
        cache = BoundedEventCache(capacity=2)
        added = cache.add([make_event(title=f"E{i}", hours=i) for i in range(3)])

        assert added == 3
        assert [e.title for e in cache.get("USD", DataType.ECONOMIC_EVENT)] == ["E1", "E2"]
        assert cache.stats()["evicted_events"] == 1
        assert cache.size == 2

    def test_least_recently_used_key_evicted(self):
        cache = BoundedEventCache(max_keys=2)
        cache.add([make_event("USD")])
        cache.add([make_event("EUR")])
        cache.get("USD", DataType.ECONOMIC_EVENT)
        cache.add([make_event("JPY")])

        assert cache.keys() == [
            ("USD", DataType.ECONOMIC_EVENT),
            ("JPY", DataType.ECONOMIC_EVENT),
        ]
        assert cache.stats()["evicted_keys"] == 1

    def test_all_events_newest_first(self):
        cache = BoundedEventCache()
        cache.add([make_event("USD", title="old", hours=-5), make_event("EUR", title="new", hours=3)])

        assert [e.title for e in cache.all_events()] == ["new", "old"]

    def test_clear_and_stats(self):
        cache = BoundedEventCache(capacity=10, max_keys=5)
        cache.add([make_event()])
        cache.clear()

        stats = cache.stats()
        assert stats["size"] == 0
        assert stats["keys"] == 0
        assert stats["added"] == 1
        assert stats["capacity"] == 10
        assert stats["max_keys"] == 5

    @pytest.mark.parametrize("capacity,max_keys", [(0, 1), (1, 0)])
    def test_rejects_zero_bounds(self, capacity, max_keys):
        with pytest.raises(ValueError):
            BoundedEventCache(capacity=capacity, max_keys=max_keys)

    def test_infer_data_type(self):
        assert infer_data_type(make_event(event_type="NEWS")) is DataType.NEWS
        assert infer_data_type(make_event()) is DataType.ECONOMIC_EVENT


# ============================================================
# RATE LIMITER TESTS
# ============================================================

class TestRateLimiter:
    """Sliding 60 second window."""

    @pytest.mark.asyncio
    async def test_within_budget_does_not_wait(self, fake_time):
        limiter = RateLimiter(3, name="test", time_func=fake_time, sleep=fake_time.sleep)

        for _ in range(3):
            assert await limiter.acquire() == 0.0

        assert fake_time.sleeps == []
        assert limiter.remaining() == 0

    @pytest.mark.asyncio
    async def test_waits_for_oldest_to_leave_window(self, fake_time):
        limiter = RateLimiter(2, name="test", time_func=fake_time, sleep=fake_time.sleep)

        await limiter.acquire()
        fake_time.now += 10
        await limiter.acquire()
        waited = await limiter.acquire()

        assert waited == pytest.approx(50.0)
        stats = limiter.get_stats()
        assert stats["throttled_requests"] == 1
        assert stats["total_wait_seconds"] == pytest.approx(50.0)

    @pytest.mark.asyncio
    async def test_window_slides(self, fake_time):
        limiter = RateLimiter(1, name="test", time_func=fake_time, sleep=fake_time.sleep)

        await limiter.acquire()
        fake_time.now += 61

        assert limiter.remaining() == 1
        assert await limiter.acquire() == 0.0

    @pytest.mark.asyncio
    async def test_reset(self, fake_time):
        limiter = RateLimiter(1, name="test", time_func=fake_time, sleep=fake_time.sleep)
        await limiter.acquire()
        limiter.reset()
        assert limiter.remaining() == 1

    def test_rejects_zero_rpm(self):
        with pytest.raises(ValueError):
            RateLimiter(0)


class TestLimiterRegistry:
    """One shared limiter per API name."""

    def test_shared_by_name(self):
        assert get_rate_limiter("fred", 120) is get_rate_limiter("fred", 120)
        assert get_rate_limiter("fred", 120) is not get_rate_limiter("newsapi", 120)

    def test_replaced_when_rpm_changes(self):
        first = get_rate_limiter("fred", 120)
        second = get_rate_limiter("fred", 30)

        assert second is not first
        assert second.requests_per_minute == 30
