"""Tests for the TTL cache and its sweeper."""

import pytest

from ledgerkit.utils.cache import CacheSweeper, TTLCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def test_entries_expire_after_ttl(clock):
    """Test that entries are served until their TTL passes."""
    cache = TTLCache(ttl_seconds=30, clock=clock)
    cache.set(("all-time", None), "report")

    clock.advance(29)
    assert cache.get(("all-time", None)) == "report"

    clock.advance(1)
    assert cache.get(("all-time", None)) is None
    assert len(cache) == 0


def test_purge_expired_removes_only_old_entries(clock):
    """Test that purging keeps live entries."""
    cache = TTLCache(ttl_seconds=30, clock=clock)
    cache.set("old", 1)
    clock.advance(20)
    cache.set("new", 2)
    clock.advance(15)

    assert cache.purge_expired() == 1
    assert cache.get("new") == 2
    assert len(cache) == 1


def test_delete_and_clear(clock):
    """Test explicit invalidation."""
    cache = TTLCache(clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)

    cache.delete("a")
    cache.delete("missing")
    assert cache.get("a") is None

    cache.clear()
    assert len(cache) == 0


def test_ttl_must_be_positive():
    """Test that a zero TTL is rejected."""
    with pytest.raises(ValueError):
        TTLCache(ttl_seconds=0)


class TestCacheSweeper:
    """Tests for the background sweeper lifecycle."""

    def test_sweep_once_purges(self, clock):
        """Test a single sweep pass."""
        cache = TTLCache(ttl_seconds=1, clock=clock)
        cache.set("a", 1)
        clock.advance(2)

        assert CacheSweeper(cache).sweep_once() == 1
        assert len(cache) == 0

    def test_start_and_stop(self):
        """Test that the sweeper thread starts once and stops cleanly."""
        sweeper = CacheSweeper(TTLCache(), interval_seconds=0.01)

        sweeper.start()
        sweeper.start()
        assert sweeper.is_running

        sweeper.stop()
        assert not sweeper.is_running

    def test_context_manager(self):
        """Test that leaving the block stops the sweeper."""
        with CacheSweeper(TTLCache(), interval_seconds=0.01) as sweeper:
            assert sweeper.is_running
        assert not sweeper.is_running

    def test_background_sweep_purges(self, clock):
        """Test that the running thread purges expired entries."""
        import threading

        cache = TTLCache(ttl_seconds=1, clock=clock)
        cache.set("a", 1)
        clock.advance(5)
        swept = threading.Event()

        class RecordingSweeper(CacheSweeper):
            def sweep_once(self):
                purged = super().sweep_once()
                swept.set()
                return purged

        with RecordingSweeper(cache, interval_seconds=0.01):
            assert swept.wait(2.0)
        assert len(cache) == 0
