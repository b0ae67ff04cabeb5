"""Short-lived in-process result cache with an owned sweep thread."""

import logging
import threading
import time
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30.0


class TTLCache:
    """Key/value cache whose entries expire after a fixed time-to-live.

    Expired entries are never returned; they are physically removed by
    purge_expired(), usually from a CacheSweeper.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize cache.

        Args:
            ttl_seconds: Lifetime of an entry in seconds
            clock: Monotonic time source, injectable for tests
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        """Remove expired entries. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CacheSweeper:
    """Background thread that periodically purges expired cache entries.

    Usage:
        sweeper = CacheSweeper(cache, interval_seconds=60)
        sweeper.start()
        ...
        sweeper.stop()
    """

    def __init__(self, cache: TTLCache, interval_seconds: float = 60.0):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start sweeping. Calling start on a running sweeper is a no-op."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="ledgerkit-cache-sweeper", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop sweeping and wait for the thread to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def sweep_once(self) -> int:
        purged = self.cache.purge_expired()
        if purged:
            logger.debug("Purged %d expired cache entries", purged)
        return purged

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            self.sweep_once()

    def __enter__(self) -> "CacheSweeper":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
