import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from cachetools import LRUCache

from .models import Entry
from .paths import normalize_path, parent_path

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    data: tuple[Entry, ...]
    expires_at: float


class PathCache:
    """
    Cache for directory listings keyed by canonical path.

    Bounded two ways: at most `max_entries` listings (least recently used is
    evicted first), and a listing not accessed for `ttl_seconds` is treated as
    absent on its next lookup. Expiry is lazy; there is no background sweep.

    The lock only guards the in-memory map and is never held across remote
    I/O, so population of unrelated paths is not serialized.
    """

    def __init__(
        self,
        max_entries: int = 1000,
        ttl_seconds: float = 600,
        timer: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._timer = timer
        self._cache: LRUCache = LRUCache(maxsize=max_entries)
        self._lock = threading.Lock()

    def get(self, path: str) -> list[Entry] | None:
        """
        Retrieve a directory listing if cached and not expired.

        A hit refreshes both the LRU position and the idle deadline.

        Args:
            path: The directory path to look up.

        Returns:
            A new list of the cached entries, or None on a miss.
        """
        path = normalize_path(path)
        with self._lock:
            entry = self._cache.get(path)
            if entry is None:
                logger.debug("cache: miss %s", path)
                return None
            now = self._timer()
            if now >= entry.expires_at:
                # Entry expired, remove it
                del self._cache[path]
                logger.debug("cache: expired %s", path)
                return None
            entry.expires_at = now + self.ttl_seconds
            return list(entry.data)

    def put(self, path: str, entries: Iterable[Entry]) -> None:
        """
        Cache a complete directory listing, replacing any previous one.

        Args:
            path: The directory path.
            entries: Every child of the directory, in remote order.
        """
        path = normalize_path(path)
        data = tuple(entries)
        with self._lock:
            expires_at = self._timer() + self.ttl_seconds
            self._cache[path] = CacheEntry(data=data, expires_at=expires_at)
        logger.debug("cache: insert %s (%d entries)", path, len(data))

    def invalidate(self, path: str) -> None:
        """Remove exactly one cached listing."""
        path = normalize_path(path)
        with self._lock:
            self._cache.pop(path, None)
        logger.debug("cache: invalidate %s", path)

    def invalidate_parent(self, path: str) -> None:
        """
        Invalidate the parent directory of a path (after a child was added,
        removed or renamed). No-op for the root.
        """
        parent = parent_path(path)
        if parent is not None:
            self.invalidate(parent)

    def invalidate_all(self) -> None:
        """Drop every cached listing."""
        with self._lock:
            self._cache.clear()
        logger.debug("cache: invalidate all")

    def __contains__(self, path: str) -> bool:
        # Does not touch LRU order and may report listings not yet lazily expired
        with self._lock:
            return normalize_path(path) in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
