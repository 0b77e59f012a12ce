"""TTL cache for fetched catalog pages."""

import time
from collections import OrderedDict
from typing import Callable, Optional
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config
from src.catalog.models import Page


class PageCache:
    """Simple TTL cache with max size limit, keyed by QueryDescriptor.cache_key()."""

    def __init__(
        self,
        maxsize: int = 256,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize cache.

        Args:
            maxsize: Maximum number of pages to cache
            ttl: Time-to-live in seconds. Defaults to config.
            clock: Time source, replaceable in tests
        """
        self.maxsize = maxsize
        self.ttl = ttl if ttl is not None else config.app.cache_ttl
        self.clock = clock
        self._cache: OrderedDict[str, tuple[float, Page]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._cache)

    def get(self, key: str) -> Optional[Page]:
        """Get page from cache if not expired."""
        if key not in self._cache:
            return None

        timestamp, page = self._cache[key]
        if self.clock() - timestamp > self.ttl:
            del self._cache[key]
            return None

        self._cache.move_to_end(key)
        return page

    def set(self, key: str, page: Page) -> None:
        """Set page in cache."""
        if key in self._cache:
            del self._cache[key]
        while len(self._cache) >= self.maxsize:
            self._cache.popitem(last=False)

        self._cache[key] = (self.clock(), page)

    def clear(self) -> None:
        self._cache.clear()

    def invalidate(self, fingerprint: str) -> int:
        """Drop every cached page of one query.

        Returns:
            Number of entries invalidated
        """
        prefix = f"{fingerprint}:"
        keys_to_remove = [k for k in self._cache if k.startswith(prefix)]
        for key in keys_to_remove:
            del self._cache[key]
        return len(keys_to_remove)
