"""In-process TTL cache for recommendation results.

One entry per subject movie id, held in a ``cachetools.TTLCache``. Entries
expire lazily: a read past the expiry time reports a miss and the entry is
dropped on the next write or ``len``. There is no size bound; with one
entry per requested movie that is acceptable for a single instance but
worth revisiting before running at scale.
"""

from __future__ import annotations

import math
import os
import threading
import time
from typing import Callable, Optional

from cachetools import TTLCache
from loguru import logger

from ..models import RecommendationResult

DEFAULT_TTL_SECONDS = 6 * 60 * 60


class RecommendationCache:
    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds > 0 else 0
        self.clock = clock
        # TTLCache needs a positive ttl even when caching is disabled.
        self._entries: TTLCache = TTLCache(maxsize=math.inf, ttl=self.ttl_seconds or 1, timer=clock)
        # Routes run on a threadpool; TTLCache itself is not thread-safe.
        self._lock = threading.RLock()

    @classmethod
    def from_env(cls) -> "RecommendationCache":
        raw = os.environ.get("RECOMMENDATIONS_CACHE_TTL_SECONDS")
        if raw is None or raw == "":
            return cls(DEFAULT_TTL_SECONDS)
        try:
            ttl = float(raw)
        except ValueError:
            logger.warning("[Cache] RECOMMENDATIONS_CACHE_TTL_SECONDS is not a number; caching disabled")
            ttl = 0
        return cls(ttl)

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, key: int) -> Optional[RecommendationResult]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: int, value: RecommendationResult) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)
