"""In-process cache of composed settlement scores.

Composition is pure, so a result is fully determined by the settlement, the
weights version and the metrics fingerprint. The cache is keyed on exactly
that triple; it is cleared whenever the weights are saved.
"""

import threading
from collections import OrderedDict
from typing import Callable

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.readiness.types import ComposedScores, SettlementMetrics, WeightSet

logger = get_logger(__name__)

CacheKey = tuple[str, str, str]


class ScoreCache:
    """Bounded, thread-safe LRU cache for composed scores."""

    def __init__(self, maxsize: int = 512):
        self.maxsize = maxsize
        self._entries: OrderedDict[CacheKey, ComposedScores] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def key_for(weights: WeightSet, metrics: SettlementMetrics) -> CacheKey:
        return (metrics.settlement, weights.version, metrics.fingerprint)

    def get_or_compute(
        self,
        weights: WeightSet,
        metrics: SettlementMetrics,
        compute: Callable[[WeightSet, SettlementMetrics], ComposedScores],
    ) -> ComposedScores:
        """Return the cached scores for (weights, metrics), computing on miss."""
        key = self.key_for(weights, metrics)

        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                self.hits += 1
                return cached
            self.misses += 1

        # Computed outside the lock; concurrent misses on one key yield equal values
        result = compute(weights, metrics)

        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)

        return result

    def clear(self) -> None:
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
        logger.debug(f"Cleared score cache ({size} entries)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_cache: ScoreCache | None = None
_cache_lock = threading.Lock()


def get_score_cache() -> ScoreCache:
    """Get the process-wide score cache (created on first use)."""
    global _cache
    with _cache_lock:
        if _cache is None:
            _cache = ScoreCache(maxsize=get_settings().READINESS_CACHE_SIZE)
        return _cache


def invalidate_score_cache() -> None:
    """Drop every cached score. Called after the weights change."""
    get_score_cache().clear()
