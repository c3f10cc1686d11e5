"""In-memory LRU cache for analytics reports.

A report is only reusable while everything it was derived from is
unchanged, so the key names all of it: the portfolio, its ledger version,
the price snapshot and the range token.  Any ledger write must call
:meth:`AnalyticsCache.invalidate` for the affected portfolio; a miss always
triggers a full recomputation.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from folio.config.defaults import CACHE_DEFAULTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyticsCacheKey:
    portfolio_id: int
    ledger_version: Hashable
    price_timestamp: str
    range_token: str


class AnalyticsCache:
    """Thread-safe LRU keyed by :class:`AnalyticsCacheKey`.

    Parameters:
        max_entries: Capacity before least-recently-used entries are evicted.
        enabled: When False every lookup misses and nothing is stored.
    """

    def __init__(
        self,
        max_entries: int = CACHE_DEFAULTS["max_entries"],
        enabled: bool = CACHE_DEFAULTS["enabled"],
    ) -> None:
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.max_entries = max_entries
        self.enabled = enabled
        self._entries: OrderedDict[AnalyticsCacheKey, Any] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: AnalyticsCacheKey) -> Any | None:
        with self._lock:
            if not self.enabled or key not in self._entries:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]

    def put(self, key: AnalyticsCacheKey, value: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted analytics for %s", evicted)

    def get_or_compute(self, key: AnalyticsCacheKey, compute: Callable[[], Any]) -> Any:
        """Cached value for *key*, computing and storing it on a miss."""
        cached = self.get(key)
        if cached is not None:
            logger.debug("Analytics cache hit: %s", key)
            return cached
        logger.debug("Analytics cache miss: %s", key)
        value = compute()
        self.put(key, value)
        return value

    def invalidate(self, portfolio_id: int) -> int:
        """Drop every entry for a portfolio; returns how many were removed."""
        with self._lock:
            stale = [k for k in self._entries if k.portfolio_id == portfolio_id]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("Invalidated %d analytics entries for portfolio %s", len(stale), portfolio_id)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}

    def __len__(self) -> int:
        return len(self._entries)
