#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Memoisation tables keyed by exact value.

Redlines:
  - Write-once: the first value stored under a key wins; later puts return it.
  - Entries are never mutated; only clear() removes them.
  - enabled=False turns every lookup into a miss and every put into a pass-through.
    No result may depend on whether the cache is on.
  - One lock guards all tables. It is the only synchronisation point of the core.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple

from universe_errors import MathUniverseError

_logger = logging.getLogger(__name__)

CACHE_TABLES: Tuple[str, ...] = ("patterns", "resonances", "primality", "factorizations")

_MISSING = object()


@dataclass(frozen=True)
class CacheStats:
    enabled: bool
    hits: int
    misses: int
    sizes: Dict[str, int]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "enabled": bool(self.enabled),
            "hits": int(self.hits),
            "misses": int(self.misses),
            "sizes": dict(self.sizes),
        }


class ResultCache:
    def __init__(self, enabled: bool = True):
        self.enabled = bool(enabled)
        self._lock = threading.Lock()
        self._tables: Dict[str, Dict[int, Any]] = {name: {} for name in CACHE_TABLES}
        self._hits = 0
        self._misses = 0

    def _table(self, table: str) -> Dict[int, Any]:
        try:
            return self._tables[table]
        except KeyError:
            raise MathUniverseError(f"unknown cache table {table!r}; known {list(CACHE_TABLES)}") from None

    def get(self, table: str, key: int, default: Any = None) -> Any:
        tab = self._table(table)
        if not self.enabled:
            return default
        with self._lock:
            value = tab.get(key, _MISSING)
            if value is _MISSING:
                self._misses += 1
                return default
            self._hits += 1
            return value

    def put(self, table: str, key: int, value: Any) -> Any:
        """Store value unless the key is already present. Returns the stored value."""
        tab = self._table(table)
        if not self.enabled:
            return value
        with self._lock:
            existing = tab.get(key, _MISSING)
            if existing is not _MISSING:
                return existing
            tab[key] = value
            return value

    def get_or_compute(self, table: str, key: int, compute: Callable[[], Any]) -> Any:
        """
        Lookup, else compute outside the lock and store write-once.

        Two racing threads may both compute; the first put wins and both callers
        get the same stored object back.
        """
        value = self.get(table, key, _MISSING)
        if value is not _MISSING:
            return value
        return self.put(table, key, compute())

    def clear(self) -> None:
        with self._lock:
            for tab in self._tables.values():
                tab.clear()
            self._hits = 0
            self._misses = 0
        _logger.debug("result cache cleared")

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                enabled=self.enabled,
                hits=self._hits,
                misses=self._misses,
                sizes={name: len(tab) for name, tab in self._tables.items()},
            )
