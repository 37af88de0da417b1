# distribution_hub/cache.py
"""
Query cache for listing and detail views.

Entries are keyed by (entity type, key) where key is a filter set, an id or
nothing. The facade invalidates entries explicitly after each successful
write; TTL only bounds how stale an entry can get from writes made elsewhere.
Expired entries are swept on every write, and the oldest entry is evicted
once `max_entries` is reached.
"""
from __future__ import annotations
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

from pydantic import BaseModel

logger = logging.getLogger(__name__)

_MISSING = object()
_ALL = object()


def cache_key(value: Any) -> Hashable:
    """Normalize a filter model / id / None into a hashable key."""
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return value.model_dump_json(exclude_none=True)
    return value


class QueryCache:
    def __init__(
        self,
        default_ttl: float = 30.0,
        ttl_by_entity: Optional[Dict[str, float]] = None,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 1024,
    ):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.ttl_by_entity = dict(ttl_by_entity or {})
        self._clock = clock
        self._entries: Dict[Tuple[str, Hashable], Tuple[float, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _ttl(self, entity: str) -> float:
        return self.ttl_by_entity.get(entity, self.default_ttl)

    def get(self, entity: str, key: Any = None, default: Any = None) -> Any:
        k = (entity, cache_key(key))
        entry = self._entries.get(k)
        if entry is None:
            return default
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[k]
            return default
        return value

    def set(self, entity: str, key: Any, value: Any) -> None:
        ttl = self._ttl(entity)
        if ttl <= 0:
            return
        now = self._clock()
        self._sweep(now)
        k = (entity, cache_key(key))
        self._entries.pop(k, None)
        while len(self._entries) >= self.max_entries:
            # dicts keep insertion order, so the first entry is the oldest
            del self._entries[next(iter(self._entries))]
        self._entries[k] = (now + ttl, value)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for k in expired:
            del self._entries[k]

    async def get_or_load(self, entity: str, key: Any, loader: Callable[[], Awaitable[Any]]) -> Any:
        value = self.get(entity, key, _MISSING)
        if value is not _MISSING:
            return value
        value = await loader()
        self.set(entity, key, value)
        return value

    def invalidate(self, entity: str, key: Any = _ALL) -> int:
        """Drop one entry, or every entry of the entity when no key is given."""
        if key is _ALL:
            doomed = [k for k in self._entries if k[0] == entity]
        else:
            doomed = [(entity, cache_key(key))]
        removed = 0
        for k in doomed:
            if self._entries.pop(k, None) is not None:
                removed += 1
        if removed:
            logger.debug("Invalidated %d cached %s view(s)", removed, entity)
        return removed

    def clear(self) -> None:
        self._entries.clear()


def build_query_cache(settings) -> QueryCache:
    return QueryCache(
        default_ttl=settings.LIST_CACHE_TTL_SECONDS,
        ttl_by_entity={"product-stats": settings.STATS_CACHE_TTL_SECONDS},
        max_entries=settings.CACHE_MAX_ENTRIES,
    )
