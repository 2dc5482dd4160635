"""
In-process TTL caches with tag invalidation.

Each namespace holds key -> (expires_at_epoch, tags, data). A tag like
"leaderboard:3" can be dropped from every namespace at once.
"""

import logging
import time
from typing import Any, Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


def _now() -> float:
    return time.time()


class TaggedTTLCache:
    def __init__(self, namespace: str, ttl_seconds: int = 120):
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[Tuple[Any, ...], Tuple[float, frozenset, Any]] = {}

    def get(self, key: Tuple[Any, ...]) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, _, data = entry
        if expires_at <= _now():
            self._entries.pop(key, None)
            return None
        return data

    def set(
        self,
        key: Tuple[Any, ...],
        value: Any,
        tags: Iterable[str] = (),
        ttl_seconds: Optional[int] = None,
    ) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[key] = (_now() + ttl, frozenset(tags), value)

    def invalidate(self, tag: str) -> int:
        stale = [key for key, (_, tags, _) in self._entries.items() if tag in tags]
        for key in stale:
            self._entries.pop(key, None)
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()


_CACHES: Dict[str, TaggedTTLCache] = {}


def cache_for(namespace: str) -> TaggedTTLCache:
    if namespace not in _CACHES:
        _CACHES[namespace] = TaggedTTLCache(namespace)
    return _CACHES[namespace]


def invalidate_tag(tag: str) -> None:
    """Fire-and-forget: a failing invalidation is logged, never raised."""
    for cache in list(_CACHES.values()):
        try:
            dropped = cache.invalidate(tag)
            if dropped:
                logger.debug("Invalidated %d %s entries for tag %s", dropped, cache.namespace, tag)
        except Exception:
            logger.exception("Cache invalidation failed for tag %s in %s", tag, cache.namespace)


def leaderboard_tag(league_id: int) -> str:
    return f"leaderboard:{league_id}"


def picks_tag(category: str, event_id: int) -> str:
    return f"picks:{category}:{event_id}"


leaderboard_cache = cache_for("leaderboard")
picks_cache = cache_for("picks")
