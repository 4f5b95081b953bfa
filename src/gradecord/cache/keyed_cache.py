"""
Keyed in-memory cache with time-based and token-linked expiration.

Provides a string-keyed cache for channel listings and derived channel records.
Each entry may expire after a fixed duration, when the :class:`ExpirationToken`
it is linked to is expired, or whichever of the two happens first. Linking a
group of entries to one token lets a single trigger evict the whole group
without enumerating its keys.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from gradecord.util.logger import get_logger

logger = get_logger("keyed_cache")


class ExpirationToken:
    """
    Shared invalidation trigger for a group of cache entries.

    Once :meth:`expire` is called every entry linked to the token is absent
    from subsequent reads. Tokens are single-use; install a fresh one to start
    a new group.
    """

    __slots__ = ("_expired", "name")

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._expired = False

    @property
    def expired(self) -> bool:
        return self._expired

    def expire(self) -> None:
        self._expired = True

    def __repr__(self) -> str:
        return f"ExpirationToken(name={self.name!r}, expired={self._expired})"


@dataclass(slots=True)
class _CacheEntry:
    value: Any
    expires_at: Optional[float]
    token: Optional[ExpirationToken]

    def is_expired(self, now: float) -> bool:
        if self.token is not None and self.token.expired:
            return True
        return self.expires_at is not None and now >= self.expires_at


class KeyedCache:
    """
    String-keyed cache for arbitrary values.

    Expired entries are dropped lazily when read and in bulk by
    :meth:`purge_expired`. There is no size bound; callers keep the key space
    small (it is bounded by the guild's channel count here).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the cache.

        Args:
            clock: Monotonic time source in seconds, injectable for tests.
        """
        self._entries: Dict[str, _CacheEntry] = {}
        self._clock = clock

    def try_get(self, key: str) -> Tuple[Any, bool]:
        """
        Look up a cached value.

        Args:
            key: Cache key.

        Returns:
            ``(value, True)`` on a hit, ``(None, False)`` when absent or expired.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None, False

        if entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug("[CACHE] Expired key: %s", key)
            return None, False

        logger.debug("[CACHE] Hit for key: %s", key)
        return entry.value, True

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value for ``key`` or ``default``."""
        value, found = self.try_get(key)
        return value if found else default

    def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: Optional[float] = None,
        token: Optional[ExpirationToken] = None,
    ) -> None:
        """
        Store a value.

        Args:
            key: Cache key.
            value: Value to cache; replaces any existing entry.
            ttl: Lifetime in seconds from now, or ``None`` for no time limit.
            token: Group token the entry is linked to, or ``None``.

        Raises:
            ValueError: If ``ttl`` is not positive.
        """
        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")

        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at, token=token)
        logger.debug("[CACHE] Set key: %s", key)

    def remove(self, key: str) -> bool:
        """
        Evict one entry.

        Returns:
            True if a live entry was removed, False otherwise.
        """
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        return not entry.is_expired(self._clock())

    def clear(self) -> int:
        """Drop every entry and return how many were held."""
        count = len(self._entries)
        self._entries.clear()
        logger.debug("[CACHE] Cleared all %d entries", count)
        return count

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("[CACHE] Purged %d expired entries", len(expired))
        return len(expired)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self.try_get(key)[1]

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._entries.values() if not entry.is_expired(now))
