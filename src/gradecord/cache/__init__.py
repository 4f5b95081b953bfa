"""In-memory caching primitives."""

from gradecord.cache.keyed_cache import ExpirationToken, KeyedCache

__all__ = ["ExpirationToken", "KeyedCache"]
