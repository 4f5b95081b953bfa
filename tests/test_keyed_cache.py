import pytest

from gradecord.cache.keyed_cache import ExpirationToken, KeyedCache


def test_try_get_hit_and_miss(clock):
    cache = KeyedCache(clock=clock)
    cache.set("a", [1, 2, 3])

    assert cache.try_get("a") == ([1, 2, 3], True)
    assert cache.try_get("missing") == (None, False)
    assert cache.get("missing", "fallback") == "fallback"


def test_cached_none_is_still_a_hit(clock):
    cache = KeyedCache(clock=clock)
    cache.set("nothing", None)

    assert cache.try_get("nothing") == (None, True)
    assert "nothing" in cache


def test_ttl_expiry(clock):
    cache = KeyedCache(clock=clock)
    cache.set("a", "value", ttl=600)

    clock.advance(599)
    assert cache.get("a") == "value"

    clock.advance(1)
    assert cache.try_get("a") == (None, False)
    assert len(cache) == 0


def test_token_expires_whole_group(clock):
    cache = KeyedCache(clock=clock)
    token = ExpirationToken("group")
    cache.set("one", 1, token=token)
    cache.set("two", 2, ttl=600, token=token)
    cache.set("other", 3, ttl=600)

    token.expire()

    assert token.expired
    assert "one" not in cache
    assert "two" not in cache
    assert cache.get("other") == 3


def test_entry_expires_on_whichever_comes_first(clock):
    cache = KeyedCache(clock=clock)
    token = ExpirationToken()
    cache.set("a", 1, ttl=10, token=token)

    clock.advance(10)
    assert "a" not in cache
    assert not token.expired


def test_set_replaces_entry_and_its_expiration(clock):
    cache = KeyedCache(clock=clock)
    old_token = ExpirationToken()
    cache.set("a", "old", token=old_token)
    cache.set("a", "new", ttl=5)

    old_token.expire()
    assert cache.get("a") == "new"


def test_remove_and_clear(clock):
    cache = KeyedCache(clock=clock)
    cache.set("a", 1)
    cache.set("b", 2, ttl=1)

    assert cache.remove("a") is True
    assert cache.remove("a") is False

    clock.advance(1)
    assert cache.remove("b") is False

    cache.set("c", 3)
    assert cache.clear() == 1
    assert len(cache) == 0


def test_purge_expired(clock):
    cache = KeyedCache(clock=clock)
    token = ExpirationToken()
    cache.set("ttl", 1, ttl=1)
    cache.set("linked", 2, token=token)
    cache.set("kept", 3)

    clock.advance(2)
    token.expire()

    assert cache.purge_expired() == 2
    assert len(cache) == 1


def test_rejects_non_positive_ttl(clock):
    cache = KeyedCache(clock=clock)
    with pytest.raises(ValueError):
        cache.set("a", 1, ttl=0)


def test_non_string_keys_are_never_contained(clock):
    cache = KeyedCache(clock=clock)
    cache.set("1", "value")
    assert 1 not in cache
