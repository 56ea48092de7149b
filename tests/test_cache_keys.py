"""Tests for cache key builders and prefix invalidation."""

from app.utils.cache_keys import (
    ADMIN_STATS_KEY,
    CacheInvalidator,
    CacheTTL,
    admin_stats_key,
    public_collaborators_key,
    public_innovators_key,
)
from app.utils.simple_cache import SimpleTTLCache


def test_key_formats() -> None:
    assert public_collaborators_key(2, 10) == "collaborators:public:2:10"
    assert public_collaborators_key() == "collaborators:public:1:10"
    assert public_innovators_key(1, 50) == "innovators:public:1:50"
    assert admin_stats_key() == "admin:stats"


def test_ttl_profiles() -> None:
    ttl = CacheTTL()
    assert (ttl.public, ttl.admin, ttl.user, ttl.static) == (300, 60, 120, 3600)


def test_invalidate_collaborators_leaves_other_namespaces() -> None:
    cache = SimpleTTLCache()
    cache.set(public_collaborators_key(1, 10), "page-1")
    cache.set(public_collaborators_key(2, 10), "page-2")
    cache.set(public_innovators_key(1, 10), "innovators")
    cache.set(ADMIN_STATS_KEY, "stats")

    removed = CacheInvalidator(cache).invalidate_collaborators()

    assert removed == 2
    assert cache.get(public_collaborators_key(1, 10)) is None
    assert cache.get(public_innovators_key(1, 10)) == "innovators"
    assert cache.get(ADMIN_STATS_KEY) == "stats"


def test_invalidate_innovators_and_admin_stats() -> None:
    cache = SimpleTTLCache()
    cache.set(public_innovators_key(1, 10), "innovators")
    cache.set(public_collaborators_key(1, 10), "collaborators")
    cache.set(ADMIN_STATS_KEY, "stats")

    invalidator = CacheInvalidator(cache)
    assert invalidator.invalidate_innovators() == 1
    invalidator.invalidate_admin_stats()

    assert cache.keys() == [public_collaborators_key(1, 10)]
