"""Cache key construction, TTL profiles and prefix-based invalidation.

Keys are ``<entity>:<namespace>:<page>:<limit>``. A write to an entity drops
every cached page for that entity instead of working out which pages moved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)

COLLABORATORS_PREFIX = "collaborators:"
INNOVATORS_PREFIX = "innovators:"
ADMIN_STATS_KEY = "admin:stats"


@dataclass(frozen=True)
class CacheTTL:
    """TTL profiles in seconds."""

    public: int = 300
    admin: int = 60
    user: int = 120
    static: int = 3600


def public_collaborators_key(page: int = 1, limit: int = 10) -> str:
    return f"{COLLABORATORS_PREFIX}public:{page}:{limit}"


def public_innovators_key(page: int = 1, limit: int = 10) -> str:
    return f"{INNOVATORS_PREFIX}public:{page}:{limit}"


def admin_stats_key() -> str:
    return ADMIN_STATS_KEY


class CacheInvalidator:
    """Bulk invalidation helpers bound to one cache instance."""

    def __init__(self, cache: SimpleTTLCache) -> None:
        self._cache = cache

    def invalidate_collaborators(self) -> int:
        return self._cache.invalidate_prefix(COLLABORATORS_PREFIX)

    def invalidate_innovators(self) -> int:
        return self._cache.invalidate_prefix(INNOVATORS_PREFIX)

    def invalidate_admin_stats(self) -> None:
        self._cache.delete(ADMIN_STATS_KEY)
        logger.debug("cache.admin_stats_invalidated")
