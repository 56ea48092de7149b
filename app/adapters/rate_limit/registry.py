"""One limiter per endpoint class, built from settings."""

from __future__ import annotations

import time
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitProfile
from app.adapters.rate_limit.in_memory import InMemoryRateLimiter
from app.core.config import AppSettings

PROFILE_NAMES = ("api", "auth", "submission", "admin")


def build_profiles(app_settings: AppSettings) -> dict[str, RateLimitProfile]:
    """Read the four limiter profiles from ``APP_RATE_LIMIT_<NAME>_*`` settings."""

    profiles: dict[str, RateLimitProfile] = {}
    for name in PROFILE_NAMES:
        profiles[name] = RateLimitProfile(
            name=name,
            points=getattr(app_settings, f"rate_limit_{name}_points"),
            duration_seconds=getattr(app_settings, f"rate_limit_{name}_duration_seconds"),
            block_duration_seconds=getattr(app_settings, f"rate_limit_{name}_block_seconds"),
        )
    return profiles


class RateLimiterRegistry:
    """Holds the limiter for each profile name."""

    def __init__(
        self,
        profiles: dict[str, RateLimitProfile],
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._limiters: dict[str, AbstractRateLimiter] = {
            name: InMemoryRateLimiter(profile, clock=clock)
            for name, profile in profiles.items()
        }

    def get(self, name: str) -> AbstractRateLimiter:
        try:
            return self._limiters[name]
        except KeyError:
            raise KeyError(f"Unknown rate limit profile: {name}") from None

    def reset(self) -> None:
        for limiter in self._limiters.values():
            limiter.reset()
