"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapters into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency factory only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.
- One budget per endpoint class: api, auth, submission, admin.

Identifier strategy:
- First address in X-Forwarded-For when present.
- Otherwise every caller shares the "anonymous" bucket. This is a weak
  default (trivially bypassed and easily exhausted by one client) and
  not a security boundary; deployments must sit behind a proxy that sets
  X-Forwarded-For.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

ANONYMOUS_IDENTIFIER = "anonymous"


def build_rate_limit_identifier(request: Request) -> str:
    """Derive the limiter identifier for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: Client address from X-Forwarded-For, or the shared fallback.
    """

    forwarded = request.headers.get("x-forwarded-for", "")
    client = forwarded.split(",")[0].strip()
    return client or ANONYMOUS_IDENTIFIER


def _hash_identifier(identifier: str) -> str:
    """Hash the identifier for logging without exposing client addresses."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def build_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Headers sent with a 429 response."""
    reset = datetime.fromtimestamp(result.reset_at, tz=timezone.utc)
    return {
        "Retry-After": str(result.retry_after_seconds),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": reset.isoformat().replace("+00:00", "Z"),
    }


def enforce_rate_limit(
    limiter: AbstractRateLimiter,
    identifier: str,
    *,
    include_headers: bool = True,
) -> RateLimitResult:
    """Consume one point; raise RateLimitAppError when the budget is exhausted.

    Raises:
        RateLimitAppError: 429 Too Many Requests when rate limit is exceeded.
    """

    profile = limiter.profile
    result = limiter.consume(identifier)
    key_hash = _hash_identifier(identifier)

    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "profile": profile.name,
                "key_hash": key_hash,
                "anonymous": identifier == ANONYMOUS_IDENTIFIER,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return result

    retry_after = result.retry_after_seconds
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "profile": profile.name,
            "key_hash": key_hash,
            "anonymous": identifier == ANONYMOUS_IDENTIFIER,
            "limit": result.limit,
            "block_s": profile.block_duration_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if include_headers:
        headers = build_rate_limit_headers(result)

    raise RateLimitAppError(
        code="RATE_LIMITED",
        message="Too many requests",
        details={"retry_after": retry_after, "limit": result.limit},
        headers=headers,
    )


def rate_limit(profile_name: str) -> Callable[[Request], Awaitable[None]]:
    """Build a FastAPI dependency enforcing the named limiter profile.

    Usage:
        @router.get("/public", dependencies=[Depends(rate_limit("api"))])
    """

    async def dependency(request: Request) -> None:
        container = request.app.state.container
        app_settings = container.settings.app
        if not app_settings.rate_limit_enabled:
            return
        enforce_rate_limit(
            container.rate_limiters.get(profile_name),
            build_rate_limit_identifier(request),
            include_headers=app_settings.rate_limit_include_headers,
        )

    dependency.__name__ = f"rate_limit_{profile_name}"
    return dependency
