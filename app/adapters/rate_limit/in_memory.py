"""In-memory point-bucket rate limiter with block duration.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- State is kept for the process lifetime; identifiers are never evicted.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitProfile,
    RateLimitResult,
)


@dataclass
class _BucketState:
    remaining_points: int
    window_start: float
    blocked_until: float | None = None


class InMemoryRateLimiter(AbstractRateLimiter):
    """Rate limiter granting ``points`` per ``duration`` for each identifier.

    The window starts with the identifier's first request and is refilled
    once it has elapsed. A request that would take the balance below zero is
    rejected and the identifier is blocked for ``block_duration_seconds``;
    every request during the block is rejected without touching the window.
    When the block ends the identifier starts over with a full window.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        profile: RateLimitProfile,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            profile: Points, window and block duration to enforce.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If the profile values are invalid.
        """
        if profile.points < 1:
            raise ValueError("points must be >= 1")
        if profile.duration_seconds < 1:
            raise ValueError("duration_seconds must be >= 1")
        if profile.block_duration_seconds < 0:
            raise ValueError("block_duration_seconds must be >= 0")

        self.profile = profile
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_identifier: dict[str, _BucketState] = {}

    def _fresh_state(self, now: float) -> _BucketState:
        return _BucketState(remaining_points=self.profile.points, window_start=now)

    def _get_or_refill_state(self, identifier: str, now: float) -> _BucketState:
        """Return the identifier's bucket, refilling it when the window or block is over."""
        state = self._state_by_identifier.get(identifier)
        if state is None:
            state = self._fresh_state(now)
        elif state.blocked_until is not None:
            if now >= state.blocked_until:
                state = self._fresh_state(now)
        elif now - state.window_start >= self.profile.duration_seconds:
            state = self._fresh_state(now)
        self._state_by_identifier[identifier] = state
        return state

    def _window_end(self, state: _BucketState) -> float:
        return state.window_start + self.profile.duration_seconds

    def _build_allowed_result(self, *, state: _BucketState, now: float) -> RateLimitResult:
        """Build a RateLimitResult for an allowed request."""
        window_end = self._window_end(state)
        ms_before_next = 0 if state.remaining_points > 0 else int((window_end - now) * 1000)
        return RateLimitResult(
            allowed=True,
            limit=self.profile.points,
            remaining=state.remaining_points,
            reset_at=window_end,
            ms_before_next=ms_before_next,
        )

    def _build_blocked_result(self, *, until: float, now: float) -> RateLimitResult:
        """Build a RateLimitResult for a rejected request."""
        return RateLimitResult(
            allowed=False,
            limit=self.profile.points,
            remaining=0,
            reset_at=until,
            ms_before_next=max(0, int(round((until - now) * 1000))),
        )

    def consume(self, identifier: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided identifier.

        Args:
            identifier: Unique identifier for rate limiting.
            cost: Points to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If identifier is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not identifier:
            raise ValueError("identifier must be a non-empty string")

        with self._lock:
            now = self._clock()
            state = self._get_or_refill_state(identifier, now)

            if state.blocked_until is not None:
                return self._build_blocked_result(until=state.blocked_until, now=now)

            if state.remaining_points - cost >= 0:
                state.remaining_points -= cost
                return self._build_allowed_result(state=state, now=now)

            state.remaining_points = 0
            if self.profile.block_duration_seconds > 0:
                state.blocked_until = now + self.profile.block_duration_seconds
                return self._build_blocked_result(until=state.blocked_until, now=now)

            return self._build_blocked_result(until=self._window_end(state), now=now)

    def reset(self, identifier: str | None = None) -> None:
        with self._lock:
            if identifier is None:
                self._state_by_identifier.clear()
            else:
                self._state_by_identifier.pop(identifier, None)
