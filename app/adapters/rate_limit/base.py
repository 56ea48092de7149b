"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitProfile:
    """Budget definition for one class of endpoints.

    Attributes:
        name: Profile name (api, auth, submission, admin).
        points: Requests allowed per window.
        duration_seconds: Length of the refill window.
        block_duration_seconds: How long an identifier stays blocked after
            exceeding its budget.
    """

    name: str
    points: int
    duration_seconds: int
    block_duration_seconds: int


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Points per window.
        remaining: Remaining points (0 when rejected).
        reset_at: UNIX epoch seconds when the window resets or the block ends.
        ms_before_next: Milliseconds until the next request can succeed.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    ms_before_next: int

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds a rejected caller should wait (at least 1)."""
        return max(1, math.ceil(self.ms_before_next / 1000))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    profile: RateLimitProfile

    @abstractmethod
    def consume(self, identifier: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given identifier.

        Args:
            identifier: Unique caller identifier (e.g., client address).
            cost: Points to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, identifier: str | None = None) -> None:
        """Forget state for one identifier, or for every identifier."""
        raise NotImplementedError
