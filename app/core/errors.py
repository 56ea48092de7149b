"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    hint: str
    field: str
    group: str
    max_bytes: int
    allowed_types: list[str]
    entity: str
    entity_id: str
    retry_after: int
    limit: int


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when caller input fails validation (duplicates, bad files, bad filters)."""


class InvalidTypeAppError(AppError):
    """Raised when a request names an unknown resource kind."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class NotFoundAppError(AppError):
    """Raised when a referenced record does not exist."""


class StorageAppError(AppError):
    """Raised when the storage layer fails unexpectedly."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when a caller exhausted its rate limit budget.

    ``headers`` are copied onto the 429 response.
    """

    headers: dict[str, str] = field(default_factory=dict)
