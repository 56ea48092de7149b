"""Bearer token authentication for admin endpoints.

Access tokens are issued by the portal's identity provider; this service
only verifies the signature and expiry and checks that the ``role`` claim is
one of the configured admin roles.

Design principles:
- Pure functions (`parse_roles`, `decode_access_token`, `authorize_admin`)
  hold the logic and are tested without FastAPI
- `require_admin` is the thin FastAPI dependency around them
- Configuration-driven: secret, algorithm and roles come from AUTH_* env vars;
  `require_admin` reads them from the app container, the pure functions
  take them as an argument and default to the global settings
"""

from __future__ import annotations

import hashlib
import logging
import time
from typing import Annotated, Any

import jwt
from fastapi import Header, Request

from app.core.config import AuthSettings, settings
from app.core.errors import AuthenticationAppError
from app.services.audit_service import Actor

logger = logging.getLogger(__name__)


def _unauthorized(message: str = "Unauthorized") -> AuthenticationAppError:
    return AuthenticationAppError(code="UNAUTHORIZED", message=message)


def _token_fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()[:16]


def _auth_settings(auth_settings: AuthSettings | None) -> AuthSettings:
    return auth_settings if auth_settings is not None else settings.auth


def parse_roles(roles_string: str | None) -> set[str]:
    """Parse a comma-separated role list into a set.

    Examples:
        >>> sorted(parse_roles("GENERAL_MANAGER, NEWS_EDITOR"))
        ['GENERAL_MANAGER', 'NEWS_EDITOR']
        >>> parse_roles(None)
        set()
    """
    if not roles_string:
        return set()
    return {role.strip() for role in roles_string.split(",") if role.strip()}


def create_access_token(
    *,
    user_id: str,
    email: str,
    role: str,
    expires_in_seconds: int = 900,
    auth_settings: AuthSettings | None = None,
) -> str:
    """Sign an access token with the configured secret.

    Used by local tooling and tests; production tokens come from the
    identity provider with the same claims.
    """
    auth = _auth_settings(auth_settings)
    issued_at = int(time.time())
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + expires_in_seconds,
    }
    return jwt.encode(payload, auth.jwt_secret, algorithm=auth.jwt_algorithm)


def decode_access_token(
    token: str, auth_settings: AuthSettings | None = None
) -> dict[str, Any]:
    """Verify a token and return its claims.

    Raises:
        AuthenticationAppError: If the token is empty, invalid, expired or
            not an access token.
    """
    raw = (token or "").strip()
    if not raw:
        raise _unauthorized()

    auth = _auth_settings(auth_settings)
    try:
        payload = jwt.decode(
            raw,
            auth.jwt_secret,
            algorithms=[auth.jwt_algorithm],
        )
    except jwt.InvalidTokenError as exc:
        logger.warning(
            "auth.invalid_token",
            extra={"reason": type(exc).__name__, "token_hash": _token_fingerprint(raw)},
        )
        raise _unauthorized() from exc

    if str(payload.get("type") or "access").lower() != "access":
        raise _unauthorized()
    return payload


def authorize_admin(
    payload: dict[str, Any], auth_settings: AuthSettings | None = None
) -> Actor:
    """Turn verified claims into an Actor, requiring an admin role.

    Raises:
        AuthenticationAppError: If the subject is missing or the role is not
            an admin role.
    """
    user_id = str(payload.get("sub") or "").strip()
    role = str(payload.get("role") or "").strip()
    admin_roles = parse_roles(_auth_settings(auth_settings).admin_roles)

    if not user_id or role not in admin_roles:
        logger.warning(
            "auth.forbidden_role",
            extra={"role": role or None, "has_subject": bool(user_id)},
        )
        raise _unauthorized()

    return Actor(user_id=user_id, email=str(payload.get("email") or "unknown"), role=role)


def extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise _unauthorized()

    parts = raw.split(" ", 1)
    if len(parts) != 2 or parts[0].strip().lower() != "bearer" or not parts[1].strip():
        raise _unauthorized()
    return parts[1].strip()


async def require_admin(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Actor:
    """FastAPI dependency authenticating an administrator.

    Usage:
        @router.get("/admin/thing")
        def handler(actor: Actor = Depends(require_admin)): ...

    Returns:
        Actor for the authenticated administrator, carrying the client
        address and user agent for audit entries.

    Raises:
        AuthenticationAppError: 401 when the token is missing/invalid or the
            role is not an admin role.
    """
    auth = request.app.state.container.settings.auth
    token = extract_bearer_token(authorization)
    actor = authorize_admin(decode_access_token(token, auth), auth)

    forwarded = request.headers.get("x-forwarded-for")
    ip_address = forwarded.split(",")[0].strip() if forwarded else (
        request.client.host if request.client else None
    )
    actor = Actor(
        user_id=actor.user_id,
        email=actor.email,
        role=actor.role,
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
    )

    logger.info("auth.success", extra={"user_id": actor.user_id, "role": actor.role})
    return actor
