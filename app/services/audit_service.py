"""Append-only audit log: recording administrative actions and querying them.

Audit entries are written in the caller's session so they commit (or roll
back) together with the change they describe. The service has no update or
delete operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from app.db.models import AuditLog
from app.db.session import session_scope
from app.schemas.audit import AuditLogRecord
from app.schemas.common import dump

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_PAGE_SIZE = 50
MAX_AUDIT_PAGE_SIZE = 100


def _as_utc(value: datetime) -> datetime:
    """Naive bounds are taken as UTC, the zone `created_at` is stored in."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an action."""

    user_id: str
    email: str
    role: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class AuditService:
    """Records and queries audit log entries."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def record(
        self,
        session: Session,
        actor: Actor,
        *,
        action: str,
        entity: str,
        entity_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Append one entry to the audit log within ``session``."""
        entry = AuditLog(
            user_id=actor.user_id,
            user_email=actor.email or "unknown",
            action=action,
            entity=entity,
            entity_id=entity_id,
            details=details,
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
        )
        session.add(entry)
        session.flush()

        logger.info(
            "audit.recorded",
            extra={
                "action": action,
                "entity": entity,
                "entity_id": entity_id,
                "user_id": actor.user_id,
            },
        )
        return entry

    def log_approval(
        self, session: Session, actor: Actor, entity: str, entity_id: str, details: dict | None = None
    ) -> AuditLog:
        return self.record(
            session, actor, action="APPROVE", entity=entity, entity_id=entity_id, details=details
        )

    def log_rejection(
        self, session: Session, actor: Actor, entity: str, entity_id: str, details: dict | None = None
    ) -> AuditLog:
        return self.record(
            session, actor, action="REJECT", entity=entity, entity_id=entity_id, details=details
        )

    def log_export(
        self, session: Session, actor: Actor, entity: str, details: dict | None = None
    ) -> AuditLog:
        return self.record(session, actor, action="EXPORT", entity=entity, details=details)

    def query(
        self,
        *,
        user_id: str | None = None,
        entity: str | None = None,
        action: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Return audit entries matching the filters, newest first.

        Args:
            user_id: Only entries by this user.
            entity: Only entries about this entity label (e.g. COLLABORATOR).
            action: Only entries with this action (e.g. EXPORT).
            start_date: Inclusive lower bound on ``created_at``.
            end_date: Inclusive upper bound on ``created_at``.
            limit: Page size (default 50, capped at 100).
            offset: Number of entries to skip.

        Returns:
            ``{"data": [...], "total": n, "limit": l, "offset": o}``
        """
        limit = limit if limit and limit > 0 else DEFAULT_AUDIT_PAGE_SIZE
        limit = min(limit, MAX_AUDIT_PAGE_SIZE)
        offset = max(offset or 0, 0)

        conditions = []
        if user_id:
            conditions.append(AuditLog.user_id == user_id)
        if entity:
            conditions.append(AuditLog.entity == entity)
        if action:
            conditions.append(AuditLog.action == action)
        if start_date is not None:
            conditions.append(AuditLog.created_at >= _as_utc(start_date))
        if end_date is not None:
            conditions.append(AuditLog.created_at <= _as_utc(end_date))

        with session_scope(self._session_factory) as session:
            total = session.scalar(
                select(func.count()).select_from(AuditLog).where(*conditions)
            )
            rows = session.scalars(
                select(AuditLog)
                .where(*conditions)
                .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
                .offset(offset)
                .limit(limit)
            ).all()
            data = [dump(AuditLogRecord.model_validate(row)) for row in rows]

        return {"data": data, "total": total or 0, "limit": limit, "offset": offset}
