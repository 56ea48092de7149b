"""Admin console operations: search, export, review and statistics.

Every mutating operation appends an audit entry in the same transaction and
drops the affected cache namespaces before returning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload, sessionmaker

from app.core.errors import NotFoundAppError, ValidationAppError
from app.db.models import AuditLog, Collaborator, Innovator, RecordStatus
from app.db.session import session_scope
from app.schemas.audit import AuditLogRecord
from app.schemas.collaborators import CollaboratorExportRecord, CollaboratorRecord
from app.schemas.common import dump
from app.schemas.innovators import InnovatorRecord
from app.services.audit_service import Actor, AuditService
from app.services.query_builder import EntitySpec, QueryBuilder, get_entity_spec, parse_status
from app.utils.cache_keys import CacheInvalidator, CacheTTL, admin_stats_key
from app.utils.csv_export import rows_to_csv
from app.utils.pagination import build_pagination, page_offset
from app.utils.simple_cache import SimpleTTLCache, cached_query

logger = logging.getLogger(__name__)

_RECORD_SCHEMAS = {
    "collaborators": CollaboratorRecord,
    "innovators": InnovatorRecord,
    "audit": AuditLogRecord,
}

REVIEWABLE_TYPES = ("collaborators", "innovators")


def _iso_utc(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ExportResult:
    type: str
    format: str
    rows: list[dict[str, Any]]
    exported_at: datetime
    exported_by: str

    @property
    def count(self) -> int:
        return len(self.rows)

    @property
    def filename(self) -> str:
        return f"{self.type}_export_{_iso_utc(self.exported_at)}.{self.format}"

    def to_csv(self) -> str:
        return rows_to_csv(self.rows)

    def to_json(self) -> dict[str, Any]:
        return {
            "data": self.rows,
            "count": self.count,
            "exportedAt": _iso_utc(self.exported_at),
            "exportedBy": self.exported_by,
        }


def _serialize(spec: EntitySpec, row: Any) -> dict[str, Any]:
    return dump(_RECORD_SCHEMAS[spec.name].model_validate(row))


def _serialize_for_export(spec: EntitySpec, row: Any) -> dict[str, Any]:
    if spec.name != "collaborators":
        return _serialize(spec, row)
    base = CollaboratorRecord.model_validate(row).model_dump()
    record = CollaboratorExportRecord(
        **base,
        experience_provided_media=[m.media_id for m in row.experience_provided_media],
        machinery_and_equipment_media=[m.media_id for m in row.machinery_and_equipment_media],
    )
    return dump(record)


class AdminService:
    def __init__(
        self,
        session_factory: sessionmaker,
        cache: SimpleTTLCache,
        audit: AuditService,
        *,
        export_max_rows: int = 1000,
        admin_ttl_seconds: int = CacheTTL.admin,
    ) -> None:
        self._session_factory = session_factory
        self._cache = cache
        self._invalidator = CacheInvalidator(cache)
        self._audit = audit
        self._export_max_rows = export_max_rows
        self._admin_ttl = admin_ttl_seconds

    def search(
        self,
        type_name: str,
        *,
        query: str | None = None,
        status: str | None = "all",
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        """One page of rows of ``type_name`` matching ``query`` and ``status``.

        Raises:
            InvalidTypeAppError: Unknown ``type_name``.
            ValidationAppError: Unknown status value.
        """
        spec = get_entity_spec(type_name)
        builder = QueryBuilder(spec).search(query).status(status)

        with session_scope(self._session_factory) as session:
            total = session.scalar(builder.count_statement()) or 0
            rows = session.scalars(
                builder.select_statement(offset=page_offset(page, limit), limit=limit)
            ).all()
            data = [_serialize(spec, row) for row in rows]

        logger.info(
            "admin.search",
            extra={
                "type": spec.name,
                "has_query": bool(query),
                "status": status,
                "page": page,
                "limit": limit,
                "total": total,
            },
        )
        return {
            "data": data,
            "pagination": dump(build_pagination(page, limit, total)),
        }

    def export(
        self,
        type_name: str,
        actor: Actor,
        *,
        format: str = "json",
        filters: Mapping[str, Any] | None = None,
    ) -> ExportResult:
        """Materialise up to ``export_max_rows`` matching rows and audit the export."""
        spec = get_entity_spec(type_name)
        if format not in ("json", "csv"):
            raise ValidationAppError(
                code="VALIDATION_FAILED",
                message=f"Unsupported export format '{format}'",
                details={"field": "format"},
            )
        filters = dict(filters or {})
        builder = QueryBuilder(spec).filters(filters)

        with session_scope(self._session_factory) as session:
            stmt = builder.select_statement(limit=self._export_max_rows)
            if spec.name == "collaborators":
                stmt = stmt.options(
                    selectinload(Collaborator.experience_provided_media),
                    selectinload(Collaborator.machinery_and_equipment_media),
                )
            rows = [_serialize_for_export(spec, row) for row in session.scalars(stmt).all()]

            self._audit.log_export(
                session,
                actor,
                spec.name.upper(),
                details={"count": len(rows), "filters": filters, "format": format},
            )

        logger.info(
            "admin.export",
            extra={"type": spec.name, "format": format, "count": len(rows)},
        )
        return ExportResult(
            type=spec.name,
            format=format,
            rows=rows,
            exported_at=datetime.now(timezone.utc),
            exported_by=actor.email,
        )

    def update_status(
        self,
        type_name: str,
        record_id: str,
        status: RecordStatus | str,
        actor: Actor,
        *,
        reason: str | None = None,
    ) -> dict[str, Any]:
        """Approve or reject a collaborator or innovator.

        Approved records become publicly visible, rejected ones are hidden.
        """
        spec = get_entity_spec(type_name)
        if spec.name not in REVIEWABLE_TYPES:
            raise ValidationAppError(
                code="VALIDATION_FAILED",
                message=f"{spec.name} records cannot be reviewed",
                details={"field": "type"},
            )
        new_status = parse_status(status.value if isinstance(status, RecordStatus) else status)
        if new_status == RecordStatus.PENDING:
            raise ValidationAppError(
                code="VALIDATION_FAILED",
                message="Status must be APPROVED or REJECTED",
                details={"field": "status"},
            )

        with session_scope(self._session_factory) as session:
            record = session.get(spec.model, record_id)
            if record is None:
                raise NotFoundAppError(
                    code="NOT_FOUND",
                    message=f"{spec.audit_entity.title()} not found",
                    details={"entity": spec.audit_entity, "entity_id": record_id},
                )

            previous = record.status.value if record.status else None
            record.status = new_status
            record.is_visible = new_status == RecordStatus.APPROVED
            session.flush()

            details = {"previousStatus": previous}
            if reason:
                details["reason"] = reason
            log = (
                self._audit.log_approval
                if new_status == RecordStatus.APPROVED
                else self._audit.log_rejection
            )
            log(session, actor, spec.audit_entity, record.id, details)

            data = _serialize(spec, record)

        if spec.name == "collaborators":
            self._invalidator.invalidate_collaborators()
        else:
            self._invalidator.invalidate_innovators()
        self._invalidator.invalidate_admin_stats()

        logger.info(
            "admin.status_updated",
            extra={
                "type": spec.name,
                "entity_id": record_id,
                "previous_status": previous,
                "new_status": new_status.value,
            },
        )
        return data

    def _load_stats(self) -> dict[str, Any]:
        with session_scope(self._session_factory) as session:
            stats: dict[str, Any] = {}
            for key, model in (("collaborators", Collaborator), ("innovators", Innovator)):
                counts = {status.value: 0 for status in RecordStatus}
                for status, count in session.execute(
                    select(model.status, func.count()).group_by(model.status)
                ):
                    counts[status.value] = count
                counts["total"] = sum(counts.values())
                stats[key] = counts
            stats["auditLogs"] = {
                "total": session.scalar(select(func.count()).select_from(AuditLog)) or 0
            }
        return stats

    def stats(self) -> dict[str, Any]:
        """Per-status counts, cached with the admin TTL."""
        return cached_query(self._cache, admin_stats_key(), self._load_stats, self._admin_ttl)
