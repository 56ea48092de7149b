"""Typed filter building for admin search and export.

Each searchable entity declares which columns take part in free-text search
and which may be used as equality filters. Anything outside those
allow-lists is rejected instead of being passed through to the query.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from sqlalchemy import Select, func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from app.core.errors import InvalidTypeAppError, ValidationAppError
from app.db.models import AuditLog, Collaborator, Innovator, RecordStatus

_SCALAR_TYPES = (str, int, float, bool)


@dataclass(frozen=True)
class EntitySpec:
    """Search/filter allow-lists for one resource kind.

    Attributes:
        name: Resource kind as used in the API (``collaborators``).
        model: ORM model class.
        audit_entity: Entity label written to the audit log.
        search_fields: Columns OR-matched by free-text search.
        filter_fields: Public filter name → column attribute name.
        has_status: Whether the status restriction applies.
    """

    name: str
    model: type
    audit_entity: str
    search_fields: tuple[str, ...]
    filter_fields: Mapping[str, str] = field(default_factory=dict)
    has_status: bool = True


ENTITY_SPECS: dict[str, EntitySpec] = {
    "collaborators": EntitySpec(
        name="collaborators",
        model=Collaborator,
        audit_entity="COLLABORATOR",
        search_fields=("company_name", "email", "primary_phone_number", "specialization"),
        filter_fields={
            "status": "status",
            "isVisible": "is_visible",
            "is_visible": "is_visible",
            "industrialSector": "industrial_sector",
            "industrial_sector": "industrial_sector",
            "specialization": "specialization",
            "location": "location",
            "email": "email",
        },
    ),
    "innovators": EntitySpec(
        name="innovators",
        model=Innovator,
        audit_entity="INNOVATOR",
        search_fields=("name", "email", "phone", "project_title"),
        filter_fields={
            "status": "status",
            "isVisible": "is_visible",
            "is_visible": "is_visible",
            "email": "email",
            "projectTitle": "project_title",
            "project_title": "project_title",
        },
    ),
    "audit": EntitySpec(
        name="audit",
        model=AuditLog,
        audit_entity="AUDIT",
        search_fields=("user_email", "action", "entity"),
        filter_fields={
            "userId": "user_id",
            "user_id": "user_id",
            "userEmail": "user_email",
            "user_email": "user_email",
            "action": "action",
            "entity": "entity",
            "entityId": "entity_id",
            "entity_id": "entity_id",
        },
        has_status=False,
    ),
}


def get_entity_spec(type_name: str | None) -> EntitySpec:
    """Look up the spec for a resource kind.

    Raises:
        InvalidTypeAppError: If the kind is unknown.
    """
    spec = ENTITY_SPECS.get((type_name or "").strip().lower())
    if spec is None:
        raise InvalidTypeAppError(
            code="INVALID_TYPE",
            message="Invalid type",
            details={"hint": f"Use one of: {', '.join(ENTITY_SPECS)}"},
        )
    return spec


def parse_status(value: Any) -> RecordStatus:
    try:
        return RecordStatus(str(value).upper())
    except ValueError:
        raise ValidationAppError(
            code="VALIDATION_FAILED",
            message=f"Invalid status '{value}'",
            details={"field": "status"},
        ) from None


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise ValidationAppError(
        code="VALIDATION_FAILED",
        message=f"Filter '{name}' expects a boolean",
        details={"field": name},
    )


class QueryBuilder:
    """Accumulates WHERE conditions for one entity.

    Usage:
        builder = QueryBuilder(spec).search("acme").status("APPROVED")
        total = session.scalar(builder.count_statement())
        rows = session.scalars(builder.select_statement(offset=0, limit=20)).all()
    """

    def __init__(self, spec: EntitySpec) -> None:
        self.spec = spec
        self._conditions: list[ColumnElement[bool]] = []

    def _column(self, attr: str):
        return getattr(self.spec.model, attr)

    def search(self, text: str | None) -> "QueryBuilder":
        """OR-match ``text`` as a substring of every search field."""
        text = (text or "").strip()
        if text:
            self._conditions.append(
                or_(
                    *(
                        self._column(attr).contains(text, autoescape=True)
                        for attr in self.spec.search_fields
                    )
                )
            )
        return self

    def status(self, status: str | None) -> "QueryBuilder":
        """AND-restrict by status unless it is empty or ``all``."""
        if not self.spec.has_status:
            return self
        if status is None or status.strip().lower() in ("", "all"):
            return self
        self._conditions.append(self._column("status") == parse_status(status))
        return self

    def filters(self, filters: Mapping[str, Any] | None) -> "QueryBuilder":
        """Add equality filters from caller input, enforcing the allow-list."""
        for name, value in (filters or {}).items():
            attr = self.spec.filter_fields.get(name)
            if attr is None:
                raise ValidationAppError(
                    code="VALIDATION_FAILED",
                    message=f"Unsupported filter '{name}' for {self.spec.name}",
                    details={
                        "field": name,
                        "hint": f"Allowed filters: {', '.join(sorted(self.spec.filter_fields))}",
                    },
                )
            if value is not None and not isinstance(value, _SCALAR_TYPES):
                raise ValidationAppError(
                    code="VALIDATION_FAILED",
                    message=f"Filter '{name}' must be a scalar value",
                    details={"field": name},
                )

            if attr == "status":
                value = parse_status(value)
            elif attr == "is_visible":
                value = _parse_bool(name, value)

            column = self._column(attr)
            self._conditions.append(column.is_(None) if value is None else column == value)
        return self

    @property
    def conditions(self) -> list[ColumnElement[bool]]:
        return list(self._conditions)

    def count_statement(self) -> Select:
        return select(func.count()).select_from(self.spec.model).where(*self._conditions)

    def select_statement(self, *, offset: int = 0, limit: int | None = None) -> Select:
        stmt = (
            select(self.spec.model)
            .where(*self._conditions)
            .order_by(self._column("created_at").desc(), self._column("id").desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt
