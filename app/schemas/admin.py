"""Pydantic schemas for admin console requests and responses."""

from __future__ import annotations

from typing import Any, Dict, Literal

from pydantic import BaseModel, Field

from app.db.models import RecordStatus


class ExportRequest(BaseModel):
    type: str = Field(..., description="collaborators, innovators or audit.")
    format: Literal["json", "csv"] = Field("json", description="Serialisation format.")
    filters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Equality filters; keys must be on the entity's allow-list.",
    )


class StatusUpdateRequest(BaseModel):
    status: RecordStatus = Field(..., description="Review decision: APPROVED or REJECTED.")
    reason: str | None = Field(None, description="Optional note stored in the audit log.")
