"""Pydantic schemas for audit log entries."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from app.schemas.common import CamelModel


class AuditLogRecord(CamelModel):
    id: str
    user_id: str
    user_email: str
    action: str
    entity: str
    entity_id: Optional[str] = None
    details: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
