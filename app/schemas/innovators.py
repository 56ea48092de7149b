"""Pydantic schemas for innovator responses."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from app.db.models import RecordStatus
from app.schemas.common import CamelModel


class PublicInnovator(CamelModel):
    id: str
    name: str
    project_title: str
    project_description: Optional[str] = None


class InnovatorRecord(CamelModel):
    id: str
    name: str
    email: str
    phone: str
    project_title: str
    project_description: Optional[str] = None
    status: RecordStatus
    is_visible: bool
    created_at: datetime
    updated_at: datetime
