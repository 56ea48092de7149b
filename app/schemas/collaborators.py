"""Pydantic schemas for collaborator responses."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.db.models import RecordStatus
from app.schemas.common import CamelModel


class PublicImage(CamelModel):
    data: str = Field(..., description="Base64-encoded image bytes.")
    type: str = Field(..., description="MIME type of the image.")
    size: int = Field(..., description="Size in bytes.")


class PublicCollaborator(CamelModel):
    """Collaborator fields exposed on the public listing."""

    id: str
    company_name: str
    image: Optional[PublicImage] = None
    location: Optional[str] = None
    site: Optional[str] = None
    industrial_sector: str
    specialization: str


class CollaboratorRecord(CamelModel):
    """Full collaborator row as seen by administrators (blobs excluded)."""

    id: str
    company_name: str
    primary_phone_number: str
    optional_phone_number: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = None
    site: Optional[str] = None
    industrial_sector: str
    specialization: str
    experience_provided: Optional[str] = None
    machinery_and_equipment: Optional[str] = None
    status: RecordStatus
    is_visible: bool
    image_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CollaboratorExportRecord(CollaboratorRecord):
    """Export row: adds the media ids attached to each group."""

    experience_provided_media: List[str] = Field(default_factory=list)
    machinery_and_equipment_media: List[str] = Field(default_factory=list)
