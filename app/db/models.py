"""ORM models for the portal.

Blobs (profile images and media) live in their own tables and are referenced
by id; a collaborator owns its media link rows and deleting it cascades to
them.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Image(Base):
    __tablename__ = "images"

    id = Column(String(36), primary_key=True, default=_uuid)
    data = Column(LargeBinary, nullable=False)
    type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Media(Base):
    __tablename__ = "media"

    id = Column(String(36), primary_key=True, default=_uuid)
    data = Column(LargeBinary, nullable=False)
    type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Collaborator(Base):
    __tablename__ = "collaborators"

    id = Column(String(36), primary_key=True, default=_uuid)
    company_name = Column(String(255), nullable=False)
    primary_phone_number = Column(String(50), nullable=False, index=True)
    optional_phone_number = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    location = Column(String(255), nullable=True)
    site = Column(String(255), nullable=True)
    industrial_sector = Column(String(255), nullable=False)
    specialization = Column(String(255), nullable=False)
    experience_provided = Column(Text, nullable=True)
    machinery_and_equipment = Column(Text, nullable=True)
    status = Column(
        Enum(RecordStatus, native_enum=False, length=20),
        default=RecordStatus.PENDING,
        nullable=False,
        index=True,
    )
    is_visible = Column(Boolean, default=False, nullable=False)
    image_id = Column(String(36), ForeignKey("images.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    image = relationship("Image")
    experience_provided_media = relationship(
        "ExperienceProvidedMedia",
        back_populates="collaborator",
        cascade="all, delete-orphan",
    )
    machinery_and_equipment_media = relationship(
        "MachineryAndEquipmentMedia",
        back_populates="collaborator",
        cascade="all, delete-orphan",
    )


class ExperienceProvidedMedia(Base):
    __tablename__ = "experience_provided_media"

    id = Column(String(36), primary_key=True, default=_uuid)
    collaborator_id = Column(
        String(36),
        ForeignKey("collaborators.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    media_id = Column(String(36), ForeignKey("media.id"), nullable=False)

    collaborator = relationship("Collaborator", back_populates="experience_provided_media")
    media = relationship("Media")


class MachineryAndEquipmentMedia(Base):
    __tablename__ = "machinery_and_equipment_media"

    id = Column(String(36), primary_key=True, default=_uuid)
    collaborator_id = Column(
        String(36),
        ForeignKey("collaborators.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    media_id = Column(String(36), ForeignKey("media.id"), nullable=False)

    collaborator = relationship("Collaborator", back_populates="machinery_and_equipment_media")
    media = relationship("Media")


class Innovator(Base):
    __tablename__ = "innovators"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False, index=True)
    project_title = Column(String(255), nullable=False)
    project_description = Column(Text, nullable=True)
    status = Column(
        Enum(RecordStatus, native_enum=False, length=20),
        default=RecordStatus.PENDING,
        nullable=False,
        index=True,
    )
    is_visible = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class AuditLog(Base):
    """Append-only record of an administrative action."""

    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    user_email = Column(String(255), nullable=False)
    action = Column(String(50), nullable=False, index=True)
    entity = Column(String(50), nullable=False, index=True)
    entity_id = Column(String(64), nullable=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
