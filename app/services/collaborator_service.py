"""Collaborator submissions and the public collaborator listing.

Creating a collaborator runs as an ordered pipeline:

1. Uniqueness pre-check on email and primary phone number.
2. Validation of the profile image and of both media batches.
3. A single transaction writing the image, the collaborator row, every media
   blob and its link row.
4. Cache invalidation for the collaborator namespace and admin stats.

Nothing is written until every file has been validated, and the writes share
one transaction, so a failure never leaves a collaborator or orphaned media
behind. The uniqueness check is not a constraint: two concurrent
submissions with the same email can both pass it.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.errors import StorageAppError, ValidationAppError
from app.db.models import (
    Collaborator,
    ExperienceProvidedMedia,
    Image,
    MachineryAndEquipmentMedia,
    Media,
    RecordStatus,
)
from app.db.session import session_scope
from app.schemas.collaborators import PublicCollaborator, PublicImage
from app.schemas.common import dump
from app.utils.cache_keys import CacheInvalidator, CacheTTL, public_collaborators_key
from app.utils.file_validators import (
    ALLOWED_FILE_TYPES,
    DEFAULT_MAX_FILES,
    FILE_SIZE_LIMITS,
    UploadedFile,
    validate_file,
    validate_multiple_files,
)
from app.utils.pagination import build_pagination, page_offset
from app.utils.simple_cache import SimpleTTLCache, cached_query

logger = logging.getLogger(__name__)

MEDIA_GROUPS = (
    ("experience", "Experience media", ExperienceProvidedMedia),
    ("machinery", "Machinery media", MachineryAndEquipmentMedia),
)


@dataclass
class CollaboratorSubmission:
    """Validated form fields and uploads of one collaborator application."""

    company_name: str
    primary_phone_number: str
    industrial_sector: str
    specialization: str
    optional_phone_number: str | None = None
    email: str | None = None
    location: str | None = None
    site: str | None = None
    experience_provided: str | None = None
    machinery_and_equipment: str | None = None
    image: UploadedFile | None = None
    experience_media: list[UploadedFile] = field(default_factory=list)
    machinery_media: list[UploadedFile] = field(default_factory=list)

    def media_for(self, group: str) -> list[UploadedFile]:
        return self.experience_media if group == "experience" else self.machinery_media


def _invalid_file(message: str, group: str, category: str) -> ValidationAppError:
    return ValidationAppError(
        code="INVALID_FILE",
        message=message,
        details={
            "group": group,
            "max_bytes": FILE_SIZE_LIMITS[category],
            "allowed_types": list(ALLOWED_FILE_TYPES[category]),
        },
    )


class CollaboratorService:
    """Write pipeline and cached public listing for collaborators."""

    def __init__(
        self,
        session_factory: sessionmaker,
        cache: SimpleTTLCache,
        *,
        public_ttl_seconds: int = CacheTTL.public,
    ) -> None:
        self._session_factory = session_factory
        self._cache = cache
        self._invalidator = CacheInvalidator(cache)
        self._public_ttl = public_ttl_seconds

    # ------------------------------------------------------------------
    # Creation pipeline
    # ------------------------------------------------------------------
    def _check_uniqueness(self, session: Session, submission: CollaboratorSubmission) -> None:
        if submission.email:
            existing = session.scalar(
                select(Collaborator.id).where(Collaborator.email == submission.email).limit(1)
            )
            if existing is not None:
                raise ValidationAppError(code="EMAIL_EXISTS", message="Email already exists")

        existing = session.scalar(
            select(Collaborator.id)
            .where(Collaborator.primary_phone_number == submission.primary_phone_number)
            .limit(1)
        )
        if existing is not None:
            raise ValidationAppError(code="PHONE_EXISTS", message="Phone number already exists")

    def _validate_files(self, submission: CollaboratorSubmission) -> None:
        if submission.image is not None:
            result = validate_file(
                submission.image,
                max_size=FILE_SIZE_LIMITS["image"],
                allowed_types=ALLOWED_FILE_TYPES["image"],
            )
            if not result.valid:
                raise _invalid_file(f"Image: {result.error}", "image", "image")

        for group, label, _ in MEDIA_GROUPS:
            files = submission.media_for(group)
            if not files:
                continue
            result = validate_multiple_files(
                files,
                max_size=FILE_SIZE_LIMITS["media"],
                allowed_types=ALLOWED_FILE_TYPES["media"],
                max_files=DEFAULT_MAX_FILES,
            )
            if not result.valid:
                raise _invalid_file(f"{label}: {result.error}", group, "media")

    def _persist(self, session: Session, submission: CollaboratorSubmission) -> Collaborator:
        image_id = None
        if submission.image is not None:
            image = Image(
                data=submission.image.data,
                type=submission.image.content_type,
                size=submission.image.size,
            )
            session.add(image)
            session.flush()
            image_id = image.id

        collaborator = Collaborator(
            company_name=submission.company_name,
            primary_phone_number=submission.primary_phone_number,
            optional_phone_number=submission.optional_phone_number or None,
            email=submission.email or None,
            location=submission.location or None,
            site=submission.site or None,
            industrial_sector=submission.industrial_sector,
            specialization=submission.specialization,
            experience_provided=submission.experience_provided or None,
            machinery_and_equipment=submission.machinery_and_equipment or None,
            status=RecordStatus.PENDING,
            is_visible=False,
            image_id=image_id,
        )
        session.add(collaborator)
        session.flush()

        for group, _, link_model in MEDIA_GROUPS:
            for upload in submission.media_for(group):
                media = Media(data=upload.data, type=upload.content_type, size=upload.size)
                session.add(media)
                session.flush()
                session.add(link_model(collaborator_id=collaborator.id, media_id=media.id))

        session.flush()
        return collaborator

    def create(self, submission: CollaboratorSubmission) -> str:
        """Run the creation pipeline.

        Returns:
            The new collaborator id.

        Raises:
            ValidationAppError: EMAIL_EXISTS, PHONE_EXISTS or INVALID_FILE.
            StorageAppError: SERVER_ERROR when the transaction fails.
        """
        try:
            with session_scope(self._session_factory) as session:
                self._check_uniqueness(session, submission)
                self._validate_files(submission)
                collaborator = self._persist(session, submission)
                collaborator_id = collaborator.id
        except SQLAlchemyError as exc:
            logger.error(
                "collaborator.create_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise StorageAppError(
                code="SERVER_ERROR",
                message="Failed to create collaborator",
            ) from exc

        self._invalidator.invalidate_collaborators()
        self._invalidator.invalidate_admin_stats()

        logger.info(
            "collaborator.created",
            extra={
                "collaborator_id": collaborator_id,
                "has_image": submission.image is not None,
                "experience_media": len(submission.experience_media),
                "machinery_media": len(submission.machinery_media),
            },
        )
        return collaborator_id

    # ------------------------------------------------------------------
    # Public listing
    # ------------------------------------------------------------------
    def _load_public_page(self, page: int, limit: int) -> dict[str, Any]:
        visible = (
            Collaborator.status == RecordStatus.APPROVED,
            Collaborator.is_visible.is_(True),
        )
        with session_scope(self._session_factory) as session:
            total = session.scalar(
                select(func.count()).select_from(Collaborator).where(*visible)
            ) or 0
            collaborators = session.scalars(
                select(Collaborator)
                .where(*visible)
                .order_by(Collaborator.created_at.desc(), Collaborator.id.desc())
                .offset(page_offset(page, limit))
                .limit(limit)
            ).all()

            image_ids = [c.image_id for c in collaborators if c.image_id]
            images = {}
            if image_ids:
                images = {
                    image.id: image
                    for image in session.scalars(select(Image).where(Image.id.in_(image_ids)))
                }

            data = []
            for collaborator in collaborators:
                image = images.get(collaborator.image_id) if collaborator.image_id else None
                data.append(
                    dump(
                        PublicCollaborator(
                            id=collaborator.id,
                            company_name=collaborator.company_name,
                            image=PublicImage(
                                data=base64.b64encode(image.data).decode("ascii"),
                                type=image.type,
                                size=image.size,
                            )
                            if image is not None
                            else None,
                            location=collaborator.location,
                            site=collaborator.site,
                            industrial_sector=collaborator.industrial_sector,
                            specialization=collaborator.specialization,
                        )
                    )
                )

        return {
            "data": data,
            "pagination": dump(build_pagination(page, limit, total)),
        }

    def list_public(self, page: int, limit: int) -> dict[str, Any]:
        """Approved, visible collaborators, newest first, cached per page."""
        return cached_query(
            self._cache,
            public_collaborators_key(page, limit),
            lambda: self._load_public_page(page, limit),
            self._public_ttl,
        )
