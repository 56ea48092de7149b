"""Innovator submissions and the public innovator listing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.core.errors import StorageAppError, ValidationAppError
from app.db.models import Innovator, RecordStatus
from app.db.session import session_scope
from app.schemas.common import dump
from app.schemas.innovators import PublicInnovator
from app.utils.cache_keys import CacheInvalidator, CacheTTL, public_innovators_key
from app.utils.pagination import build_pagination, page_offset
from app.utils.simple_cache import SimpleTTLCache, cached_query

logger = logging.getLogger(__name__)


@dataclass
class InnovatorSubmission:
    name: str
    email: str
    phone: str
    project_title: str
    project_description: str | None = None


class InnovatorService:
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

    def create(self, submission: InnovatorSubmission) -> str:
        """Store a new PENDING, hidden innovator.

        Raises:
            ValidationAppError: EMAIL_EXISTS or PHONE_EXISTS.
            StorageAppError: SERVER_ERROR when the write fails.
        """
        try:
            with session_scope(self._session_factory) as session:
                if session.scalar(
                    select(Innovator.id).where(Innovator.email == submission.email).limit(1)
                ) is not None:
                    raise ValidationAppError(code="EMAIL_EXISTS", message="Email already exists")
                if session.scalar(
                    select(Innovator.id).where(Innovator.phone == submission.phone).limit(1)
                ) is not None:
                    raise ValidationAppError(
                        code="PHONE_EXISTS", message="Phone number already exists"
                    )

                innovator = Innovator(
                    name=submission.name,
                    email=submission.email,
                    phone=submission.phone,
                    project_title=submission.project_title,
                    project_description=submission.project_description or None,
                    status=RecordStatus.PENDING,
                    is_visible=False,
                )
                session.add(innovator)
                session.flush()
                innovator_id = innovator.id
        except SQLAlchemyError as exc:
            logger.error(
                "innovator.create_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise StorageAppError(
                code="SERVER_ERROR", message="Failed to create innovator"
            ) from exc

        self._invalidator.invalidate_innovators()
        self._invalidator.invalidate_admin_stats()
        logger.info("innovator.created", extra={"innovator_id": innovator_id})
        return innovator_id

    def _load_public_page(self, page: int, limit: int) -> dict[str, Any]:
        visible = (
            Innovator.status == RecordStatus.APPROVED,
            Innovator.is_visible.is_(True),
        )
        with session_scope(self._session_factory) as session:
            total = session.scalar(
                select(func.count()).select_from(Innovator).where(*visible)
            ) or 0
            innovators = session.scalars(
                select(Innovator)
                .where(*visible)
                .order_by(Innovator.created_at.desc(), Innovator.id.desc())
                .offset(page_offset(page, limit))
                .limit(limit)
            ).all()
            data = [dump(PublicInnovator.model_validate(row)) for row in innovators]

        return {
            "data": data,
            "pagination": dump(build_pagination(page, limit, total)),
        }

    def list_public(self, page: int, limit: int) -> dict[str, Any]:
        return cached_query(
            self._cache,
            public_innovators_key(page, limit),
            lambda: self._load_public_page(page, limit),
            self._public_ttl,
        )
