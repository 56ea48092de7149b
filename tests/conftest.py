"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING so no .env file is loaded, points the database at an
in-memory SQLite URL and fixes the token secret.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-for-portal-tests-only")
os.environ.setdefault("AUTH_ADMIN_ROLES", "GENERAL_MANAGER,NEWS_EDITOR,REQUEST_REVIEWER")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.auth import create_access_token
from app.core.config import DatabaseSettings, Settings, settings
from app.core.container import ServiceContainer, build_container
from app.db.models import Collaborator, Innovator, RecordStatus
from app.db.session import build_engine, session_scope


class FakeTime:
    """Deterministic clock injected into the cache and the rate limiters."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


def with_app_overrides(**overrides: Any) -> Settings:
    """Copy of the global settings with some APP_* values replaced."""
    return settings.model_copy(update={"app": settings.app.model_copy(update=overrides)})


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def container_factory(fake_time: FakeTime) -> Iterator[Callable[..., ServiceContainer]]:
    """Build isolated containers, each on its own in-memory database."""
    built: list[ServiceContainer] = []

    def factory(app_settings: Settings | None = None) -> ServiceContainer:
        cfg = app_settings or settings
        container = build_container(
            cfg,
            engine=build_engine(DatabaseSettings(url="sqlite://")),
            cache_clock=fake_time,
            rate_limit_clock=fake_time,
        )
        built.append(container)
        return container

    yield factory

    for container in built:
        container.close()


@pytest.fixture
def container(container_factory: Callable[..., ServiceContainer]) -> ServiceContainer:
    return container_factory()


@pytest.fixture
def client(container: ServiceContainer) -> Iterator[TestClient]:
    """Test client bound to the ``container`` fixture (lifespan included)."""
    app = create_app(container_factory=lambda: container)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_token() -> str:
    return create_access_token(
        user_id="admin-1",
        email="admin@example.com",
        role="GENERAL_MANAGER",
    )


@pytest.fixture
def admin_headers(admin_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}


_BASE_CREATED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _insert_collaborators(
    container: ServiceContainer,
    count: int,
    *,
    status: RecordStatus = RecordStatus.PENDING,
    prefix: str = "Company",
    **overrides: Any,
) -> list[str]:
    """Insert ``count`` collaborators with increasing ``created_at`` values."""
    ids: list[str] = []
    with session_scope(container.session_factory) as session:
        for index in range(count):
            fields: dict[str, Any] = {
                "company_name": f"{prefix} {index}",
                "primary_phone_number": f"+1555{prefix}{index:04d}",
                "email": f"{prefix.lower()}{index}@example.com",
                "industrial_sector": "Manufacturing",
                "specialization": "Machining",
                "status": status,
                "is_visible": status == RecordStatus.APPROVED,
                "created_at": _BASE_CREATED_AT + timedelta(minutes=index),
            }
            fields.update(overrides)
            collaborator = Collaborator(**fields)
            session.add(collaborator)
            session.flush()
            ids.append(collaborator.id)
    return ids


def _insert_innovators(
    container: ServiceContainer,
    count: int,
    *,
    status: RecordStatus = RecordStatus.PENDING,
    prefix: str = "Innovator",
) -> list[str]:
    ids: list[str] = []
    with session_scope(container.session_factory) as session:
        for index in range(count):
            innovator = Innovator(
                name=f"{prefix} {index}",
                email=f"{prefix.lower()}{index}@example.com",
                phone=f"+1666{prefix}{index:04d}",
                project_title=f"Project {index}",
                status=status,
                is_visible=status == RecordStatus.APPROVED,
                created_at=_BASE_CREATED_AT + timedelta(minutes=index),
            )
            session.add(innovator)
            session.flush()
            ids.append(innovator.id)
    return ids


@pytest.fixture
def seed_collaborators(container: ServiceContainer) -> Callable[..., list[str]]:
    """``seed_collaborators(count, status=..., **fields)`` on the test container."""

    def seed(count: int, **kwargs: Any) -> list[str]:
        return _insert_collaborators(container, count, **kwargs)

    return seed


@pytest.fixture
def seed_innovators(container: ServiceContainer) -> Callable[..., list[str]]:
    def seed(count: int, **kwargs: Any) -> list[str]:
        return _insert_innovators(container, count, **kwargs)

    return seed


@pytest.fixture
def app_settings_with() -> Callable[..., Settings]:
    """``app_settings_with(rate_limit_api_points=2, ...)`` -> Settings copy."""
    return with_app_overrides
