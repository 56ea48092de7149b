"""Explicitly constructed process state shared by request handlers.

The app factory builds one :class:`ServiceContainer` in its lifespan, stores
it on ``app.state.container`` and tears it down on shutdown. Handlers reach
the services only through the dependencies in ``app.api.dependencies``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.adapters.rate_limit.registry import RateLimiterRegistry, build_profiles
from app.core.config import Settings
from app.db.session import build_engine, build_session_factory, create_schema
from app.services.admin_service import AdminService
from app.services.audit_service import AuditService
from app.services.collaborator_service import CollaboratorService
from app.services.innovator_service import InnovatorService
from app.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    cache: SimpleTTLCache
    rate_limiters: RateLimiterRegistry
    audit: AuditService
    collaborators: CollaboratorService
    innovators: InnovatorService
    admin: AdminService

    def start(self) -> None:
        self.cache.start()
        logger.info("container.started")

    def close(self) -> None:
        """Stop the cache sweeper, drop cached data and release DB connections."""
        self.cache.destroy()
        self.engine.dispose()
        logger.info("container.closed")


def build_container(
    settings: Settings,
    *,
    engine: Engine | None = None,
    cache_clock: Callable[[], float] = time.monotonic,
    rate_limit_clock: Callable[[], float] = time.time,
) -> ServiceContainer:
    """Wire engine, cache, limiters and services from settings.

    Args:
        settings: Resolved application settings.
        engine: Pre-built engine (tests pass an in-memory SQLite engine).
        cache_clock: Time source for cache expiry.
        rate_limit_clock: Time source for rate limit windows.
    """
    engine = engine or build_engine(settings.db)
    if settings.db.create_all:
        create_schema(engine)
    session_factory = build_session_factory(engine)

    cache = SimpleTTLCache(
        default_ttl=settings.app.cache_public_ttl_seconds,
        sweep_interval=settings.app.cache_sweep_interval_seconds,
        clock=cache_clock,
    )
    rate_limiters = RateLimiterRegistry(build_profiles(settings.app), clock=rate_limit_clock)
    audit = AuditService(session_factory)

    return ServiceContainer(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        cache=cache,
        rate_limiters=rate_limiters,
        audit=audit,
        collaborators=CollaboratorService(
            session_factory,
            cache,
            public_ttl_seconds=settings.app.cache_public_ttl_seconds,
        ),
        innovators=InnovatorService(
            session_factory,
            cache,
            public_ttl_seconds=settings.app.cache_public_ttl_seconds,
        ),
        admin=AdminService(
            session_factory,
            cache,
            audit,
            export_max_rows=settings.app.export_max_rows,
            admin_ttl_seconds=settings.app.cache_admin_ttl_seconds,
        ),
    )
