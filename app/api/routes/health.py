from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies import get_container
from app.core.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(container: ServiceContainer = Depends(get_container)) -> dict:
    """Liveness check used by load balancers.

    Reports database reachability and the cache's entry/hit counters.
    """
    database = "ok"
    try:
        with container.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("health.database_unavailable")
        database = "unavailable"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "cache": container.cache.stats(),
    }
