from __future__ import annotations

from app.api.routes.admin import router as admin_router
from app.api.routes.collaborators import router as collaborators_router
from app.api.routes.health import router as health_router
from app.api.routes.innovators import router as innovators_router

__all__ = ["admin_router", "collaborators_router", "health_router", "innovators_router"]
