from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response
from fastapi.concurrency import run_in_threadpool

from app.api.dependencies import get_admin_service, get_container, get_settings
from app.core.auth import require_admin
from app.core.config import Settings
from app.core.container import ServiceContainer
from app.core.rate_limit import rate_limit
from app.schemas.admin import ExportRequest, StatusUpdateRequest
from app.services.admin_service import AdminService
from app.services.audit_service import Actor
from app.utils.pagination import MAX_OFFSET, MAX_PAGE, normalize_page_params

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(rate_limit("admin"))],
)


@router.get("/search")
def search(
    type: str = Query("collaborators", description="collaborators, innovators or audit"),
    q: str = Query("", description="Substring matched against the entity's text fields"),
    status: str = Query("all", description="PENDING, APPROVED, REJECTED or all"),
    page: int = Query(1, le=MAX_PAGE),
    limit: int = Query(20, description="Page size (capped at 100)"),
    actor: Actor = Depends(require_admin),
    app_settings: Settings = Depends(get_settings),
    service: AdminService = Depends(get_admin_service),
) -> dict:
    """Search collaborators, innovators or audit entries.

    Returns ``{data, pagination: {page, limit, total, totalPages}}``; an
    unknown ``type`` is a 400 ``INVALID_TYPE``.
    """
    page, limit = normalize_page_params(
        page,
        limit,
        default_limit=20,
        max_limit=app_settings.app.admin_page_size_max,
    )
    return service.search(type, query=q, status=status, page=page, limit=limit)


@router.post("/export")
async def export(
    body: ExportRequest,
    actor: Actor = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    """Export matching rows as JSON (default) or as a CSV attachment.

    At most ``APP_EXPORT_MAX_ROWS`` rows are returned and the export is
    recorded in the audit log.
    """
    result = await run_in_threadpool(
        service.export,
        body.type,
        actor,
        format=body.format,
        filters=body.filters,
    )

    if result.format == "csv":
        return Response(
            content=result.to_csv(),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
        )
    return result.to_json()


@router.patch("/{type}/{record_id}/status")
def update_status(
    type: str,
    record_id: str,
    body: StatusUpdateRequest,
    actor: Actor = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
) -> dict:
    """Approve or reject a collaborator or innovator (audited)."""
    return {
        "data": service.update_status(type, record_id, body.status, actor, reason=body.reason)
    }


@router.get("/stats")
def stats(
    actor: Actor = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
) -> dict:
    """Per-status record counts (cached for the admin TTL)."""
    return service.stats()


@router.get("/audit-logs")
def audit_logs(
    user_id: str | None = Query(None, alias="userId"),
    entity: str | None = Query(None),
    action: str | None = Query(None),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    limit: int = Query(50),
    offset: int = Query(0, le=MAX_OFFSET),
    actor: Actor = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> dict:
    """Audit entries filtered by user, entity, action and date range, newest first."""
    return container.audit.query(
        user_id=user_id,
        entity=entity,
        action=action,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
