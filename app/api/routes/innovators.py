from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Query, status

from app.api.dependencies import get_innovator_service, get_settings
from app.core.config import Settings
from app.core.rate_limit import rate_limit
from app.schemas.common import MessageResponse
from app.services.innovator_service import InnovatorService, InnovatorSubmission
from app.utils.pagination import MAX_PAGE, normalize_page_params

router = APIRouter(prefix="/innovators", tags=["Innovators"])


@router.get("/public", dependencies=[Depends(rate_limit("api"))])
def list_public_innovators(
    page: int = Query(1, le=MAX_PAGE, description="1-based page number"),
    limit: int = Query(10, description="Page size (capped at 50)"),
    app_settings: Settings = Depends(get_settings),
    service: InnovatorService = Depends(get_innovator_service),
) -> dict:
    """Approved and visible innovators, newest first (cached per page)."""
    page, limit = normalize_page_params(
        page,
        limit,
        default_limit=10,
        max_limit=app_settings.app.public_page_size_max,
    )
    return service.list_public(page, limit)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit("submission"))],
)
def create_innovator(
    name: str = Form(..., min_length=1),
    email: str = Form(..., min_length=3),
    phone: str = Form(..., min_length=1),
    project_title: str = Form(..., alias="projectTitle", min_length=1),
    project_description: str | None = Form(None, alias="projectDescription"),
    service: InnovatorService = Depends(get_innovator_service),
) -> MessageResponse:
    """Submit a project for review."""
    service.create(
        InnovatorSubmission(
            name=name.strip(),
            email=email.strip(),
            phone=phone.strip(),
            project_title=project_title.strip(),
            project_description=project_description,
        )
    )
    return MessageResponse(message="Innovator created successfully")
