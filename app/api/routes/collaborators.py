from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from app.api.dependencies import get_collaborator_service, get_settings
from app.core.config import Settings
from app.core.file_validation import read_upload_file_limited, read_upload_files_limited
from app.core.rate_limit import rate_limit
from app.schemas.common import MessageResponse
from app.services.collaborator_service import CollaboratorService, CollaboratorSubmission
from app.utils.file_validators import FILE_SIZE_LIMITS
from app.utils.pagination import MAX_PAGE, normalize_page_params

router = APIRouter(prefix="/collaborators", tags=["Collaborators"])


@router.get("/public", dependencies=[Depends(rate_limit("api"))])
def list_public_collaborators(
    page: int = Query(1, le=MAX_PAGE, description="1-based page number"),
    limit: int = Query(10, description="Page size (capped at 50)"),
    app_settings: Settings = Depends(get_settings),
    service: CollaboratorService = Depends(get_collaborator_service),
) -> dict:
    """Approved and visible collaborators, newest first.

    Pages are cached per (page, limit) and dropped whenever a collaborator is
    created or reviewed.
    """
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
async def create_collaborator(
    company_name: str = Form(..., alias="companyName", min_length=1),
    primary_phone_number: str = Form(..., alias="primaryPhoneNumber", min_length=1),
    industrial_sector: str = Form(..., alias="industrialSector", min_length=1),
    specialization: str = Form(..., min_length=1),
    optional_phone_number: str | None = Form(None, alias="optionalPhoneNumber"),
    email: str | None = Form(None),
    location: str | None = Form(None),
    site: str | None = Form(None),
    experience_provided: str | None = Form(None, alias="experienceProvided"),
    machinery_and_equipment: str | None = Form(None, alias="machineryAndEquipment"),
    image: UploadFile | None = File(None),
    experience_media: list[UploadFile] | None = File(None, alias="experienceProvidedMedia"),
    machinery_media: list[UploadFile] | None = File(None, alias="machineryAndEquipmentMedia"),
    service: CollaboratorService = Depends(get_collaborator_service),
) -> MessageResponse:
    """Submit a collaborator application (multipart form).

    Returns 201 on success; 400 with ``EMAIL_EXISTS``, ``PHONE_EXISTS`` or
    ``INVALID_FILE`` on validation failures; 500 ``SERVER_ERROR`` otherwise.
    """
    image_upload = None
    if image is not None and (image.filename or image.size):
        image_upload = await read_upload_file_limited(image, FILE_SIZE_LIMITS["image"])

    submission = CollaboratorSubmission(
        company_name=company_name.strip(),
        primary_phone_number=primary_phone_number.strip(),
        industrial_sector=industrial_sector.strip(),
        specialization=specialization.strip(),
        optional_phone_number=optional_phone_number,
        email=email.strip() if email else None,
        location=location,
        site=site,
        experience_provided=experience_provided,
        machinery_and_equipment=machinery_and_equipment,
        image=image_upload,
        experience_media=await read_upload_files_limited(
            experience_media, FILE_SIZE_LIMITS["media"]
        ),
        machinery_media=await read_upload_files_limited(
            machinery_media, FILE_SIZE_LIMITS["media"]
        ),
    )

    await run_in_threadpool(service.create, submission)
    return MessageResponse(message="Collaborator created successfully")
