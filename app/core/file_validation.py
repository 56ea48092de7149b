"""Reading multipart uploads into memory with a hard size cap."""
from __future__ import annotations

import logging

from fastapi import UploadFile

from app.utils.file_validators import UploadedFile

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


async def read_upload_file_limited(file: UploadFile, max_bytes: int) -> UploadedFile:
    """Read an uploaded file in chunks, never buffering more than the cap.

    Uses file.size if available (multipart headers). Otherwise the file is
    read chunk by chunk; once more than ``max_bytes`` have been seen the
    reader stops and reports the bytes seen so far as the size, which is
    enough for size validation to reject it.

    Args:
        file: FastAPI upload file instance.
        max_bytes: Largest size that could still pass validation.

    Returns:
        UploadedFile with the declared content type and measured size.
    """
    content_type = file.content_type or "application/octet-stream"

    # Check size from multipart headers if available
    declared_size = getattr(file, "size", None)
    if declared_size is not None and declared_size > max_bytes:
        logger.warning(
            "file_validation.rejected_by_header",
            extra={"file_size": declared_size, "max_bytes": max_bytes},
        )
        return UploadedFile(
            filename=file.filename,
            content_type=content_type,
            size=declared_size,
            data=b"",
        )

    # Chunked reading with secondary enforcement
    size = 0
    chunks: list[bytes] = []

    while True:
        chunk = await file.read(_CHUNK_SIZE)
        if not chunk:
            break

        size += len(chunk)
        if size > max_bytes:
            logger.warning(
                "file_validation.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": max_bytes},
            )
            return UploadedFile(
                filename=file.filename,
                content_type=content_type,
                size=size,
                data=b"",
            )
        chunks.append(chunk)

    return UploadedFile(
        filename=file.filename,
        content_type=content_type,
        size=size,
        data=b"".join(chunks),
    )


async def read_upload_files_limited(
    files: list[UploadFile] | None, max_bytes: int
) -> list[UploadedFile]:
    """Read a list of uploads, skipping empty form parts."""
    result: list[UploadedFile] = []
    for file in files or []:
        if not file.filename and not file.size:
            continue
        result.append(await read_upload_file_limited(file, max_bytes))
    return result
