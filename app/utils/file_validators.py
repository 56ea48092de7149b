"""File validation utilities for uploaded images and media.

Checks declared size and MIME type against per-category limits, for single
files and for batches (file count and aggregate size).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)

MB = 1024 * 1024

FILE_SIZE_LIMITS = {
    "image": 5 * MB,
    "document": 10 * MB,
    "video": 100 * MB,
    "media": 50 * MB,
    "default": 10 * MB,
}

ALLOWED_FILE_TYPES = {
    "image": ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"),
    "document": (
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
    "video": ("video/mp4", "video/mpeg", "video/quicktime", "video/x-msvideo"),
    "media": (
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "video/mp4",
        "video/mpeg",
    ),
}

DEFAULT_MAX_FILES = 10


@dataclass(frozen=True)
class UploadedFile:
    """An upload already read from the request.

    ``size`` is the number of bytes the client sent; ``data`` may be
    truncated when the upload was larger than the reader's cap, in which case
    the file fails size validation anyway.
    """

    filename: str | None
    content_type: str
    size: int
    data: bytes


@dataclass(frozen=True)
class FileValidationResult:
    valid: bool
    error: str | None = None


def format_file_size(num_bytes: int) -> str:
    """Human-readable size, e.g. ``1.5 MB``."""
    if num_bytes == 0:
        return "0 Bytes"

    units = ("Bytes", "KB", "MB", "GB")
    size = float(num_bytes)
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    return f"{round(size, 2):g} {units[index]}"


def validate_file(
    file: UploadedFile | None,
    *,
    max_size: int = FILE_SIZE_LIMITS["default"],
    allowed_types: Iterable[str] = (),
    required: bool = False,
) -> FileValidationResult:
    """Validate a single upload's size and MIME type.

    Args:
        file: The upload, or None when the field was left empty.
        max_size: Maximum size in bytes.
        allowed_types: Accepted MIME types; empty means any type.
        required: Whether a missing file is an error.

    Returns:
        FileValidationResult with a caller-facing error message on failure.
    """
    if file is None:
        if required:
            return FileValidationResult(False, "File is required")
        return FileValidationResult(True)

    if file.size > max_size:
        logger.warning(
            "file_validation.too_large",
            extra={"file_size": file.size, "max_bytes": max_size},
        )
        return FileValidationResult(
            False,
            f"File size exceeds maximum limit of {max_size / MB:.1f}MB",
        )

    allowed = tuple(allowed_types)
    if allowed and file.content_type not in allowed:
        logger.warning(
            "file_validation.type_rejected",
            extra={"content_type": file.content_type},
        )
        return FileValidationResult(
            False,
            f"File type '{file.content_type}' is not allowed. "
            f"Allowed types: {', '.join(allowed)}",
        )

    return FileValidationResult(True)


def validate_multiple_files(
    files: Sequence[UploadedFile],
    *,
    max_size: int = FILE_SIZE_LIMITS["default"],
    allowed_types: Iterable[str] = (),
    max_files: int = DEFAULT_MAX_FILES,
) -> FileValidationResult:
    """Validate a batch: file count, each file, then the aggregate size.

    The aggregate limit is ``max_size * max_files``.
    """
    if len(files) > max_files:
        return FileValidationResult(False, f"Maximum {max_files} files allowed")

    allowed = tuple(allowed_types)
    for index, file in enumerate(files, start=1):
        result = validate_file(file, max_size=max_size, allowed_types=allowed)
        if not result.valid:
            return FileValidationResult(False, f"File {index}: {result.error}")

    total_size = sum(file.size for file in files)
    max_total_size = max_size * max_files
    if total_size > max_total_size:
        return FileValidationResult(
            False,
            f"Total file size exceeds maximum limit of {max_total_size / MB:.1f}MB",
        )

    return FileValidationResult(True)
