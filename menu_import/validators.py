"""Upload acceptance checks and tolerant field coercion."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Final, Literal

from menu_import.config import settings

__all__ = [
    "ACCEPTED_EXTENSIONS",
    "ACCEPTED_MEDIA_TYPES",
    "FileCheck",
    "check_upload_file",
    "coerce_price",
    "describe_file_type",
    "is_file_acceptable",
]

ACCEPTED_MEDIA_TYPES: Final[dict[str, str]] = {
    "application/pdf": "pdf",
    "text/csv": "csv",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/json": "json",
    "text/plain": "txt",
}
ACCEPTED_EXTENSIONS: Final[frozenset[str]] = frozenset(ACCEPTED_MEDIA_TYPES.values())

_FILE_TYPE_LABELS: Final[dict[str, str]] = {
    "pdf": "PDF",
    "csv": "CSV",
    "xls": "XLS",
    "xlsx": "XLS",
    "doc": "DOC",
    "docx": "DOC",
    "json": "JSON",
    "txt": "TXT",
}

_NUMBER_PATTERN = re.compile(r"[-+]?\d+(?:\.\d+)?")

RejectionCode = Literal["unsupported_type", "file_too_large", "empty_file"]


@dataclass(frozen=True)
class FileCheck:
    """Outcome of validating a file before it is sent for extraction."""

    accepted: bool
    reason: str | None = None
    code: RejectionCode | None = None


def _extension(filename: str | None) -> str:
    if not filename:
        return ""
    return PurePath(filename).suffix.lower().lstrip(".")


def describe_file_type(filename: str | None) -> str:
    """Return the short display label for an uploaded file."""

    return _FILE_TYPE_LABELS.get(_extension(filename), "FILE")


def check_upload_file(
    filename: str | None,
    content_type: str | None,
    size: int,
    *,
    max_size: int | None = None,
) -> FileCheck:
    """Validate media type (extension as fallback) and size of an upload."""

    limit = settings.max_upload_size_bytes if max_size is None else max_size
    media_type = (content_type or "").split(";")[0].strip().lower()

    if media_type not in ACCEPTED_MEDIA_TYPES and _extension(filename) not in ACCEPTED_EXTENSIONS:
        return FileCheck(
            accepted=False,
            reason=(
                "Unsupported file type. Please upload: PDF, CSV, Excel (XLS/XLSX), "
                "Word (DOC/DOCX), JSON, or TXT files."
            ),
            code="unsupported_type",
        )
    if size > limit:
        limit_mb = limit // (1024 * 1024)
        return FileCheck(
            accepted=False,
            reason=f"File too large. Please upload files smaller than {limit_mb}MB.",
            code="file_too_large",
        )
    if size <= 0:
        return FileCheck(accepted=False, reason="Empty file uploaded", code="empty_file")
    return FileCheck(accepted=True)


def is_file_acceptable(
    filename: str | None, content_type: str | None, size: int
) -> bool:
    return check_upload_file(filename, content_type, size).accepted


def coerce_price(value: object) -> float | None:
    """Parse a price leniently.

    Missing or blank values stay ``None``. Anything else that cannot be read
    as a number becomes ``0.0`` instead of failing the whole item.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    match = _NUMBER_PATTERN.search(text.replace(",", ""))
    if match is None:
        return 0.0
    return float(match.group(0))
