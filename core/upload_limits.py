from __future__ import annotations

from datetime import timedelta
from pathlib import PurePath

MAX_FILE_SIZE_MB = 5
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
MAX_FILES_PER_BATCH = 10

SINGLE_FIELD_TOKEN_TTL = timedelta(days=7)
BATCH_TOKEN_TTL = timedelta(hours=168)
MAX_TOKEN_TTL = timedelta(days=30)

BATCH_FIELD_LABEL = "Batch Upload"
DOWNLOAD_URL_TTL_SECONDS = 3600

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size_bytes: int) -> str:
    if size_bytes <= 0:
        return "0 Bytes"
    exponent = 0
    while size_bytes >= 1024 ** (exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
    value = round(size_bytes / (1024**exponent), 2)
    return f"{value:g} {_SIZE_UNITS[exponent]}"


def size_in_mb(size_bytes: int) -> str:
    return f"{size_bytes / 1024 / 1024:.2f}"


def check_file_size(file_name: str, size_bytes: int) -> str | None:
    """Return the rejection message for an oversized file, or None when it fits."""
    if size_bytes > MAX_FILE_SIZE_BYTES:
        return f'File "{file_name}" exceeds {MAX_FILE_SIZE_MB}MB limit ({size_in_mb(size_bytes)}MB)'
    return None


def file_type_label(file_name: str) -> str:
    suffix = PurePath(file_name).suffix
    return suffix[1:].lower() if len(suffix) > 1 else "unknown"
