from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, status

INVALID_UPLOAD_LINK_MESSAGE = "This upload link is invalid or has expired. Please contact the administrator."


class ErrorCode(str, Enum):
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UPLOAD_LINK_INVALID = "UPLOAD_LINK_INVALID"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    TRANSFER_FAILED = "TRANSFER_FAILED"
    STORAGE_ERROR = "STORAGE_ERROR"


class AppException(HTTPException):
    def __init__(
        self,
        *,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        detail = {
            "message": message,
            "code": code.value,
            "details": details,
        }
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    @property
    def code(self) -> str:
        return self.detail["code"]

    @property
    def message(self) -> str:
        return self.detail["message"]


def auth_invalid_token(details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        code=ErrorCode.AUTH_INVALID_TOKEN,
        message="Authentication required",
        details=details,
        headers={"WWW-Authenticate": "Bearer"},
    )


def auth_permission_denied(resource: str, resource_id: str | None = None) -> AppException:
    details = {"resource": resource}
    if resource_id:
        details["resource_id"] = resource_id
    return AppException(
        status_code=status.HTTP_403_FORBIDDEN,
        code=ErrorCode.AUTH_PERMISSION_DENIED,
        message="Insufficient permissions",
        details=details,
    )


def resource_not_found(resource: str, resource_id: str | None = None) -> AppException:
    details = {"resource": resource}
    if resource_id:
        details["resource_id"] = resource_id
    return AppException(
        status_code=status.HTTP_404_NOT_FOUND,
        code=ErrorCode.RESOURCE_NOT_FOUND,
        message=f"{resource} not found",
        details=details,
    )


def validation_failed(message: str, details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_400_BAD_REQUEST,
        code=ErrorCode.VALIDATION_FAILED,
        message=message,
        details=details,
    )


def invalid_or_expired_upload_link() -> AppException:
    # Not found and expired share one response.
    return AppException(
        status_code=status.HTTP_404_NOT_FOUND,
        code=ErrorCode.UPLOAD_LINK_INVALID,
        message=INVALID_UPLOAD_LINK_MESSAGE,
    )


def precondition_failed(message: str, details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_412_PRECONDITION_FAILED,
        code=ErrorCode.PRECONDITION_FAILED,
        message=message,
        details=details,
    )


def file_too_large(*, file_name: str, size_bytes: int, limit_bytes: int, message: str) -> AppException:
    return AppException(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        code=ErrorCode.FILE_TOO_LARGE,
        message=message,
        details={"file_name": file_name, "size_bytes": size_bytes, "max_size_bytes": limit_bytes},
    )


def transfer_failed(*, file_name: str, diagnostic: str | None = None, status_code: int | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        code=ErrorCode.TRANSFER_FAILED,
        message=(diagnostic or "").strip() or "Upload failed",
        details={"file_name": file_name, "upstream_status": status_code},
    )


def storage_error(message: str, details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=ErrorCode.STORAGE_ERROR,
        message=message,
        details=details,
    )


def too_many_requests(*, retry_after_seconds: int, scope: str, headers: dict[str, str]) -> AppException:
    return AppException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        code=ErrorCode.TOO_MANY_REQUESTS,
        message="Too Many Requests",
        details={"retry_after_seconds": retry_after_seconds, "scope": scope},
        headers={**headers, "Retry-After": str(retry_after_seconds)},
    )
