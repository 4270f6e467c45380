from __future__ import annotations

import inspect
from functools import wraps
from typing import Any, Callable, Iterable, get_type_hints

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.responses import Response

_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie", "form"}


def success_payload(
    data: Any,
    message: str = "Success",
    *,
    request_id: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "success": True,
        "message": message,
        "data": data,
    }
    if request_id:
        payload["requestId"] = request_id
    return payload


def error_payload(
    message: str,
    data: Any = None,
    *,
    request_id: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "success": False,
        "message": message,
        "data": data,
    }
    if request_id:
        payload["requestId"] = request_id
    return payload


def error_response(
    *,
    status_code: int,
    message: str,
    data: Any = None,
    headers: dict[str, str] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content=jsonable_encoder(error_payload(message=message, data=data, request_id=request_id)),
    )


def _parse_http_exception_detail(detail: Any) -> tuple[str, Any]:
    if isinstance(detail, dict) and isinstance(detail.get("message"), str):
        return detail["message"], {"code": detail.get("code", "HTTP_EXCEPTION"), "details": detail.get("details")}
    if isinstance(detail, str) and detail.strip():
        return detail, {"code": "HTTP_EXCEPTION", "details": None}
    return "Request failed", {"code": "HTTP_EXCEPTION", "details": detail}


def request_id_from(request: Request | None) -> str | None:
    if request is None:
        return None
    return getattr(request.state, "request_id", None)


def http_exception_response(exc: HTTPException, request: Request | None = None) -> JSONResponse:
    message, data = _parse_http_exception_detail(exc.detail)
    return error_response(
        status_code=exc.status_code,
        message=message,
        data=data,
        request_id=request_id_from(request),
        headers=exc.headers,
    )


def _error_location(raw_loc: Any) -> tuple[str, str]:
    parts = [str(part) for part in raw_loc] if isinstance(raw_loc, (list, tuple)) else [str(raw_loc or "body")]
    location = parts[0]
    path_parts = parts[1:] if location in _REQUEST_LOCATIONS else parts
    return location, ".".join(path_parts) or "(root)"


def format_validation_error_details(errors: Iterable[dict[str, Any]]) -> dict[str, Any]:
    field_errors: list[dict[str, str]] = []
    missing_fields: list[str] = []

    for error in errors:
        location, path = _error_location(error.get("loc"))
        error_type = str(error.get("type", "validation_error"))
        field_errors.append(
            {
                "path": path,
                "location": location,
                "message": str(error.get("msg", "Invalid value")),
                "errorType": error_type,
            }
        )
        if error_type == "missing" and path not in missing_fields:
            missing_fields.append(path)

    if missing_fields:
        noun = "field" if len(missing_fields) == 1 else "fields"
        summary = f"Validation failed: missing required {noun}: {', '.join(missing_fields)}."
    else:
        noun = "field" if len(field_errors) == 1 else "fields"
        summary = f"Validation failed for {len(field_errors)} {noun}."

    return {"summary": summary, "missingFields": missing_fields, "fieldErrors": field_errors}


def _extract_request(*args: Any, **kwargs: Any) -> Request | None:
    for value in (*kwargs.values(), *args):
        if isinstance(value, Request):
            return value
    return None


def _resolved_signature(func: Callable[..., Any]) -> inspect.Signature:
    # Route modules use postponed annotations; resolve them against the route's own globals.
    hints = get_type_hints(func, include_extras=True)
    signature = inspect.signature(func)
    parameters = [param.replace(annotation=hints.get(param.name, param.annotation)) for param in signature.parameters.values()]
    return signature.replace(parameters=parameters)


def document_response(
    *,
    message: str = "Success",
    status_code: int = status.HTTP_200_OK,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Wrap a route's return value in the success envelope."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Response:
            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result

            if isinstance(result, Response):
                return result

            request = _extract_request(*args, **kwargs)
            return JSONResponse(
                status_code=status_code,
                content=jsonable_encoder(
                    success_payload(data=result, message=message, request_id=request_id_from(request))
                ),
            )

        wrapper.__signature__ = _resolved_signature(func)
        return wrapper

    return decorator
