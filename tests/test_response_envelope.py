from __future__ import annotations

from core.errors import invalid_or_expired_upload_link, too_many_requests, transfer_failed
from core.response_envelope import error_payload, format_validation_error_details, http_exception_response, success_payload


def test_success_payload_includes_request_id():
    payload = success_payload(data={"value": 1}, message="ok", request_id="req-123")

    assert payload == {"success": True, "message": "ok", "data": {"value": 1}, "requestId": "req-123"}


def test_error_payload_omits_missing_request_id():
    payload = error_payload(message="failed", data={"code": "X"})

    assert payload["success"] is False
    assert payload["data"]["code"] == "X"
    assert "requestId" not in payload


def test_http_exception_response_unwraps_app_exception_detail():
    response = http_exception_response(invalid_or_expired_upload_link())

    assert response.status_code == 404
    assert b"UPLOAD_LINK_INVALID" in response.body
    assert b"invalid or has expired" in response.body


def test_too_many_requests_carries_retry_after_header():
    exc = too_many_requests(retry_after_seconds=12, scope="upload-token", headers={"X-RateLimit-Limit": "30"})

    response = http_exception_response(exc)

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "12"
    assert response.headers["X-RateLimit-Limit"] == "30"


def test_transfer_failed_keeps_upstream_diagnostic():
    exc = transfer_failed(file_name="a.pdf", diagnostic="  Bucket quota exceeded \n", status_code=507)

    assert exc.status_code == 502
    assert exc.message == "Bucket quota exceeded"
    assert exc.detail["details"] == {"file_name": "a.pdf", "upstream_status": 507}
    assert transfer_failed(file_name="a.pdf", diagnostic="").message == "Upload failed"


def test_missing_form_fields_are_listed_in_summary():
    errors = [
        {"type": "missing", "loc": ("body", "uploader_name"), "msg": "Field required", "input": None},
        {"type": "missing", "loc": ("body", "token"), "msg": "Field required", "input": None},
        {"type": "missing", "loc": ("body", "token"), "msg": "Field required", "input": None},
    ]

    details = format_validation_error_details(errors)

    assert details["summary"] == "Validation failed: missing required fields: uploader_name, token."
    assert details["missingFields"] == ["uploader_name", "token"]
    assert details["fieldErrors"][0] == {
        "path": "uploader_name",
        "location": "body",
        "message": "Field required",
        "errorType": "missing",
    }


def test_invalid_value_has_field_error_without_missing_summary():
    errors = [
        {
            "type": "enum",
            "loc": ("body", "kind"),
            "msg": "Input should be 'single-field' or 'batch'",
            "input": "bulk",
        }
    ]

    details = format_validation_error_details(errors)

    assert details["summary"] == "Validation failed for 1 field."
    assert details["missingFields"] == []
    assert details["fieldErrors"][0]["path"] == "kind"
