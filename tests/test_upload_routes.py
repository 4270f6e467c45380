from __future__ import annotations

from urllib.parse import quote

from bson import ObjectId
from fastapi.testclient import TestClient

from core.context import AppContext
from core.errors import INVALID_UPLOAD_LINK_MESSAGE
from fakes import FakeDatabase, bearer_headers, make_rate_limiter, seed_membership
from main import create_app


def _client(context: AppContext) -> TestClient:
    return TestClient(create_app(context))


def _issue_token(client: TestClient, **body) -> dict:
    response = client.post("/v1/claims/claim-1/upload-tokens", json=body or None, headers=bearer_headers())
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_issue_upload_token_returns_redemption_url(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    client = _client(app_context)

    response = client.post(
        "/v1/claims/claim-1/upload-tokens",
        json={"kind": "single-field", "field_label": "Police report", "ttl_hours": 2},
        headers={**bearer_headers(), "X-Request-ID": "req-42"},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert payload["requestId"] == "req-42"
    data = payload["data"]
    assert data["kind"] == "single-field"
    assert data["expires_at"] - data["issued_at"] == 7200
    assert data["upload_url"].startswith("https://claims.example.com/public-upload?token=")
    assert response.headers["X-Request-ID"] == "req-42"


def test_issue_upload_token_requires_bearer_token(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    client = _client(app_context)

    missing = client.post("/v1/claims/claim-1/upload-tokens")
    expired = client.post("/v1/claims/claim-1/upload-tokens", headers=bearer_headers(expires_in=-60))

    for response in (missing, expired):
        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.json()["data"]["code"] == "AUTH_INVALID_TOKEN"
    assert expired.json()["data"]["details"] == {"reason": "expired"}


def test_issue_upload_token_for_foreign_claim_is_forbidden(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    fake_db.claims.rows.append({"_id": "claim-9", "company_id": "company-9"})

    response = _client(app_context).post("/v1/claims/claim-9/upload-tokens", headers=bearer_headers())

    assert response.status_code == 403


def test_public_token_lookup_reports_scope_and_limits(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    client = _client(app_context)
    issued = _issue_token(client)

    response = client.get(f"/v1/public-upload/tokens/{issued['token']}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["claim_id"] == "claim-1"
    assert data["field_label"] == "Batch Upload"
    assert data["max_files"] == 10
    assert data["max_file_size_bytes"] == 5_242_880


def test_zero_lifetime_link_renders_invalid_state(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    client = _client(app_context)
    issued = _issue_token(client, ttl_hours=0)

    expired = client.get(f"/v1/public-upload/tokens/{issued['token']}")
    unknown = client.get("/v1/public-upload/tokens/not-a-token")

    assert expired.status_code == unknown.status_code == 404
    assert expired.json()["message"] == unknown.json()["message"] == INVALID_UPLOAD_LINK_MESSAGE
    assert expired.json()["data"] == unknown.json()["data"]


def test_public_upload_then_member_listing(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    client = _client(app_context)
    issued = _issue_token(client)

    upload = client.post(
        "/v1/public-upload/documents",
        data={"token": issued["token"], "uploader_name": "Jane Doe"},
        files={"file": ("damage.jpg", b"jpeg-bytes", "image/jpeg")},
    )
    assert upload.status_code == 201, upload.text
    assert upload.json()["data"]["file_name"] == "damage.jpg"

    listing = client.get("/v1/claims/claim-1/documents", headers=bearer_headers())
    assert listing.status_code == 200
    documents = listing.json()["data"]
    assert len(documents) == 1
    assert documents[0]["size_bytes"] == len(b"jpeg-bytes")
    assert documents[0]["uploaded_by"] == "user-1"
    assert documents[0]["field_label"] == "Uploaded by: Jane Doe"

    served = client.get(documents[0]["storage_path"])
    assert served.status_code == 200
    assert served.content == b"jpeg-bytes"
    assert served.headers["content-type"] == "image/jpeg"


def test_public_batch_reports_partial_success(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    client = _client(app_context)
    issued = _issue_token(client)

    response = client.post(
        "/v1/public-upload/batches",
        data={"token": issued["token"], "uploader_name": "Jane Doe"},
        files=[
            ("files", ("one.pdf", b"1", "application/pdf")),
            ("files", ("two.bin", b"\0" * 5_242_881, "application/octet-stream")),
            ("files", ("three.pdf", b"3", "application/pdf")),
        ],
    )

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert [item["status"] for item in data["files"]] == ["success", "error", "success"]
    assert data["summary"] == "2 of 3 uploaded"
    assert data["files"][1]["error"] == 'File "two.bin" exceeds 5MB limit (5.00MB)'


def test_public_upload_with_invalid_token_is_rejected(app_context: AppContext):
    response = _client(app_context).post(
        "/v1/public-upload/documents",
        data={"token": "bogus", "uploader_name": "Jane"},
        files={"file": ("a.pdf", b"a", "application/pdf")},
    )

    assert response.status_code == 404
    assert response.json()["data"]["code"] == "UPLOAD_LINK_INVALID"


def test_public_upload_missing_name_is_a_validation_error(app_context: AppContext):
    response = _client(app_context).post(
        "/v1/public-upload/documents",
        data={"token": "tok"},
        files={"file": ("a.pdf", b"a", "application/pdf")},
    )

    assert response.status_code == 422
    details = response.json()["data"]["details"]
    assert details["missingFields"] == ["uploader_name"]


def test_public_lookup_is_rate_limited(app_context: AppContext):
    app_context.rate_limiter = make_rate_limiter(lookup="1/minute")
    client = _client(app_context)

    client.get("/v1/public-upload/tokens/anything")
    response = client.get("/v1/public-upload/tokens/anything")

    assert response.status_code == 429
    assert "Retry-After" in response.headers
    assert response.json()["data"]["code"] == "TOO_MANY_REQUESTS"


def test_member_batch_upload_and_download_url(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    client = _client(app_context)

    upload = client.post(
        "/v1/claims/claim-1/documents",
        files=[("files", ("a.pdf", b"aaa", "application/pdf")), ("files", ("b.pdf", b"bb", "application/pdf"))],
        headers=bearer_headers(),
    )
    assert upload.status_code == 201, upload.text
    result = upload.json()["data"]
    assert result["all_succeeded"] is True

    document_id = result["files"][0]["document_id"]
    download = client.get(f"/v1/documents/{document_id}/download-url", headers=bearer_headers())
    assert download.status_code == 200
    assert download.json()["data"]["expires_in"] == 3600
    assert download.json()["data"]["url"].startswith("/v1/documents/local/company-1/claim-1/")


def test_download_url_for_other_company_is_forbidden(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    foreign_id = ObjectId()
    fake_db.claim_documents.rows.append(
        {
            "_id": foreign_id,
            "claim_id": "claim-9",
            "company_id": "company-9",
            "file_name": "secret.pdf",
            "storage_path": "https://cdn.example.com/secret.pdf",
            "backend": "http",
            "file_type": "pdf",
            "content_type": "application/pdf",
            "size_bytes": 10,
            "uploader_name": "someone",
            "uploaded_via_link": False,
            "created_at": 1,
        }
    )
    client = _client(app_context)

    forbidden = client.get(f"/v1/documents/{foreign_id}/download-url", headers=bearer_headers())
    missing = client.get(f"/v1/documents/{ObjectId()}/download-url", headers=bearer_headers())

    assert forbidden.status_code == 403
    assert missing.status_code == 404


def test_storage_usage_sums_company_documents(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    client = _client(app_context)
    client.post(
        "/v1/claims/claim-1/documents",
        files=[("files", ("a.bin", b"\0" * 1024, "application/octet-stream")), ("files", ("b.bin", b"\0" * 512, "application/octet-stream"))],
        headers=bearer_headers(),
    )

    response = client.get("/v1/storage-usage", headers=bearer_headers())

    assert response.status_code == 200
    assert response.json()["data"] == {
        "company_id": "company-1",
        "total_bytes": 1536,
        "document_count": 2,
        "total_size": "1.5 KB",
    }


def test_local_file_route_refuses_paths_outside_upload_root(app_context: AppContext, tmp_path):
    secret = tmp_path / "secret.txt"
    secret.write_bytes(b"top secret")
    client = _client(app_context)

    absolute = client.get("/v1/documents/local/" + quote(str(secret), safe=""))
    encoded_parent = client.get("/v1/documents/local/company-1/" + quote("../../secret.txt", safe=""))

    for response in (absolute, encoded_parent):
        assert response.status_code == 400
        assert b"top secret" not in response.content


def test_local_file_route_serves_dotted_names_inside_root(app_context: AppContext, tmp_path):
    (tmp_path / "uploads" / "company-1").mkdir(parents=True, exist_ok=True)
    (tmp_path / "uploads" / "company-1" / "..notes.txt").write_bytes(b"inside")
    client = _client(app_context)

    served = client.get("/v1/documents/local/company-1/..notes.txt")
    missing = client.get("/v1/documents/local/company-1/absent.txt")

    assert served.status_code == 200
    assert served.content == b"inside"
    assert missing.status_code == 404


def test_public_batch_over_file_limit_is_rejected_before_rate_limit(app_context: AppContext, fake_db: FakeDatabase):
    seed_membership(fake_db)
    app_context.rate_limiter = make_rate_limiter(per_token="5/minute", per_source="5/minute")
    client = _client(app_context)
    issued = _issue_token(client)

    too_many = client.post(
        "/v1/public-upload/batches",
        data={"token": issued["token"], "uploader_name": "Jane Doe"},
        files=[("files", (f"f{i}.pdf", b"x", "application/pdf")) for i in range(11)],
    )
    allowed = client.post(
        "/v1/public-upload/batches",
        data={"token": issued["token"], "uploader_name": "Jane Doe"},
        files=[("files", (f"f{i}.pdf", b"x", "application/pdf")) for i in range(5)],
    )

    assert too_many.status_code == 400
    assert too_many.json()["message"] == "Maximum 10 files allowed"
    assert allowed.status_code == 200, allowed.text
    assert allowed.json()["data"]["succeeded"] == 5


def test_health_check_pings_database(app_context: AppContext, fake_db: FakeDatabase):
    client = _client(app_context)

    healthy = client.get("/health")
    fake_db.ping_error = RuntimeError("no primary")
    degraded = client.get("/health")

    assert healthy.json()["data"]["status"] == "healthy"
    assert healthy.json()["data"]["services"]["storage"]["message"] == "local"
    assert degraded.json()["data"]["status"] == "degraded"
