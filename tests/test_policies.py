"""Tests for policy upload, listing, detail, download and soft delete."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from insurance_analyzer.api.policies import build_s3_key, default_coverage_end, sanitize_file_name
from insurance_analyzer.constants import PolicyStatus
from insurance_analyzer.models.analysis import Analysis
from insurance_analyzer.models.policy import Policy
from insurance_analyzer.services import s3_storage
from insurance_analyzer.services.s3_storage import StorageError
from tests.conftest import auth_headers_for

MB = 1024 * 1024


@pytest.fixture
def s3_upload(monkeypatch) -> Mock:
    upload = Mock(side_effect=lambda file_bytes, key, *args, **kwargs: key)
    monkeypatch.setattr(s3_storage, "upload_file", upload)
    return upload


def _upload(client, headers, content=b"%PDF-1.4 test", filename="policy.pdf",
            content_type="application/pdf", **form):
    return client.post(
        "/api/policies/upload",
        headers=headers,
        files={"file": (filename, content, content_type)},
        data=form,
    )


class TestHelpers:
    def test_sanitize_file_name(self):
        assert sanitize_file_name("my policy (2024).pdf") == "my_policy__2024_.pdf"
        assert sanitize_file_name("../etc/passwd") == ".._etc_passwd"

    def test_s3_key_layout(self):
        assert build_s3_key("u1", "f1", "Home Policy.pdf") == "policies/u1/f1/Home_Policy.pdf"

    def test_default_coverage_end_is_one_year_later(self):
        assert default_coverage_end(date(2024, 3, 15)) == date(2025, 3, 15)

    def test_default_coverage_end_from_leap_day(self):
        assert default_coverage_end(date(2024, 2, 29)) == date(2025, 2, 28)


class TestUpload:
    """POST /api/policies/upload"""

    def test_success(self, client, user, auth_headers, s3_upload, db_session):
        response = _upload(
            client, auth_headers, filename="my policy.pdf",
            coverageStart="2024-06-01", coverageEnd="2025-06-01", description="Home",
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        policy = body["policy"]
        assert policy["fileName"] == "my policy.pdf"
        assert policy["coverageStart"] == "2024-06-01"
        assert policy["coverageEnd"] == "2025-06-01"
        assert policy["description"] == "Home"
        assert policy["status"] == "uploaded"

        args = s3_upload.call_args.args
        key = args[1]
        assert key.startswith(f"policies/{user.id}/")
        assert key.endswith("/my_policy.pdf")
        assert args[2] == "application/pdf"
        assert set(args[3]) == {"userId", "originalFileName", "uploadedAt"}

        stored = db_session.query(Policy).one()
        assert stored.s3_key == key
        assert stored.s3_bucket == "test-bucket"
        assert stored.file_size == len(b"%PDF-1.4 test")
        assert stored.original_file_name == "my policy.pdf"
        assert stored.file_name in key

    def test_upload_not_capped_below_default_limit(self, client, auth_headers, s3_upload):
        statuses = {_upload(client, auth_headers, coverageStart="2024-01-01").status_code for _ in range(25)}

        assert statuses == {201}
        assert s3_upload.call_count == 25

    def test_coverage_end_defaults_to_one_year(self, client, auth_headers, s3_upload):
        response = _upload(client, auth_headers, coverageStart="2024-02-29")

        assert response.status_code == 201
        assert response.json()["policy"]["coverageEnd"] == "2025-02-28"

    def test_requires_session(self, client, s3_upload):
        response = _upload(client, {}, coverageStart="2024-01-01")

        assert response.status_code == 401
        s3_upload.assert_not_called()

    def test_missing_file(self, client, auth_headers, s3_upload):
        response = client.post("/api/policies/upload", headers=auth_headers, data={"coverageStart": "2024-01-01"})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "No file provided"

    def test_non_pdf_rejected(self, client, auth_headers, s3_upload):
        response = _upload(client, auth_headers, filename="notes.txt", content_type="text/plain",
                           coverageStart="2024-01-01")

        assert response.status_code == 400
        assert response.json()["error"] == {"code": "VALIDATION_ERROR", "message": "File must be a PDF"}

    def test_exactly_ten_megabytes_accepted(self, client, auth_headers, s3_upload):
        response = _upload(client, auth_headers, content=b"0" * (10 * MB), coverageStart="2024-01-01")

        assert response.status_code == 201

    def test_over_ten_megabytes_rejected(self, client, auth_headers, s3_upload):
        response = _upload(client, auth_headers, content=b"0" * (10 * MB + 1), coverageStart="2024-01-01")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "File size must be less than 10MB"
        s3_upload.assert_not_called()

    @pytest.mark.parametrize(
        "form, message",
        [
            ({}, "coverageStart is required"),
            ({"coverageStart": "2024/01/01"}, "coverageStart must be in YYYY-MM-DD format"),
            ({"coverageStart": "2024-02-30"}, "Invalid coverageStart date"),
            ({"coverageStart": "2024-01-01", "coverageEnd": "01-01-2025"}, "coverageEnd must be in YYYY-MM-DD format"),
            ({"coverageStart": "2024-01-01", "coverageEnd": "2024-01-01"}, "coverageEnd must be after coverageStart"),
            ({"coverageStart": "2024-01-01", "coverageEnd": "2023-12-31"}, "coverageEnd must be after coverageStart"),
        ],
    )
    def test_coverage_validation(self, client, auth_headers, s3_upload, form, message):
        response = _upload(client, auth_headers, **form)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == message
        s3_upload.assert_not_called()

    def test_storage_failure(self, client, auth_headers, s3_upload, db_session):
        s3_upload.side_effect = StorageError("PutObject failed")

        response = _upload(client, auth_headers, coverageStart="2024-01-01")

        assert response.status_code == 500
        assert response.json()["error"] == {
            "code": "INTERNAL_ERROR",
            "message": "Failed to upload file to storage",
        }
        assert db_session.query(Policy).count() == 0


class TestListPolicies:
    """GET /api/policies"""

    def test_filters_and_ordering(self, client, user, auth_headers, make_policy, make_user):
        now = datetime.now(timezone.utc)
        older = make_policy(user, coverage_start=date(2023, 5, 1), uploaded_at=now - timedelta(days=2))
        newer = make_policy(user, coverage_start=date(2024, 5, 1), uploaded_at=now - timedelta(days=1),
                            status=PolicyStatus.ANALYZED)
        make_policy(user, is_deleted=True)
        make_policy(make_user(email="other@example.com"))

        body = client.get("/api/policies", headers=auth_headers).json()
        assert body["total"] == 2
        assert [p["id"] for p in body["policies"]] == [newer.id, older.id]
        assert body["limit"] == 50
        assert body["offset"] == 0

        by_year = client.get("/api/policies", headers=auth_headers, params={"year": 2023}).json()
        assert [p["id"] for p in by_year["policies"]] == [older.id]

        by_status = client.get("/api/policies", headers=auth_headers, params={"status": "analyzed"}).json()
        assert [p["id"] for p in by_status["policies"]] == [newer.id]

    def test_pagination(self, client, user, auth_headers, make_policy):
        for _ in range(3):
            make_policy(user)

        body = client.get("/api/policies", headers=auth_headers, params={"limit": 2, "offset": 2}).json()

        assert body["total"] == 3
        assert len(body["policies"]) == 1
        assert body["limit"] == 2
        assert body["offset"] == 2

    @pytest.mark.parametrize(
        "params, message",
        [
            ({"limit": 0}, "limit must be between 1 and 100"),
            ({"limit": 101}, "limit must be between 1 and 100"),
            ({"offset": -1}, "offset must be >= 0"),
            ({"year": 1899}, "year must be a valid year"),
            ({"year": 2101}, "year must be a valid year"),
            ({"status": "archived"}, "status must be one of: uploaded, processing, analyzed, failed"),
        ],
    )
    def test_invalid_params(self, client, auth_headers, params, message):
        response = client.get("/api/policies", headers=auth_headers, params=params)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == message

    def test_bounds_accepted(self, client, auth_headers):
        for params in ({"limit": 1}, {"limit": 100}, {"year": 1900}, {"year": 2100}):
            assert client.get("/api/policies", headers=auth_headers, params=params).status_code == 200


class TestPolicyDetail:
    def test_includes_analysis_summary(self, client, user, auth_headers, make_policy, db_session):
        policy = make_policy(user, status=PolicyStatus.ANALYZED)
        db_session.add(Analysis(policy_id=policy.id, ai_model="gpt-4o-mini", ai_tokens_used=42,
                                analysis_result="# Report"))
        db_session.commit()

        data = client.get(f"/api/policies/{policy.id}", headers=auth_headers).json()

        assert data["id"] == policy.id
        assert data["originalFileName"] == "home-policy.pdf"
        assert data["analysis"]["aiTokensUsed"] == 42

    def test_without_analysis(self, client, user, auth_headers, make_policy):
        policy = make_policy(user)

        data = client.get(f"/api/policies/{policy.id}", headers=auth_headers).json()

        assert data["analysis"] is None

    def test_other_users_policy_is_not_found(self, client, make_user, make_policy, auth_headers):
        stranger = make_user(email="stranger@example.com")
        policy = make_policy(stranger)

        response = client.get(f"/api/policies/{policy.id}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_download_url(self, client, user, auth_headers, make_policy, monkeypatch):
        policy = make_policy(user)
        presign = Mock(return_value="https://s3.test/signed")
        monkeypatch.setattr(s3_storage, "get_signed_url", presign)

        response = client.get(f"/api/policies/{policy.id}/download", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["url"] == "https://s3.test/signed"
        assert presign.call_args.args[0] == policy.s3_key


class TestDeletePolicy:
    """DELETE /api/policies/{id} (soft delete)"""

    def test_soft_delete(self, client, user, auth_headers, make_policy, db_session):
        policy = make_policy(user)

        response = client.delete(f"/api/policies/{policy.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Policy deleted successfully"}
        db_session.expire_all()
        assert db_session.get(Policy, policy.id).is_deleted is True
        assert client.get(f"/api/policies/{policy.id}", headers=auth_headers).status_code == 404
        assert client.get("/api/policies", headers=auth_headers).json()["total"] == 0

    def test_already_deleted(self, client, user, auth_headers, make_policy):
        policy = make_policy(user, is_deleted=True)

        response = client.delete(f"/api/policies/{policy.id}", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Policy already deleted"

    def test_unknown_policy(self, client, auth_headers):
        assert client.delete("/api/policies/does-not-exist", headers=auth_headers).status_code == 404

    def test_cannot_delete_other_users_policy(self, client, make_user, make_policy, auth_headers):
        policy = make_policy(make_user(email="stranger@example.com"))

        assert client.delete(f"/api/policies/{policy.id}", headers=auth_headers).status_code == 404

    def test_token_for_other_user_sees_own_policies_only(self, client, user, make_user, make_policy):
        other = make_user(email="other@example.com")
        make_policy(user)

        body = client.get("/api/policies", headers=auth_headers_for(other)).json()

        assert body["total"] == 0
