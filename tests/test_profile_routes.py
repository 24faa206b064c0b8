import re

import pytest

from app.api.routes import profile_routes
from app.main import app
from app.services.profile_service import generate_safe_hire_id, get_profile
from conftest import auth_headers, count_rows, insert_certificate, insert_profile


def test_me_profile_without_row_returns_empty_object(client):
    response = client.get("/api/me/profile", headers=auth_headers("fresh-user"))

    assert response.status_code == 200
    assert response.json() == {}


def test_me_profile_returns_row(client, db):
    insert_profile(db, "u1", role="job_seeker", safe_hire_id="JS123456", aadhaar_verified=True)

    body = client.get("/api/me/profile", headers=auth_headers("u1")).json()

    assert body["user_id"] == "u1"
    assert body["role"] == "job_seeker"
    assert body["safe_hire_id"] == "JS123456"
    assert body["aadhaar_verified"] is True


def test_profile_summary_defaults(client):
    response = client.get("/api/profile/me", headers=auth_headers("u2", email="u2@example.com"))

    assert response.json() == {
        "email": "u2@example.com",
        "role": "not_set",
        "safe_hire_id": None,
        "aadhaar_verified": False,
        "user_id": "u2",
    }


def test_set_role_creates_profile_for_fresh_user(client, db):
    response = client.post("/api/profile/set-role", json={"role": "employer_admin"}, headers=auth_headers("new"))

    assert response.status_code == 200
    assert response.json() == {"success": True, "role": "employer_admin"}
    assert get_profile(db, "new")["role"] == "employer_admin"


def test_set_role_upserts_without_duplicates(client, db):
    headers = auth_headers("u3")
    client.post("/api/profile/set-role", json={"role": "job_seeker"}, headers=headers)
    client.post("/api/profile/set-role", json={"role": "institution"}, headers=headers)

    assert count_rows(db, "profiles", user_id="u3") == 1
    assert get_profile(db, "u3")["role"] == "institution"


@pytest.mark.parametrize("body", [{"role": "admin"}, {"role": ""}, {"role": "JOB_SEEKER"}, {}])
def test_set_role_rejects_unknown_roles_without_writing(client, db, body):
    insert_profile(db, "u4", role="job_seeker")

    response = client.post("/api/profile/set-role", json=body, headers=auth_headers("u4"))

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid role"}
    assert get_profile(db, "u4")["role"] == "job_seeker"


def test_set_role_rejects_unknown_role_for_fresh_user(client, db):
    client.post("/api/profile/set-role", json={"role": "superuser"}, headers=auth_headers("u5"))

    assert count_rows(db, "profiles", user_id="u5") == 0


def test_malformed_body_is_a_400(client):
    response = client.post(
        "/api/profile/set-role",
        content=b"{not json",
        headers={**auth_headers("u6"), "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["ok"] is False


def test_ensure_safe_id_is_idempotent(client, db, monkeypatch):
    writes = []
    real_upsert = profile_routes.upsert_profile

    def counting_upsert(*args, **kwargs):
        writes.append(kwargs)
        return real_upsert(*args, **kwargs)

    monkeypatch.setattr(profile_routes, "upsert_profile", counting_upsert)
    headers = auth_headers("u7")

    first = client.post("/api/profile/ensure-safe-id", headers=headers).json()
    second = client.post("/api/profile/ensure-safe-id", headers=headers).json()

    assert first["ok"] is True
    assert first["safe_hire_id"] == second["safe_hire_id"]
    assert len(writes) == 1
    assert get_profile(db, "u7")["safe_hire_id"] == first["safe_hire_id"]


@pytest.mark.parametrize("role,prefix", [
    ("employer_admin", "EX"),
    ("institution", "IN"),
    ("job_seeker", "JS"),
    (None, "JS"),
])
def test_ensure_safe_id_prefix_follows_role(client, db, role, prefix):
    insert_profile(db, "u8", role=role)

    safe_id = client.post("/api/profile/ensure-safe-id", headers=auth_headers("u8")).json()["safe_hire_id"]

    assert re.fullmatch(rf"{prefix}\d{{6}}", safe_id)


def test_ensure_safe_id_keeps_existing_id(client, db):
    insert_profile(db, "u9", role="job_seeker", safe_hire_id="JS000042")

    body = client.post("/api/profile/ensure-safe-id", headers=auth_headers("u9")).json()

    assert body == {"ok": True, "safe_hire_id": "JS000042"}


def test_generate_safe_hire_id_is_zero_padded(monkeypatch):
    monkeypatch.setattr("app.services.profile_service.secrets.randbelow", lambda n: 7)

    assert generate_safe_hire_id("institution") == "IN000007"


@pytest.mark.parametrize("prior", [None, "job_seeker", "institution", "employer_admin"])
def test_mark_employer_always_sets_employer_admin(client, db, prior):
    if prior:
        insert_profile(db, "u10", role=prior)

    response = client.post("/api/profile/mark-employer", headers=auth_headers("u10"))

    assert response.json() == {"ok": True}
    assert get_profile(db, "u10")["role"] == "employer_admin"


def test_update_role_reissues_safe_id_on_change(client, db):
    insert_profile(db, "u11", role="job_seeker", safe_hire_id="JS111111")

    body = client.post(
        "/api/profile/update-role", json={"new_role": "institution"}, headers=auth_headers("u11")
    ).json()

    assert body["success"] is True
    assert body["old_role"] == "job_seeker"
    assert body["new_role"] == "institution"
    assert body["safe_hire_id"].startswith("IN")
    assert get_profile(db, "u11")["safe_hire_id"] == body["safe_hire_id"]


def test_update_role_same_role_keeps_safe_id(client, db):
    insert_profile(db, "u12", role="job_seeker", safe_hire_id="JS222222")

    body = client.post(
        "/api/profile/update-role", json={"new_role": "job_seeker"}, headers=auth_headers("u12")
    ).json()

    assert body["safe_hire_id"] == "JS222222"


def test_update_role_rejects_email_mismatch(client, db):
    insert_profile(db, "u13", role="job_seeker")

    response = client.post(
        "/api/profile/update-role",
        json={"new_role": "institution", "email": "someone@else.com"},
        headers=auth_headers("u13", email="u13@example.com"),
    )

    assert response.status_code == 403
    assert get_profile(db, "u13")["role"] == "job_seeker"


def test_missing_datastore_is_a_500(client, monkeypatch):
    monkeypatch.setattr(app.state, "session_factory", None)

    response = client.get("/api/me/profile", headers=auth_headers("u14"))

    assert response.status_code == 500
    assert response.json()["message"] == "Datastore is not configured"


def test_employer_looks_up_job_seeker_with_claimed_certificates(client, db):
    insert_profile(db, "emp", role="employer_admin")
    insert_profile(db, "seeker", role="job_seeker", safe_hire_id="JS123456", aadhaar_verified=True, full_name="Asha")
    insert_certificate(db, claimed_by="seeker", is_claimed=True, title="B.Tech")
    insert_certificate(db, title="Unclaimed")

    body = client.get("/api/profiles/lookup/JS123456", headers=auth_headers("emp")).json()

    assert body["profile"]["user_id"] == "seeker"
    assert body["profile"]["full_name"] == "Asha"
    assert body["profile"]["aadhaar_verified"] is True
    assert [c["title"] for c in body["nft_certificates"]] == ["B.Tech"]


@pytest.mark.parametrize("role", ["employer_admin", "institution"])
def test_lookup_only_finds_job_seekers(client, db, role):
    insert_profile(db, "emp", role="employer_admin")
    insert_profile(db, "other", role=role, safe_hire_id="EX000001")

    assert client.get("/api/profiles/lookup/EX000001", headers=auth_headers("emp")).json() == {"profile": None}


def test_lookup_unknown_id(client, db):
    insert_profile(db, "emp", role="employer_admin")

    response = client.get("/api/profiles/lookup/JS999999", headers=auth_headers("emp"))

    assert response.status_code == 200
    assert response.json() == {"profile": None}


def test_lookup_requires_employer_role(client, db):
    insert_profile(db, "seeker", role="job_seeker", safe_hire_id="JS123456")

    response = client.get("/api/profiles/lookup/JS123456", headers=auth_headers("seeker"))

    assert response.status_code == 403
    assert response.json()["message"] == "Access denied - employer_admin role required"
