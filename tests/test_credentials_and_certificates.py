from app.services.credential_service import PLACEHOLDER_VC_HASH, PLACEHOLDER_VC_JWT
from conftest import auth_headers, count_rows, insert_certificate


def test_issue_requires_type(client, db):
    response = client.post("/api/credentials/issue", json={"payload": {"a": 1}}, headers=auth_headers("u1"))

    assert response.status_code == 400
    assert response.json() == {"ok": False, "message": "Missing credential type"}
    assert count_rows(db, "credentials") == 0


def test_issue_records_unsigned_credential(client, db):
    response = client.post(
        "/api/credentials/issue",
        json={"type": "employment", "payload": {"employer": "Acme"}},
        headers=auth_headers("u2"),
    )

    body = response.json()
    assert response.status_code == 200
    assert body["ok"] is True
    assert body["issuance"] == "pending_signature"
    assert body["credential"]["subject_user_id"] == "u2"
    assert body["credential"]["type"] == "employment"
    assert body["credential"]["vc_jwt_encrypted"] == PLACEHOLDER_VC_JWT
    assert body["credential"]["vc_hash"] == PLACEHOLDER_VC_HASH
    assert body["credential"]["expiry"] is None
    assert count_rows(db, "credentials", subject_user_id="u2") == 1


def test_each_issue_inserts_a_new_row(client, db):
    headers = auth_headers("u3")
    first = client.post("/api/credentials/issue", json={"type": "degree"}, headers=headers).json()
    second = client.post("/api/credentials/issue", json={"type": "degree"}, headers=headers).json()

    assert first["credential"]["id"] != second["credential"]["id"]
    assert count_rows(db, "credentials", subject_user_id="u3") == 2


def test_certificates_only_claimed_rows_newest_first(client, db):
    insert_certificate(db, claimed_by="u4", is_claimed=True, title="Older", created_at="2024-01-01 00:00:00")
    insert_certificate(db, claimed_by="u4", is_claimed=True, title="Newer", created_at="2024-06-01 00:00:00")
    insert_certificate(db, claimed_by="u4", is_claimed=False, title="Unclaimed")
    insert_certificate(db, claimed_by="someone-else", is_claimed=True, title="Not mine")

    body = client.get("/api/certificates/nft", headers=auth_headers("u4")).json()

    assert body["success"] is True
    assert [c["title"] for c in body["certificates"]] == ["Newer", "Older"]
    assert all(c["is_claimed"] is True for c in body["certificates"])


def test_certificates_for_another_user(client, db):
    insert_certificate(db, claimed_by="u5", is_claimed=True, title="Theirs")

    body = client.get("/api/certificates/nft", params={"userId": "u5"}, headers=auth_headers("u6")).json()

    assert [c["title"] for c in body["certificates"]] == ["Theirs"]


def test_certificates_empty_list(client):
    assert client.get("/api/certificates/nft", headers=auth_headers("u7")).json() == {
        "success": True,
        "certificates": [],
    }
