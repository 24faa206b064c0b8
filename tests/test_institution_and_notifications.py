import pytest

from conftest import auth_headers, count_rows, insert_certificate, insert_notification, insert_profile


@pytest.fixture
def institution(db):
    insert_profile(db, "inst", role="institution")
    return auth_headers("inst")


def test_institution_issues_certificate(client, db, institution):
    response = client.post(
        "/api/institution/certificates",
        json={
            "certificate_name": "  B.Tech Computer Science ",
            "certificate_type": "degree",
            "recipient_name": "Asha Rao",
            "issue_date": "2024-06-01",
            "metadata": {"grade": "A"},
        },
        headers=institution,
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["message"] == "Certificate created successfully"
    cert = body["data"]
    assert cert["title"] == "B.Tech Computer Science"
    assert cert["institution_id"] == "inst"
    assert cert["nft_code"].startswith("NFT-") and len(cert["nft_code"]) == 16
    assert cert["is_claimed"] is False
    assert cert["is_active"] is True
    assert str(cert["issue_date"]).startswith("2024-06-01")


def test_issued_certificate_shows_on_dashboard(client, db, institution):
    client.post(
        "/api/institution/certificates",
        json={"certificate_name": "Diploma", "certificate_type": "diploma", "recipient_name": "Ravi"},
        headers=institution,
    )

    page = client.get("/institution/dashboard", headers=institution, follow_redirects=False)

    assert "1 recent certificates, 0 claimed." in page.text
    assert "Diploma" in page.text


@pytest.mark.parametrize("missing", ["certificate_name", "certificate_type", "recipient_name"])
def test_issue_requires_name_type_and_recipient(client, db, institution, missing):
    body = {"certificate_name": "Diploma", "certificate_type": "diploma", "recipient_name": "Ravi"}
    body[missing] = "" if missing != "certificate_type" else None

    response = client.post("/api/institution/certificates", json=body, headers=institution)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Missing required fields"}
    assert count_rows(db, "nft_certificates") == 0


def test_institution_lists_only_its_certificates(client, db, institution):
    insert_certificate(db, institution_id="inst", title="Older", created_at="2024-01-01 09:00:00")
    insert_certificate(db, institution_id="inst", title="Newer", created_at="2024-02-01 09:00:00")
    insert_certificate(db, institution_id="elsewhere", title="Not mine")

    body = client.get("/api/institution/certificates", headers=institution).json()

    assert body["success"] is True
    assert [c["title"] for c in body["data"]] == ["Newer", "Older"]


@pytest.mark.parametrize("role", [None, "job_seeker", "employer_admin"])
def test_certificate_routes_need_institution_role(client, db, role):
    insert_profile(db, "someone", role=role)

    response = client.post(
        "/api/institution/certificates",
        json={"certificate_name": "Fake", "certificate_type": "degree", "recipient_name": "Me"},
        headers=auth_headers("someone"),
    )

    assert response.status_code == 403
    assert client.get("/api/institution/certificates", headers=auth_headers("someone")).status_code == 403
    assert count_rows(db, "nft_certificates") == 0


def test_notifications_newest_first_and_scoped_to_caller(client, db):
    insert_notification(db, "u1", title="Old", created_at="2024-01-01 09:00:00")
    insert_notification(db, "u1", title="New", is_read=True, created_at="2024-02-01 09:00:00")
    insert_notification(db, "u2", title="Someone else's")

    body = client.get("/api/notifications", headers=auth_headers("u1")).json()

    assert body["success"] is True
    assert [(n["title"], n["is_read"]) for n in body["notifications"]] == [("New", True), ("Old", False)]


def test_notifications_limit_and_unread_filter(client, db):
    for day in range(1, 4):
        insert_notification(db, "u1", title=f"Day {day}", created_at=f"2024-01-0{day} 09:00:00")
    insert_notification(db, "u1", title="Seen", is_read=True, created_at="2024-01-09 09:00:00")

    unread = client.get("/api/notifications", params={"unread_only": "true", "limit": 2}, headers=auth_headers("u1"))

    assert [n["title"] for n in unread.json()["notifications"]] == ["Day 3", "Day 2"]


def test_notification_limit_is_bounded(client):
    assert client.get("/api/notifications", params={"limit": 0}, headers=auth_headers("u1")).status_code == 400


def test_mark_selected_notifications_read(client, db):
    first = insert_notification(db, "u1", title="First")
    insert_notification(db, "u1", title="Second")
    theirs = insert_notification(db, "u2", title="Theirs")

    response = client.put("/api/notifications", json={"notification_ids": [first, theirs]}, headers=auth_headers("u1"))

    assert response.json() == {"success": True, "message": "Notifications marked as read"}
    assert count_rows(db, "notifications", is_read=True) == 1
    assert count_rows(db, "notifications", id=theirs, is_read=False) == 1


def test_mark_all_read(client, db):
    insert_notification(db, "u1")
    insert_notification(db, "u1")
    insert_notification(db, "u2")

    client.put("/api/notifications", json={"mark_all_read": True}, headers=auth_headers("u1"))

    assert count_rows(db, "notifications", user_id="u1", is_read=False) == 0
    assert count_rows(db, "notifications", user_id="u2", is_read=False) == 1


@pytest.mark.parametrize("body", [{}, {"notification_ids": []}, {"mark_all_read": False}])
def test_mark_read_needs_ids_or_all(client, body):
    response = client.put("/api/notifications", json=body, headers=auth_headers("u1"))

    assert response.status_code == 400
    assert response.json() == {"error": "notification_ids or mark_all_read required"}
