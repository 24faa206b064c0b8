import asyncio
import os
import sys
import time
import uuid
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ["AUTO_CREATE_SCHEMA"] = "true"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["GRIDLINES_API_KEY"] = "test-gridlines-key"
os.environ["GRIDLINES_BASE_URL"] = "https://registry.test"

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.http import get_http_client
from app.db.schema import create_schema, drop_schema
from app.main import app

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]


def make_token(user_id, email=None, expires_in=3600, secret=JWT_SECRET):
    claims = {
        "sub": user_id,
        "email": email or f"{user_id}@example.com",
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(time.time()) + expires_in,
    }
    return jwt.encode(claims, secret, algorithm="HS256")


def auth_headers(user_id, email=None):
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


def override_settings(**updates):
    """Swap settings for the routes of one test."""
    patched = get_settings().model_copy(update=updates)
    app.dependency_overrides[get_settings] = lambda: patched
    return patched


@pytest.fixture
def client():
    with TestClient(app) as c:
        engine = app.state.engine
        drop_schema(engine)
        create_schema(engine)
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db(client):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


class Upstream:
    """Records outbound requests and answers them with ``handler``."""

    def __init__(self):
        self.requests = []
        self.handler = lambda request: httpx.Response(500, json={})

    def __call__(self, request):
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def upstream(client):
    up = Upstream()
    mock_client = httpx.AsyncClient(transport=httpx.MockTransport(up))
    app.dependency_overrides[get_http_client] = lambda: mock_client
    yield up
    app.dependency_overrides.pop(get_http_client, None)


def record_rollbacks(monkeypatch):
    """Patch Session.rollback; each call appends whether it ran on the event loop thread."""
    on_loop = []
    real_rollback = Session.rollback

    def rollback(self):
        try:
            asyncio.get_running_loop()
            on_loop.append(True)
        except RuntimeError:
            on_loop.append(False)
        return real_rollback(self)

    monkeypatch.setattr(Session, "rollback", rollback)
    return on_loop


def drop_table(db, table):
    db.execute(text(f"DROP TABLE {table}"))
    db.commit()


# ---- seed helpers -------------------------------------------------------

def insert_profile(db, user_id, role=None, safe_hire_id=None, aadhaar_verified=False, full_name=None):
    db.execute(
        text("""
            INSERT INTO profiles (user_id, role, safe_hire_id, aadhaar_verified, full_name)
            VALUES (:uid, :role, :sid, :verified, :full_name)
        """),
        {"uid": user_id, "role": role, "sid": safe_hire_id, "verified": aadhaar_verified, "full_name": full_name},
    )
    db.commit()


def insert_company(db, owner_user_id, name="Acme Pvt Ltd", verification_status="verified"):
    company_id = str(uuid.uuid4())
    db.execute(
        text("""
            INSERT INTO companies (id, owner_user_id, name, verification_status)
            VALUES (:id, :owner, :name, :status)
        """),
        {"id": company_id, "owner": owner_user_id, "name": name, "status": verification_status},
    )
    db.commit()
    return company_id


def insert_job(db, company_id, title, status="open", created_at="2024-01-01 09:00:00"):
    job_id = str(uuid.uuid4())
    db.execute(
        text("""
            INSERT INTO jobs (id, company_id, title, description, status, created_at)
            VALUES (:id, :cid, :title, :desc, :status, :created_at)
        """),
        {"id": job_id, "cid": company_id, "title": title, "desc": f"{title} role",
         "status": status, "created_at": created_at},
    )
    db.commit()
    return job_id


def insert_certificate(db, claimed_by=None, is_claimed=False, institution_id=None,
                       title="Certificate", created_at="2024-01-01 09:00:00"):
    cert_id = str(uuid.uuid4())
    db.execute(
        text("""
            INSERT INTO nft_certificates (id, nft_code, institution_id, title, claimed_by, is_claimed, created_at)
            VALUES (:id, :code, :inst, :title, :claimed_by, :is_claimed, :created_at)
        """),
        {"id": cert_id, "code": f"NFT-{cert_id[:8]}", "inst": institution_id, "title": title,
         "claimed_by": claimed_by, "is_claimed": is_claimed, "created_at": created_at},
    )
    db.commit()
    return cert_id


def insert_application(db, job_id, company_id, applicant_id, status="pending", applied_at="2024-01-01 09:00:00"):
    application_id = str(uuid.uuid4())
    db.execute(
        text("""
            INSERT INTO applications (id, job_id, company_id, applicant_id, status, applied_at)
            VALUES (:id, :job, :cid, :uid, :status, :applied_at)
        """),
        {"id": application_id, "job": job_id, "cid": company_id, "uid": applicant_id,
         "status": status, "applied_at": applied_at},
    )
    db.commit()
    return application_id


def insert_notification(db, user_id, title="Hello", is_read=False, created_at="2024-01-01 09:00:00"):
    notification_id = str(uuid.uuid4())
    db.execute(
        text("""
            INSERT INTO notifications (id, user_id, type, title, message, is_read, created_at)
            VALUES (:id, :uid, :type, :title, :message, :is_read, :created_at)
        """),
        {"id": notification_id, "uid": user_id, "type": "application_status", "title": title,
         "message": f"{title} message", "is_read": is_read, "created_at": created_at},
    )
    db.commit()
    return notification_id


def count_rows(db, table, **where):
    clause = " AND ".join(f"{k} = :{k}" for k in where) or "1 = 1"
    return db.execute(text(f"SELECT COUNT(*) FROM {table} WHERE {clause}"), where).scalar()
