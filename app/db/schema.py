"""
Local table definitions.

The hosted database owns the real schema. These statements mirror it closely
enough for local development and the test suite, and run on both PostgreSQL
and SQLite.
"""

from sqlalchemy import text
from sqlalchemy.engine import Engine

TABLES = [
    "profiles",
    "companies",
    "jobs",
    "applications",
    "notifications",
    "credentials",
    "nft_certificates",
    "verifications",
]

CREATE_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS profiles (
        user_id TEXT PRIMARY KEY,
        role TEXT,
        safe_hire_id TEXT,
        aadhaar_verified BOOLEAN NOT NULL DEFAULT FALSE,
        aadhaar_full_name TEXT,
        full_name TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS companies (
        id TEXT PRIMARY KEY,
        owner_user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        registration_number TEXT,
        verification_status TEXT NOT NULL DEFAULT 'pending',
        verifier_source TEXT,
        verified_at TIMESTAMP,
        meta TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id TEXT PRIMARY KEY,
        company_id TEXT NOT NULL REFERENCES companies(id),
        title TEXT NOT NULL,
        description TEXT,
        location TEXT,
        employment_type TEXT,
        experience_level TEXT,
        salary_range TEXT,
        requirements TEXT,
        benefits TEXT,
        application_deadline TIMESTAMP,
        status TEXT NOT NULL DEFAULT 'open',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS applications (
        id TEXT PRIMARY KEY,
        job_id TEXT NOT NULL REFERENCES jobs(id),
        applicant_id TEXT NOT NULL,
        company_id TEXT NOT NULL,
        cover_letter TEXT,
        resume_text TEXT,
        status TEXT NOT NULL DEFAULT 'pending',
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        reviewed_at TIMESTAMP,
        reviewer_id TEXT,
        rejection_reason TEXT,
        feedback TEXT,
        UNIQUE (job_id, applicant_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        type TEXT NOT NULL,
        title TEXT,
        message TEXT,
        related_application_id TEXT,
        is_read BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS credentials (
        id TEXT PRIMARY KEY,
        subject_user_id TEXT NOT NULL,
        type TEXT NOT NULL,
        vc_jwt_encrypted TEXT,
        vc_hash TEXT,
        expiry TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS nft_certificates (
        id TEXT PRIMARY KEY,
        nft_code TEXT,
        institution_id TEXT,
        title TEXT,
        certificate_type TEXT,
        recipient_name TEXT,
        description TEXT,
        issue_date DATE,
        expiry_date DATE,
        meta TEXT,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        claimed_by TEXT,
        is_claimed BOOLEAN NOT NULL DEFAULT FALSE,
        claimed_at TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS verifications (
        id TEXT PRIMARY KEY,
        subject_user_id TEXT NOT NULL,
        type TEXT NOT NULL,
        provider TEXT,
        status TEXT,
        evidence_ref TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]


def create_schema(engine: Engine) -> None:
    with engine.begin() as conn:
        for stmt in CREATE_STATEMENTS:
            conn.execute(text(stmt))


def drop_schema(engine: Engine) -> None:
    # Reverse order: applications reference jobs, jobs reference companies
    with engine.begin() as conn:
        for table in reversed(TABLES):
            conn.execute(text(f"DROP TABLE IF EXISTS {table}"))
