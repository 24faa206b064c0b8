"""
Profile queries shared by the profile routes and the page guards.

Safe Hire IDs are a role prefix plus six random digits. They are generated
once per profile and never checked for collisions against existing IDs.
"""

import secrets
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.db.postgres import fetch_one
from app.schemas.schemas import UserRole

SAFE_ID_PREFIXES = {
    UserRole.employer_admin: "EX",
    UserRole.institution: "IN",
    UserRole.job_seeker: "JS",
}
DEFAULT_SAFE_ID_PREFIX = "JS"


def random_code(length: int = 6) -> str:
    """Zero-padded random digits, e.g. '004217'."""
    return str(secrets.randbelow(10 ** length)).zfill(length)


def generate_safe_hire_id(role: Optional[str]) -> str:
    prefix = SAFE_ID_PREFIXES.get(UserRole.parse(role), DEFAULT_SAFE_ID_PREFIX)
    return f"{prefix}{random_code(6)}"


def normalize_profile(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    # SQLite hands booleans back as 0/1
    if row is None:
        return None
    if "aadhaar_verified" in row:
        row["aadhaar_verified"] = bool(row["aadhaar_verified"])
    return row


def get_profile(db: Session, user_id: str) -> Optional[Dict[str, Any]]:
    """Fetch at most one profile row by user id."""
    return normalize_profile(fetch_one(
        db,
        """
        SELECT user_id, role, safe_hire_id, aadhaar_verified, aadhaar_full_name,
               full_name, created_at, updated_at
        FROM profiles WHERE user_id = :user_id
        """,
        {"user_id": user_id},
    ))


def find_job_seeker_by_safe_hire_id(db: Session, safe_hire_id: str) -> Optional[Dict[str, Any]]:
    """Employers can only look up job seekers."""
    return normalize_profile(fetch_one(
        db,
        """
        SELECT user_id, full_name, aadhaar_full_name, aadhaar_verified, safe_hire_id, role, created_at
        FROM profiles WHERE safe_hire_id = :sid AND role = :role
        """,
        {"sid": safe_hire_id, "role": UserRole.job_seeker.value},
    ))


def upsert_profile(db: Session, user_id: str, **fields: Any) -> None:
    """Insert-or-update the caller's profile row, keyed by user_id."""
    columns = ["user_id", *fields.keys()]
    updates = ", ".join(f"{c} = excluded.{c}" for c in fields)
    db.execute(
        text(f"""
            INSERT INTO profiles ({', '.join(columns)})
            VALUES ({', '.join(':' + c for c in columns)})
            ON CONFLICT (user_id) DO UPDATE SET {updates}, updated_at = CURRENT_TIMESTAMP
        """),
        {"user_id": user_id, **fields},
    )


def is_onboarded(profile: Optional[Dict[str, Any]]) -> bool:
    """A job seeker is onboarded once Aadhaar is verified and a Safe Hire ID exists."""
    return bool(profile and profile.get("aadhaar_verified") and profile.get("safe_hire_id"))
