"""Certificates issued by institutions. Each gets an NFT code the recipient later claims with."""

import json
import secrets
import uuid
from datetime import date
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.db.postgres import fetch_all
from app.schemas.schemas import InstitutionCertificateCreate

NFT_CODE_PREFIX = "NFT-"

CERTIFICATE_COLUMNS = """
    id, nft_code, institution_id, title, certificate_type, recipient_name, description,
    issue_date, expiry_date, is_active, is_claimed, claimed_by, claimed_at, created_at
"""


def generate_nft_code() -> str:
    return NFT_CODE_PREFIX + secrets.token_hex(6).upper()


def normalize_certificate(row: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("is_active", "is_claimed"):
        if key in row:
            row[key] = bool(row[key])
    return row


def issue_certificate(db: Session, institution_id: str, data: InstitutionCertificateCreate) -> Dict[str, Any]:
    """Insert an unclaimed certificate. Issue date defaults to today."""
    result = db.execute(
        text(f"""
            INSERT INTO nft_certificates (id, nft_code, institution_id, title, certificate_type,
                recipient_name, description, issue_date, expiry_date, meta, is_active, is_claimed)
            VALUES (:id, :nft_code, :institution_id, :title, :certificate_type, :recipient_name,
                :description, :issue_date, :expiry_date, :meta, :is_active, :is_claimed)
            RETURNING {CERTIFICATE_COLUMNS}
        """),
        {
            "id": str(uuid.uuid4()),
            "nft_code": generate_nft_code(),
            "institution_id": institution_id,
            "title": data.certificate_name.strip(),
            "certificate_type": data.certificate_type,
            "recipient_name": data.recipient_name.strip(),
            "description": data.description or None,
            "issue_date": (data.issue_date or date.today()).isoformat(),
            "expiry_date": data.expiry_date.isoformat() if data.expiry_date else None,
            "meta": json.dumps(data.metadata),
            "is_active": True,
            "is_claimed": False,
        },
    )
    return normalize_certificate(dict(result.mappings().one()))


def list_issued(db: Session, institution_id: str) -> List[Dict[str, Any]]:
    rows = fetch_all(
        db,
        f"SELECT {CERTIFICATE_COLUMNS} FROM nft_certificates WHERE institution_id = :uid ORDER BY created_at DESC",
        {"uid": institution_id},
    )
    return [normalize_certificate(r) for r in rows]


def list_claimed_by(db: Session, user_id: str) -> List[Dict[str, Any]]:
    """Claimed certificates of one user, newest first."""
    rows = fetch_all(
        db,
        f"""
        SELECT {CERTIFICATE_COLUMNS} FROM nft_certificates
        WHERE claimed_by = :uid AND is_claimed = :claimed
        ORDER BY created_at DESC
        """,
        {"uid": user_id, "claimed": True},
    )
    return [normalize_certificate(r) for r in rows]
