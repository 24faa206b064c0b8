"""
Company Routes

GET  /me/companies     - Companies owned by the caller
GET  /company/fetch    - Registry lookup by ?cin= or ?pan= (server-held key)
POST /company/verify   - Registry lookup, then record a verified company
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.errors import ApiError
from app.db.postgres import fetch_all, get_db
from app.services.registry_client import (
    GridlinesClient, RegistryNotConfigured, detect_id_type, get_registry_client
)
from app.schemas.schemas import (
    AuthUser, CompanyListResponse, CompanySummary, CompanyVerifyRequest, VerificationStatus
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Companies"])

REGISTRY_SOURCE = "gridlines"


def _clean_identifier(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip().upper()
    return value or None


@router.get("/me/companies", response_model=CompanyListResponse)
def list_my_companies(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        rows = fetch_all(
            db,
            "SELECT id, name, verification_status FROM companies WHERE owner_user_id = :uid",
            {"uid": user.id},
        )
    except SQLAlchemyError as e:
        logger.error("Company list failed for %s: %s", user.id, e)
        raise ApiError.message(500, str(e))

    return CompanyListResponse(companies=[CompanySummary(**r) for r in rows])


@router.get("/company/fetch")
async def fetch_company(
    cin: Optional[str] = Query(None),
    pan: Optional[str] = Query(None),
    registry: GridlinesClient = Depends(get_registry_client),
):
    """
    Proxy to the registry. Status mapping:
    no identifier -> 400, no API key -> 500, upstream non-OK -> 400,
    network failure -> 500.
    """
    cin, pan = _clean_identifier(cin), _clean_identifier(pan)
    if not cin and not pan:
        raise ApiError.message(400, "Provide ?cin= or ?pan=")

    try:
        result = await registry.fetch_company(cin=cin, pan=pan)
    except RegistryNotConfigured as e:
        raise ApiError.message(500, str(e))
    except httpx.HTTPError as e:
        logger.warning("Registry lookup failed: %s", e)
        raise ApiError.message(500, str(e) or e.__class__.__name__)

    if not result.ok:
        raise ApiError(400, {"ok": False, "source": REGISTRY_SOURCE, "error": result.data})
    return {"ok": True, "data": result.data}


def _insert_verified_company(db: Session, user_id: str, name: str, registration_number: str, meta) -> dict:
    """Runs in the threadpool, rollback included."""
    try:
        result = db.execute(
            text("""
                INSERT INTO companies (id, owner_user_id, name, registration_number, verification_status,
                    verifier_source, verified_at, meta)
                VALUES (:id, :owner, :name, :reg, :status, :source, :verified_at, :meta)
                RETURNING id, owner_user_id, name, registration_number, verification_status,
                    verifier_source, verified_at, created_at
            """),
            {
                "id": str(uuid.uuid4()),
                "owner": user_id,
                "name": name,
                "reg": registration_number,
                "status": VerificationStatus.verified.value,
                "source": REGISTRY_SOURCE,
                "verified_at": datetime.now(timezone.utc).isoformat(),
                "meta": json.dumps(meta),
            },
        )
        row = dict(result.mappings().one())
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return row


@router.post("/company/verify")
async def verify_company(
    data: CompanyVerifyRequest,
    user: AuthUser = Depends(get_current_user),
    registry: GridlinesClient = Depends(get_registry_client),
    db: Session = Depends(get_db),
):
    """Look the registration number up and record the company as verified."""
    registration_number = (data.registrationNumber or "").strip()
    name = (data.name or "").strip()
    if not registration_number or not name:
        raise ApiError.message(400, "Missing name or registrationNumber")
    if not registry.configured:
        raise ApiError.message(500, "Missing GRIDLINES_API_KEY env var. Add it in Project Settings.")

    # Anything that is not a PAN is sent as a CIN
    if detect_id_type(registration_number) == "PAN":
        lookup = {"pan": registration_number.upper()}
    else:
        lookup = {"cin": registration_number.upper()}

    try:
        result = await registry.fetch_company(**lookup)
    except httpx.HTTPError as e:
        logger.warning("Registry verification failed: %s", e)
        raise ApiError.message(500, str(e) or e.__class__.__name__)

    if not result.ok:
        upstream = result.data.get("message") if isinstance(result.data, dict) else None
        raise ApiError(400, {
            "ok": False,
            "source": REGISTRY_SOURCE,
            "status": VerificationStatus.failed.value,
            "error": upstream or "Verification failed",
        })

    try:
        company = await run_in_threadpool(
            _insert_verified_company, db, user.id, name, registration_number, result.data
        )
    except SQLAlchemyError as e:
        logger.error("Company insert failed for %s: %s", user.id, e)
        raise ApiError.message(500, str(e))

    logger.info("Company %s verified for %s", company["id"], user.id)
    return {"ok": True, "company": company}
