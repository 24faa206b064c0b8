"""
Institution Routes

GET  /institution/certificates  - Certificates issued by the caller
POST /institution/certificates  - Issue a certificate with a fresh NFT code
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ApiError
from app.core.policy import require_role
from app.db.postgres import get_db
from app.services.certificate_service import issue_certificate, list_issued
from app.schemas.schemas import InstitutionCertificateCreate, UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/institution", tags=["Institution"])


@router.post("/certificates")
def create_certificate(
    data: InstitutionCertificateCreate,
    ctx: Dict[str, Any] = Depends(require_role(UserRole.institution)),
    db: Session = Depends(get_db),
):
    if not (data.certificate_name or "").strip() or not data.certificate_type \
            or not (data.recipient_name or "").strip():
        raise ApiError(400, {"success": False, "message": "Missing required fields"})

    user = ctx["user"]
    try:
        certificate = issue_certificate(db, user.id, data)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Certificate issue failed for %s: %s", user.id, e)
        raise ApiError(500, {"success": False, "message": "Failed to create certificate"})

    logger.info("Certificate %s issued by %s", certificate["nft_code"], user.id)
    return {"success": True, "data": certificate, "message": "Certificate created successfully"}


@router.get("/certificates")
def list_certificates(
    ctx: Dict[str, Any] = Depends(require_role(UserRole.institution)),
    db: Session = Depends(get_db),
):
    user = ctx["user"]
    try:
        certificates = list_issued(db, user.id)
    except SQLAlchemyError as e:
        logger.error("Certificates fetch failed for %s: %s", user.id, e)
        raise ApiError(500, {"success": False, "message": "Failed to fetch certificates"})

    return {"success": True, "data": certificates}
