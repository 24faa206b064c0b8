"""
Verification Routes

POST /verify/aadhaar - Aadhaar verification (demo, or API Setu OTP init/confirm)
"""

import logging
import uuid

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.config import Settings, get_settings
from app.core.errors import ApiError
from app.db.postgres import get_db
from app.services.aadhaar_client import AadhaarResult, ApiSetuClient, demo_verify, get_apisetu_client
from app.services.profile_service import upsert_profile
from app.schemas.schemas import AadhaarMode, AadhaarVerifyRequest, AuthUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verify", tags=["Verification"])


def _record_verification(db: Session, user_id: str, full_name: str, provider: str) -> None:
    """Runs in the threadpool, rollback included."""
    try:
        upsert_profile(db, user_id, aadhaar_full_name=full_name, aadhaar_verified=True)
        db.execute(
            text("""
                INSERT INTO verifications (id, subject_user_id, type, provider, status, evidence_ref)
                VALUES (:id, :uid, 'aadhaar', :provider, 'success', NULL)
            """),
            {"id": str(uuid.uuid4()), "uid": user_id, "provider": provider},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def _failure(result: AadhaarResult) -> ApiError:
    return ApiError(400, result.to_body())


@router.post("/aadhaar")
async def verify_aadhaar(
    data: AadhaarVerifyRequest,
    user: AuthUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    apisetu: ApiSetuClient = Depends(get_apisetu_client),
    db: Session = Depends(get_db),
):
    """
    Verify the caller's Aadhaar and mark the profile verified.

    API Setu runs in two calls: step=init returns a txnId, step=confirm
    finishes. Only a successful final step writes to the datastore.
    """
    mode = AadhaarMode.__members__.get(data.mode or settings.default_aadhaar_mode)
    if mode is None:
        raise ApiError(400, {"success": False, "message": "Unsupported verification mode"})

    if mode is AadhaarMode.demo:
        result = demo_verify(data.fullName)
        provider = "demo"
    elif data.step == "init":
        result = await apisetu.initiate_otp(data.uid)
        if not result.success:
            raise _failure(result)
        return {"success": True, "txnId": result.txn_id}
    elif data.step == "confirm":
        result = await apisetu.confirm_otp(data.txnId, data.otp)
        provider = "apisetu"
    else:
        raise ApiError(400, {"success": False, "message": "Invalid step"})

    if not result.success or not result.full_name:
        raise _failure(result)

    try:
        await run_in_threadpool(_record_verification, db, user.id, result.full_name, provider)
    except SQLAlchemyError as e:
        logger.error("Aadhaar verification write failed for %s: %s", user.id, e)
        raise ApiError(500, {"success": False, "message": str(e)})

    logger.info("Aadhaar verified for %s via %s", user.id, provider)
    return {"success": True, "fullName": result.full_name}
