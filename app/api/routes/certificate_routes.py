"""
Certificate Routes

GET /certificates/nft - Claimed NFT certificates for ?userId= (defaults to caller)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.errors import ApiError
from app.db.postgres import get_db
from app.services.certificate_service import list_claimed_by
from app.schemas.schemas import AuthUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/certificates", tags=["Certificates"])


@router.get("/nft")
def list_nft_certificates(
    user_id: Optional[str] = Query(None, alias="userId"),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    owner = user_id or user.id
    try:
        rows = list_claimed_by(db, owner)
    except SQLAlchemyError as e:
        logger.error("Certificates fetch error: %s", e)
        raise ApiError.error(500, "Failed to fetch certificates", details=str(e))

    return {"success": True, "certificates": rows}
