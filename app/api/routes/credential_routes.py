"""
Credential Routes

POST /credentials/issue - Record a credential for the caller (unsigned for now)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.errors import ApiError
from app.db.postgres import get_db
from app.services.credential_service import issue_credential
from app.schemas.schemas import AuthUser, CredentialIssueRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/credentials", tags=["Credentials"])


@router.post("/issue")
def issue(data: CredentialIssueRequest, user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Insert one credential row. The response names its issuance status so a
    pending record is never mistaken for a signed artifact.
    """
    if not data.type:
        raise ApiError.message(400, "Missing credential type")

    try:
        issuance = issue_credential(db, user.id, data.type, data.payload)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Credential issue failed for %s: %s", user.id, e)
        raise ApiError.message(500, str(e))

    return {"ok": True, "credential": issuance.credential, "issuance": issuance.status.value}
