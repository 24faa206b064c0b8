"""
Application Routes

GET /applications/recruiter      - Applications to the caller's companies' jobs
PUT /applications/{id}/decision  - Accept, reject or mark an application under review
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ApiError
from app.core.policy import require_role
from app.db.postgres import get_db
from app.services.application_service import (
    DECISION_STATUSES, decision_notice, get_with_owner, list_for_owner, record_decision, rejection_feedback
)
from app.services.notification_service import APPLICATION_STATUS, create_notification
from app.schemas.schemas import ApplicationDecisionRequest, ApplicationStatus, UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.get("/recruiter")
def list_recruiter_applications(
    ctx: Dict[str, Any] = Depends(require_role(UserRole.employer_admin)),
    db: Session = Depends(get_db),
):
    user = ctx["user"]
    try:
        applications = list_for_owner(db, user.id)
    except SQLAlchemyError as e:
        logger.error("Applications fetch failed for %s: %s", user.id, e)
        raise ApiError.error(500, "Failed to fetch applications", details=str(e))

    return {"success": True, "applications": applications}


@router.put("/{application_id}/decision")
def decide_application(
    application_id: str,
    data: ApplicationDecisionRequest,
    ctx: Dict[str, Any] = Depends(require_role(UserRole.employer_admin)),
    db: Session = Depends(get_db),
):
    """
    Record the employer's decision and notify the applicant.

    Rejections with reasons store them comma-joined and send the applicant
    feedback built from those reasons.
    """
    status = ApplicationStatus.__members__.get(data.status or "")
    if status not in DECISION_STATUSES:
        raise ApiError.error(400, "Valid status required (accepted, rejected, reviewing)")

    user = ctx["user"]
    reasons = data.rejectionReasons or []
    rejection_reason = feedback = None
    if status is ApplicationStatus.rejected and reasons:
        rejection_reason = ", ".join(reasons)
        feedback = rejection_feedback(reasons)

    try:
        application = get_with_owner(db, application_id)
        if not application:
            raise ApiError.error(404, "Application not found")
        if application["owner_user_id"] != user.id:
            raise ApiError.error(403, "Access denied - Not your company's application")

        updated = record_decision(db, application_id, status, user.id, rejection_reason, feedback)
        notice = decision_notice(status, application["job_title"], feedback)
        create_notification(
            db, application["applicant_id"], APPLICATION_STATUS,
            notice["title"], notice["message"], application_id,
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Decision on %s failed: %s", application_id, e)
        raise ApiError.error(500, "Failed to update application", details=str(e))

    return {
        "success": True,
        "application": updated,
        "message": f"Application {status.value} successfully",
        "feedback": feedback,
    }
