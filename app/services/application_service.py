"""
Job applications: submission by job seekers, review by the employer who owns
the job's company.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.db.postgres import fetch_all, fetch_one
from app.schemas.schemas import ApplicationStatus, JobStatus

logger = logging.getLogger(__name__)

DECISION_STATUSES = (ApplicationStatus.accepted, ApplicationStatus.rejected, ApplicationStatus.reviewing)

# Advice per rejection reason; unknown reasons get a generic line
REJECTION_ADVICE = {
    "experience": "Consider gaining more relevant experience through projects or internships.",
    "skills": "Focus on developing the technical skills mentioned in the job requirements.",
    "education": "Additional certifications or coursework could strengthen your background.",
    "qualifications": "Review the job requirements and work on building the necessary qualifications.",
    "fit": "Consider how to better align your background with similar role requirements.",
    "communication": "Practice presenting your experience more clearly in applications.",
    "requirements": "Ensure your application fully addresses all stated job requirements.",
}


def rejection_feedback(reasons: List[str]) -> str:
    """Candidate-facing text for a rejection, at most two pieces of advice."""
    advice = " ".join(
        REJECTION_ADVICE.get(r.lower(), f"Work on improving your {r} to strengthen future applications.")
        for r in reasons[:2]
    )
    return (
        f"Thank you for your interest in this position. {advice} "
        "We encourage you to apply for future opportunities that match your evolving skills and experience."
    )


def get_open_job(db: Session, job_id: str) -> Optional[Dict[str, Any]]:
    """An open job with its company's owner, or None."""
    return fetch_one(
        db,
        """
        SELECT j.id, j.title, j.company_id, c.owner_user_id
        FROM jobs j JOIN companies c ON j.company_id = c.id
        WHERE j.id = :id AND j.status = :status
        """,
        {"id": job_id, "status": JobStatus.open.value},
    )


def has_applied(db: Session, job_id: str, applicant_id: str) -> bool:
    return fetch_one(
        db,
        "SELECT id FROM applications WHERE job_id = :jid AND applicant_id = :uid",
        {"jid": job_id, "uid": applicant_id},
    ) is not None


def submit_application(db: Session, job: Dict[str, Any], applicant_id: str,
                       cover_letter: Optional[str] = None, resume_text: Optional[str] = None) -> Dict[str, Any]:
    result = db.execute(
        text("""
            INSERT INTO applications (id, job_id, applicant_id, company_id, cover_letter, resume_text, status)
            VALUES (:id, :job_id, :applicant_id, :company_id, :cover_letter, :resume_text, :status)
            RETURNING id, job_id, applicant_id, company_id, cover_letter, resume_text, status, applied_at
        """),
        {
            "id": str(uuid.uuid4()),
            "job_id": job["id"],
            "applicant_id": applicant_id,
            "company_id": job["company_id"],
            "cover_letter": cover_letter or None,
            "resume_text": resume_text or None,
            "status": ApplicationStatus.pending.value,
        },
    )
    return dict(result.mappings().one())


def list_for_owner(db: Session, owner_user_id: str) -> List[Dict[str, Any]]:
    """Applications to jobs of companies the user owns, newest first, with job and applicant."""
    rows = fetch_all(
        db,
        """
        SELECT a.id, a.job_id, a.applicant_id, a.status, a.cover_letter, a.resume_text,
               a.applied_at, a.reviewed_at, a.rejection_reason,
               j.title AS job_title, j.location AS job_location, j.employment_type AS job_employment_type,
               p.user_id AS profile_user_id, p.aadhaar_full_name, p.full_name, p.safe_hire_id,
               p.aadhaar_verified
        FROM applications a
        JOIN jobs j ON a.job_id = j.id
        JOIN companies c ON j.company_id = c.id
        LEFT JOIN profiles p ON p.user_id = a.applicant_id
        WHERE c.owner_user_id = :uid
        ORDER BY a.applied_at DESC
        """,
        {"uid": owner_user_id},
    )
    applications = []
    for r in rows:
        applications.append({
            "id": r["id"],
            "job_id": r["job_id"],
            "applicant_id": r["applicant_id"],
            "status": r["status"],
            "cover_letter": r["cover_letter"],
            "resume_text": r["resume_text"],
            "applied_at": r["applied_at"],
            "reviewed_at": r["reviewed_at"],
            "rejection_reason": r["rejection_reason"],
            "jobs": {
                "id": r["job_id"],
                "title": r["job_title"],
                "location": r["job_location"],
                "employment_type": r["job_employment_type"],
            },
            "profiles": {
                "user_id": r["profile_user_id"],
                "aadhaar_full_name": r["aadhaar_full_name"],
                "full_name": r["full_name"],
                "safe_hire_id": r["safe_hire_id"],
                "aadhaar_verified": bool(r["aadhaar_verified"]),
            } if r["profile_user_id"] else None,
        })
    return applications


def get_with_owner(db: Session, application_id: str) -> Optional[Dict[str, Any]]:
    return fetch_one(
        db,
        """
        SELECT a.id, a.applicant_id, a.job_id, a.status, j.title AS job_title, c.owner_user_id
        FROM applications a
        JOIN jobs j ON a.job_id = j.id
        JOIN companies c ON j.company_id = c.id
        WHERE a.id = :id
        """,
        {"id": application_id},
    )


def record_decision(db: Session, application_id: str, status: ApplicationStatus, reviewer_id: str,
                    rejection_reason: Optional[str] = None, feedback: Optional[str] = None) -> Dict[str, Any]:
    result = db.execute(
        text("""
            UPDATE applications
            SET status = :status, reviewed_at = :reviewed_at, reviewer_id = :reviewer_id,
                rejection_reason = :rejection_reason, feedback = :feedback
            WHERE id = :id
            RETURNING id, job_id, applicant_id, company_id, status, applied_at, reviewed_at,
                reviewer_id, rejection_reason, feedback
        """),
        {
            "id": application_id,
            "status": status.value,
            "reviewed_at": datetime.now(timezone.utc).isoformat(),
            "reviewer_id": reviewer_id,
            "rejection_reason": rejection_reason,
            "feedback": feedback,
        },
    )
    row = dict(result.mappings().one())
    logger.info("Application %s marked %s by %s", application_id, status.value, reviewer_id)
    return row


def decision_notice(status: ApplicationStatus, job_title: str, feedback: Optional[str]) -> Dict[str, str]:
    """Title and message for the applicant's notification."""
    if status is ApplicationStatus.accepted:
        return {"title": "Application Accepted",
                "message": f"Your application for {job_title} has been accepted!"}
    if status is ApplicationStatus.rejected:
        return {"title": "Application Update",
                "message": feedback or f"Your application for {job_title} was not selected."}
    return {"title": "Application Under Review",
            "message": f"Your application for {job_title} is under review."}
