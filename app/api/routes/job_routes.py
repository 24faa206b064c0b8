"""
Job Routes

GET  /jobs/list    - All open jobs, newest first, with company name
POST /jobs/create  - Post a job for one of the caller's companies (employer only)
POST /jobs/apply   - Apply to an open job (Aadhaar-verified job seekers only)
"""

import logging
import uuid
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ApiError
from app.core.policy import require_role
from app.db.postgres import fetch_all, fetch_one, get_db
from app.services.application_service import get_open_job, has_applied, submit_application
from app.services.notification_service import APPLICATION_RECEIVED, create_notification
from app.schemas.schemas import JobApplyRequest, JobCreate, JobStatus, UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _job_row(r: Dict[str, Any]) -> Dict[str, Any]:
    # Clients read the company as a nested object
    return {
        "id": r["id"],
        "title": r["title"],
        "description": r["description"],
        "company_id": r["company_id"],
        "status": r["status"],
        "created_at": r["created_at"],
        "companies": {"name": r["company_name"]} if r["company_name"] is not None else None,
    }


@router.get("/list")
def list_jobs(db: Session = Depends(get_db)):
    """List open job postings, newest first. No pagination."""
    try:
        results = fetch_all(
            db,
            """
            SELECT j.id, j.title, j.description, j.company_id, j.status, j.created_at,
                   c.name AS company_name
            FROM jobs j LEFT JOIN companies c ON j.company_id = c.id
            WHERE j.status = :status
            ORDER BY j.created_at DESC
            """,
            {"status": JobStatus.open.value},
        )
    except SQLAlchemyError as e:
        logger.error("Job list failed: %s", e)
        raise ApiError.message(500, str(e))

    return {"ok": True, "jobs": [_job_row(r) for r in results]}


@router.post("/create")
def create_job(
    job: JobCreate,
    ctx: Dict[str, Any] = Depends(require_role(UserRole.employer_admin)),
    db: Session = Depends(get_db),
):
    """Create an open job. The company must belong to the caller."""
    if not job.company_id or not job.title or not job.description:
        raise ApiError.message(400, "Missing required fields")

    user = ctx["user"]
    try:
        company = fetch_one(
            db,
            "SELECT id FROM companies WHERE id = :cid AND owner_user_id = :uid",
            {"cid": job.company_id, "uid": user.id},
        )
        if not company:
            raise ApiError.message(403, "Not your company")

        result = db.execute(
            text("""
                INSERT INTO jobs (id, company_id, title, description, location, employment_type,
                    experience_level, salary_range, requirements, benefits, application_deadline, status)
                VALUES (:id, :company_id, :title, :description, :location, :employment_type,
                    :experience_level, :salary_range, :requirements, :benefits, :deadline, :status)
                RETURNING id, company_id, title, description, location, employment_type,
                    experience_level, salary_range, requirements, benefits, application_deadline,
                    status, created_at
            """),
            {
                "id": str(uuid.uuid4()),
                "company_id": job.company_id, "title": job.title, "description": job.description,
                "location": job.location, "employment_type": job.employment_type,
                "experience_level": job.experience_level, "salary_range": job.salary_range,
                "requirements": job.requirements, "benefits": job.benefits,
                "deadline": job.application_deadline, "status": JobStatus.open.value,
            },
        )
        created = dict(result.mappings().one())
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Job create failed for %s: %s", user.id, e)
        raise ApiError.message(500, str(e))

    logger.info("Job %s created by %s", created["id"], user.id)
    return {"ok": True, "job": created}


@router.post("/apply")
def apply_to_job(
    data: JobApplyRequest,
    ctx: Dict[str, Any] = Depends(require_role(UserRole.job_seeker)),
    db: Session = Depends(get_db),
):
    """
    Apply once per job. Requires a verified Aadhaar; the company owner is
    notified in the same transaction.
    """
    if not data.job_id:
        raise ApiError.error(400, "Job ID is required")

    user, profile = ctx["user"], ctx["profile"]
    if not profile.get("aadhaar_verified"):
        raise ApiError.error(403, "Aadhaar verification required to apply for jobs")

    try:
        job = get_open_job(db, data.job_id)
        if not job:
            raise ApiError.error(404, "Job not found or not accepting applications")
        if has_applied(db, job["id"], user.id):
            raise ApiError.error(409, "You have already applied for this job")

        application = submit_application(db, job, user.id, data.cover_letter, data.resume_text)
        applicant = profile.get("full_name") or profile.get("aadhaar_full_name") or "A job seeker"
        create_notification(
            db, job["owner_user_id"], APPLICATION_RECEIVED, "New Job Application",
            f"{applicant} has applied for {job['title']}", application["id"],
        )
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent apply for the same job
        db.rollback()
        raise ApiError.error(409, "You have already applied for this job")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Apply failed for %s on %s: %s", user.id, data.job_id, e)
        raise ApiError.error(500, "Failed to submit application", details=str(e))

    logger.info("Application %s submitted by %s", application["id"], user.id)
    return {"success": True, "application": application, "message": f"Successfully applied for {job['title']}"}
