"""
Profile Routes

GET  /me/profile               - Raw profile row ({} when absent)
GET  /profile/me               - Profile summary with defaults
POST /profile/set-role         - Upsert role
POST /profile/ensure-safe-id   - Assign a Safe Hire ID once
POST /profile/mark-employer    - Force role to employer_admin
POST /profile/update-role      - Change role, re-issue Safe Hire ID on change
GET  /profiles/lookup/{sid}    - Employer lookup of a job seeker by Safe Hire ID
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.errors import ApiError
from app.core.policy import require_role
from app.db.postgres import get_db
from app.services.certificate_service import list_claimed_by
from app.services.profile_service import (
    find_job_seeker_by_safe_hire_id, generate_safe_hire_id, get_profile, upsert_profile
)
from app.schemas.schemas import (
    AuthUser, UserRole, SetRoleRequest, UpdateRoleRequest, ProfileSummaryResponse,
    SetRoleResponse, SafeIdResponse, UpdateRoleResponse, OkResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Profile"])


@router.get("/me/profile")
def get_my_profile(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Return the caller's profile row as-is, or {} when there is none."""
    try:
        profile = get_profile(db, user.id)
    except SQLAlchemyError as e:
        logger.error("Profile fetch failed for %s: %s", user.id, e)
        raise ApiError.message(500, str(e))
    return profile or {}


@router.get("/profile/me", response_model=ProfileSummaryResponse)
def get_profile_summary(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        profile = get_profile(db, user.id) or {}
    except SQLAlchemyError as e:
        logger.error("Profile fetch failed for %s: %s", user.id, e)
        raise ApiError.error(500, str(e))

    return ProfileSummaryResponse(
        email=user.email,
        role=profile.get("role") or "not_set",
        safe_hire_id=profile.get("safe_hire_id"),
        aadhaar_verified=bool(profile.get("aadhaar_verified")),
        user_id=user.id,
    )


@router.post("/profile/set-role", response_model=SetRoleResponse)
def set_role(data: SetRoleRequest, user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Upsert the caller's role. Unknown roles are rejected before any write."""
    role = UserRole.parse(data.role)
    if role is None:
        raise ApiError.error(400, "Invalid role")

    try:
        upsert_profile(db, user.id, role=role.value)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("set-role failed for %s: %s", user.id, e)
        raise ApiError.error(500, str(e))

    return SetRoleResponse(success=True, role=role)


@router.post("/profile/ensure-safe-id", response_model=SafeIdResponse)
def ensure_safe_id(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Idempotent: an existing Safe Hire ID comes back unchanged with no write.

    Otherwise a new ID is generated from the role prefix and stored. There is
    no uniqueness check, so two concurrent first calls can both write.
    """
    try:
        profile = get_profile(db, user.id)
        if profile and profile.get("safe_hire_id"):
            return SafeIdResponse(safe_hire_id=profile["safe_hire_id"])

        safe_id = generate_safe_hire_id(profile.get("role") if profile else None)
        upsert_profile(db, user.id, safe_hire_id=safe_id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("ensure-safe-id failed for %s: %s", user.id, e)
        raise ApiError.message(500, str(e))

    logger.info("Assigned Safe Hire ID %s to %s", safe_id, user.id)
    return SafeIdResponse(safe_hire_id=safe_id)


@router.post("/profile/mark-employer", response_model=OkResponse)
def mark_employer(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Set role to employer_admin regardless of the previous role."""
    try:
        upsert_profile(db, user.id, role=UserRole.employer_admin.value)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("mark-employer failed for %s: %s", user.id, e)
        raise ApiError.message(500, str(e))

    return OkResponse()


@router.post("/profile/update-role", response_model=UpdateRoleResponse)
def update_role(data: UpdateRoleRequest, user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Change role; a real change also re-issues the Safe Hire ID with the new prefix."""
    new_role = UserRole.parse(data.new_role)
    if new_role is None:
        raise ApiError.error(400, "Invalid role")
    if data.email and data.email != user.email:
        raise ApiError.error(403, "Email mismatch")

    try:
        current = get_profile(db, user.id) or {}
        old_role = current.get("role")
        safe_id = current.get("safe_hire_id")

        fields = {"role": new_role.value}
        if old_role != new_role.value:
            safe_id = generate_safe_hire_id(new_role.value)
            fields["safe_hire_id"] = safe_id
        upsert_profile(db, user.id, **fields)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("update-role failed for %s: %s", user.id, e)
        raise ApiError.error(500, str(e))

    return UpdateRoleResponse(
        success=True,
        old_role=old_role,
        new_role=new_role,
        safe_hire_id=safe_id,
        user_email=user.email,
    )


@router.get("/profiles/lookup/{safe_hire_id}")
def lookup_profile(
    safe_hire_id: str,
    ctx: Dict[str, Any] = Depends(require_role(UserRole.employer_admin)),
    db: Session = Depends(get_db),
):
    """A job seeker's public profile plus their claimed certificates, or {"profile": None}."""
    try:
        profile = find_job_seeker_by_safe_hire_id(db, safe_hire_id)
        if profile is None:
            return {"profile": None}
        certificates = list_claimed_by(db, profile["user_id"])
    except SQLAlchemyError as e:
        logger.error("Lookup of %s failed: %s", safe_hire_id, e)
        raise ApiError.error(500, "Failed to look up profile", details=str(e))

    return {"profile": profile, "nft_certificates": certificates}
