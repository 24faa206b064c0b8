"""
Role-based access policy.

Every role check in the app goes through ``authorize``; pages use it to pick a
redirect, API routes use it through ``require_role``.
"""

from typing import Any, Dict, Optional, Union

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.errors import Forbidden
from app.db.postgres import get_db
from app.schemas.schemas import AuthUser, UserRole
from app.services.profile_service import get_profile

DASHBOARD_PATHS = {
    UserRole.job_seeker: "/employee/dashboard",
    UserRole.employer_admin: "/recruiter/dashboard",
    UserRole.institution: "/institution/dashboard",
}


def authorize(role: Union[str, UserRole, None], required_role: UserRole) -> bool:
    """Allow only when the caller's role is exactly the required one."""
    return UserRole.parse(role) is required_role


def dashboard_path(role: Union[str, UserRole, None]) -> Optional[str]:
    """Where a user with this role lands, or None when no role is set."""
    return DASHBOARD_PATHS.get(UserRole.parse(role))


def require_role(required_role: UserRole):
    """
    Dependency factory - the caller plus their profile, 403 on role mismatch.

    Usage:
        @router.post("/jobs/create")
        def create(ctx = Depends(require_role(UserRole.employer_admin))): ...
    """

    def dependency(
        user: AuthUser = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> Dict[str, Any]:
        profile = get_profile(db, user.id)
        if not authorize(profile.get("role") if profile else None, required_role):
            raise Forbidden(f"Access denied - {required_role.value} role required")
        return {"user": user, "profile": profile}

    return dependency
