"""
Page Routes (server-rendered)

GET /                       - Landing, role selection, or redirect to dashboard
GET /dashboard              - Redirect to the role's dashboard
GET /sign-in                - Sign-in page (auth itself is the provider's)
GET /aadhaar                - Aadhaar onboarding
GET /employee/dashboard     - Job seeker: onboarding or dashboard
GET /recruiter/dashboard    - Employer: company verification or dashboard
GET /institution/dashboard  - Institution: issued certificates

Guards redirect instead of rendering when the caller is anonymous or has the
wrong role.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from app.core.auth import get_optional_user
from app.core.policy import authorize, dashboard_path
from app.core.errors import DatastoreNotConfigured
from app.db.postgres import fetch_all, fetch_one, get_optional_db
from app.services.profile_service import get_profile, is_onboarded
from app.schemas.schemas import AuthUser, JobStatus, UserRole, VerificationStatus

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["Pages"], include_in_schema=False)

SIGN_IN_PATH = "/sign-in"
HOME_PATH = "/"


class PageRedirect(Exception):
    def __init__(self, location: str):
        self.location = location


def _profile_of(user: AuthUser, db: Optional[Session]) -> Dict[str, Any]:
    # Only reached for signed-in callers
    if db is None:
        raise DatastoreNotConfigured()
    return get_profile(db, user.id) or {}


def _guard(user: Optional[AuthUser], db: Optional[Session], required_role: UserRole) -> Dict[str, Any]:
    """The caller's profile, or a PageRedirect when they may not see the page."""
    if user is None:
        raise PageRedirect(SIGN_IN_PATH)
    profile = _profile_of(user, db)
    if not authorize(profile.get("role"), required_role):
        raise PageRedirect(HOME_PATH)
    return profile


def _render(request: Request, name: str, user: Optional[AuthUser], profile: Optional[dict], **context: Any):
    return templates.TemplateResponse(
        request, name, {"user": user, "profile": profile or {}, **context}
    )


async def page_redirect_handler(request: Request, exc: PageRedirect) -> RedirectResponse:
    logger.debug("Redirecting %s to %s", request.url.path, exc.location)
    return RedirectResponse(exc.location)


@router.get("/")
def home(request: Request, user: Optional[AuthUser] = Depends(get_optional_user),
         db: Optional[Session] = Depends(get_optional_db)):
    if user is None:
        return _render(request, "landing.html", None, None)
    profile = _profile_of(user, db)
    target = dashboard_path(profile.get("role"))
    if target:
        return RedirectResponse(target)
    return _render(request, "role_select.html", user, profile, roles=list(UserRole))


@router.get("/dashboard")
def legacy_dashboard(user: Optional[AuthUser] = Depends(get_optional_user),
                     db: Optional[Session] = Depends(get_optional_db)):
    if user is None:
        return RedirectResponse(SIGN_IN_PATH)
    profile = _profile_of(user, db)
    return RedirectResponse(dashboard_path(profile.get("role")) or HOME_PATH)


@router.get("/sign-in")
def sign_in(request: Request):
    return _render(request, "sign_in.html", None, None)


@router.get("/aadhaar")
def aadhaar_onboarding(request: Request, user: Optional[AuthUser] = Depends(get_optional_user),
                       db: Optional[Session] = Depends(get_optional_db)):
    if user is None:
        return RedirectResponse(SIGN_IN_PATH)
    profile = _profile_of(user, db)
    if profile.get("aadhaar_verified"):
        return RedirectResponse(dashboard_path(profile.get("role")) or HOME_PATH)
    return _render(request, "aadhaar.html", user, profile)


@router.get("/employee/dashboard")
def employee_dashboard(request: Request, user: Optional[AuthUser] = Depends(get_optional_user),
                       db: Optional[Session] = Depends(get_optional_db)):
    profile = _guard(user, db, UserRole.job_seeker)
    if not is_onboarded(profile):
        return _render(request, "employee_onboarding.html", user, profile)

    jobs = fetch_all(
        db,
        """
        SELECT j.id, j.title, j.created_at, c.name AS company_name
        FROM jobs j LEFT JOIN companies c ON j.company_id = c.id
        WHERE j.status = :status ORDER BY j.created_at DESC
        """,
        {"status": JobStatus.open.value},
    )
    return _render(request, "employee_dashboard.html", user, profile, jobs=jobs)


@router.get("/recruiter/dashboard")
def recruiter_dashboard(request: Request, user: Optional[AuthUser] = Depends(get_optional_user),
                        db: Optional[Session] = Depends(get_optional_db)):
    profile = _guard(user, db, UserRole.employer_admin)
    company = fetch_one(
        db,
        "SELECT * FROM companies WHERE owner_user_id = :uid ORDER BY created_at DESC",
        {"uid": user.id},
    )
    if not company or company.get("verification_status") != VerificationStatus.verified.value:
        return _render(request, "company_verification.html", user, profile, company=company)

    jobs = fetch_all(
        db,
        "SELECT id, title, status, created_at FROM jobs WHERE company_id = :cid ORDER BY created_at DESC",
        {"cid": company["id"]},
    )
    return _render(request, "recruiter_dashboard.html", user, profile, company=company, jobs=jobs)


@router.get("/institution/dashboard")
def institution_dashboard(request: Request, user: Optional[AuthUser] = Depends(get_optional_user),
                          db: Optional[Session] = Depends(get_optional_db)):
    profile = _guard(user, db, UserRole.institution)
    certificates = fetch_all(
        db,
        """
        SELECT id, title, nft_code, is_claimed, created_at FROM nft_certificates
        WHERE institution_id = :uid ORDER BY created_at DESC LIMIT 10
        """,
        {"uid": user.id},
    )
    claimed = sum(1 for c in certificates if c["is_claimed"])
    return _render(
        request, "institution_dashboard.html", user, profile,
        certificates=certificates, claimed_count=claimed,
    )
