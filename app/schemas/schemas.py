"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict
from datetime import date, datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    job_seeker = "job_seeker"
    employer_admin = "employer_admin"
    institution = "institution"

    @classmethod
    def parse(cls, value: Any) -> Optional["UserRole"]:
        """Return the role for a raw value, or None if it is not one of ours."""
        try:
            return cls(value)
        except ValueError:
            return None


class JobStatus(str, Enum):
    draft = "draft"
    open = "open"
    closed = "closed"


class VerificationStatus(str, Enum):
    pending = "pending"
    verified = "verified"
    failed = "failed"


class ApplicationStatus(str, Enum):
    pending = "pending"
    reviewing = "reviewing"
    accepted = "accepted"
    rejected = "rejected"


class CredentialIssuanceStatus(str, Enum):
    # Only the unsigned variant exists until real VC signing lands
    pending_signature = "pending_signature"
    signed = "signed"


class AadhaarMode(str, Enum):
    demo = "demo"
    apisetu = "apisetu"


# ============================================================
# AUTH
# ============================================================

class AuthUser(BaseModel):
    """The caller as the identity provider knows them."""
    id: str
    email: Optional[str] = None


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class SetRoleRequest(BaseModel):
    # Plain str so an unknown role is answered with our own 400 body
    role: Optional[str] = None

class UpdateRoleRequest(BaseModel):
    new_role: Optional[str] = None
    email: Optional[str] = None

class ProfileSummaryResponse(BaseModel):
    email: Optional[str] = None
    role: str = "not_set"
    safe_hire_id: Optional[str] = None
    aadhaar_verified: bool = False
    user_id: str

class SetRoleResponse(BaseModel):
    success: bool = True
    role: UserRole

class SafeIdResponse(BaseModel):
    ok: bool = True
    safe_hire_id: str

class UpdateRoleResponse(BaseModel):
    success: bool = True
    old_role: Optional[str] = None
    new_role: UserRole
    safe_hire_id: Optional[str] = None
    user_email: Optional[str] = None


# ============================================================
# COMPANY SCHEMAS
# ============================================================

class CompanySummary(BaseModel):
    id: str
    name: str
    verification_status: str

class CompanyListResponse(BaseModel):
    ok: bool = True
    companies: List[CompanySummary] = []

class CompanyVerifyRequest(BaseModel):
    name: Optional[str] = None
    registrationNumber: Optional[str] = None


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    company_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    experience_level: Optional[str] = None
    salary_range: Optional[str] = None
    requirements: Optional[str] = None
    benefits: Optional[str] = None
    application_deadline: Optional[datetime] = None

class JobApplyRequest(BaseModel):
    job_id: Optional[str] = None
    cover_letter: Optional[str] = None
    resume_text: Optional[str] = None


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationDecisionRequest(BaseModel):
    status: Optional[str] = None
    rejectionReasons: Optional[List[str]] = None


# ============================================================
# NOTIFICATION SCHEMAS
# ============================================================

class NotificationUpdateRequest(BaseModel):
    notification_ids: Optional[List[str]] = None
    mark_all_read: bool = False


# ============================================================
# CREDENTIAL SCHEMAS
# ============================================================

class CredentialIssueRequest(BaseModel):
    type: Optional[str] = None
    payload: Any = None

class InstitutionCertificateCreate(BaseModel):
    certificate_name: Optional[str] = None
    certificate_type: Optional[str] = None
    recipient_name: Optional[str] = None
    description: Optional[str] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    metadata: Dict[str, Any] = {}


# ============================================================
# AADHAAR SCHEMAS
# ============================================================

class AadhaarVerifyRequest(BaseModel):
    mode: Optional[str] = None
    step: Optional[str] = None
    fullName: Optional[str] = None
    uid: Optional[str] = None
    txnId: Optional[str] = None
    otp: Optional[str] = None


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class OkResponse(BaseModel):
    ok: bool = True

class HealthResponse(BaseModel):
    status: str
    datastore: str
    identity_provider: str = Field(..., description="configured | not_configured")
    details: Dict[str, Any] = {}
