"""
Schemas module - Request/Response schemas for API endpoints.
"""

from app.schemas.schemas import AuthUser, UserRole, JobStatus, VerificationStatus

__all__ = ["AuthUser", "UserRole", "JobStatus", "VerificationStatus"]
