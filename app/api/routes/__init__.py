"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from app.api.routes.profile_routes import router as profile_router
from app.api.routes.company_routes import router as company_router
from app.api.routes.job_routes import router as job_router
from app.api.routes.application_routes import router as application_router
from app.api.routes.credential_routes import router as credential_router
from app.api.routes.certificate_routes import router as certificate_router
from app.api.routes.institution_routes import router as institution_router
from app.api.routes.notification_routes import router as notification_router
from app.api.routes.verification_routes import router as verification_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(profile_router)
api_router.include_router(company_router)
api_router.include_router(job_router)
api_router.include_router(application_router)
api_router.include_router(credential_router)
api_router.include_router(certificate_router)
api_router.include_router(institution_router)
api_router.include_router(notification_router)
api_router.include_router(verification_router)
