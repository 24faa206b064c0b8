"""
SafeHire - Main Application

FastAPI backend with:
- Hosted PostgreSQL for profiles, companies, jobs, credentials, certificates
- Supabase Auth as the identity provider
- Gridlines for company registry lookups
- Server-rendered, role-guarded dashboard pages

Run: uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api import api_router
from app.core.config import get_settings
from app.core.auth import validation_error_handler
from app.core.errors import register_exception_handlers
from app.core.http import build_http_client
from app.db.postgres import build_engine, build_session_factory, test_datastore_connection
from app.db.schema import create_schema
from app.schemas.schemas import HealthResponse
from app.web import PageRedirect, page_redirect_handler, pages_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the per-app datastore factory and HTTP client; tear them down on exit."""
    settings = get_settings()
    configure_logging(settings.log_level)

    engine = build_engine(settings)
    if engine is not None and settings.auto_create_schema:
        create_schema(engine)
        logger.info("Local schema ensured")
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.http_client = build_http_client(settings)

    if not settings.identity_provider_configured:
        logger.warning("Identity provider is not configured. Authenticated routes will return 401.")
    if not settings.gridlines_api_key:
        logger.warning("GRIDLINES_API_KEY is missing. Company lookups will return 500.")

    try:
        yield
    finally:
        await app.state.http_client.aclose()
        if engine is not None:
            engine.dispose()


settings = get_settings()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="""
    Job platform API with verified identities.

    ## Features
    - **Profiles**: role selection, Safe Hire IDs, Aadhaar verification
    - **Companies**: registry lookup and verification by CIN/PAN
    - **Jobs**: open job listing and posting
    - **Credentials**: credential issuance records
    - **Certificates**: claimed NFT certificates
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app, validation_handler=validation_error_handler)
app.add_exception_handler(PageRedirect, page_redirect_handler)

# Include API routes
app.include_router(api_router, prefix="/api")
app.include_router(pages_router)


@app.get("/health", tags=["Health"], response_model=HealthResponse)
def health_check(request: Request):
    """Detailed health check."""
    current = get_settings()
    datastore_ok = test_datastore_connection(request.app.state.engine)
    return HealthResponse(
        status="healthy" if datastore_ok else "degraded",
        datastore="connected" if datastore_ok else "disconnected",
        identity_provider="configured" if current.identity_provider_configured else "not_configured",
        details={"registry": "configured" if current.gridlines_api_key else "not_configured"},
    )
