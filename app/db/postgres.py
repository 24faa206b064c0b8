"""
Datastore sessions.

The engine and session factory are built once by the app lifespan and kept on
``app.state``. Every request gets its own Session through ``get_db``; nothing
here holds a module-level connection.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings
from app.core.errors import DatastoreNotConfigured

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Optional[Engine]:
    """Create the engine, or None when DATABASE_URL is unset."""
    if not settings.database_url:
        logger.warning("DATABASE_URL is not set. Datastore handlers will return 500.")
        return None

    kwargs: Dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    if settings.database_url.startswith("sqlite"):
        # TestClient and the threadpool share one sqlite file across threads
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        # pool_size=5: maintain 5 connections ready
        # max_overflow=10: allow 10 extra connections under load
        kwargs.update(pool_size=5, max_overflow=10)
    return create_engine(settings.database_url, **kwargs)


def build_session_factory(engine: Optional[Engine]) -> Optional[sessionmaker]:
    if engine is None:
        return None
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Iterator[Session]:
    """
    Dependency for FastAPI route injection.
    Usage:
        @router.get("/things")
        def list_things(db: Session = Depends(get_db)):
            ...
    Writers call ``db.commit()`` themselves.
    """
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        raise DatastoreNotConfigured()
    db = factory()
    try:
        yield db
    finally:
        db.close()


def get_optional_db(request: Request) -> Iterator[Optional[Session]]:
    """Like ``get_db`` but yields None when no datastore is configured."""
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        yield None
        return
    db = factory()
    try:
        yield db
    finally:
        db.close()


def fetch_all(db: Session, sql: str, params: Optional[dict] = None) -> List[Dict[str, Any]]:
    """Execute raw SQL and return results as list of dicts."""
    result = db.execute(text(sql), params or {})
    return [dict(row) for row in result.mappings().all()]


def fetch_one(db: Session, sql: str, params: Optional[dict] = None) -> Optional[Dict[str, Any]]:
    """Execute raw SQL and return the first row as a dict, or None."""
    row = db.execute(text(sql), params or {}).mappings().first()
    return dict(row) if row is not None else None


def test_datastore_connection(engine: Optional[Engine]) -> bool:
    """
    Test if the datastore is reachable.
    Returns True if connection successful, False otherwise.
    """
    if engine is None:
        return False
    try:
        with engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1
    except Exception as e:
        logger.warning("Datastore connection failed: %s", e)
        return False
