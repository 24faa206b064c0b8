"""
Outbound HTTP client.

One httpx.AsyncClient is opened by the app lifespan and handed to handlers
through ``get_http_client``.
"""

import httpx
from fastapi import Request

from app.core.config import Settings


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.http_timeout_seconds)


def get_http_client(request: Request) -> httpx.AsyncClient:
    """FastAPI dependency - the lifespan-owned AsyncClient."""
    return request.app.state.http_client
