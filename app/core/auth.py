"""
Authentication - resolve the caller through the identity provider.

Provides:
- Access token extraction (bearer header or Supabase session cookie)
- Local JWT verification when the project JWT secret is configured
- Remote lookup against the provider's /auth/v1/user otherwise
- FastAPI dependencies for protected routes
- A validation handler that answers 401 before 400 on protected routes
"""

import base64
import json
import logging
import re
import time
from typing import Any, Dict, List, Optional

import httpx
from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from jose import JWTError, jwt

from app.core.config import Settings, get_settings
from app.core.errors import Unauthorized, api_error_handler, invalid_body_handler
from app.core.http import get_http_client
from app.schemas.schemas import AuthUser

logger = logging.getLogger(__name__)

# sb-<project-ref>-auth-token, optionally chunked as .0, .1, ...
SUPABASE_COOKIE_RE = re.compile(r"^sb-[A-Za-z0-9]+-auth-token(?:\.(\d+))?$")
BASE64_PREFIX = "base64-"


def _looks_like_jwt(value: str) -> bool:
    return value.count(".") == 2 and not value.startswith(("{", "["))


def _token_from_cookie_value(value: str) -> Optional[str]:
    """
    Pull the access token out of a session cookie value.

    Accepts a raw JWT, a JSON object with ``access_token``, a JSON array whose
    first item is the token, or either JSON form encoded as ``base64-<...>``.
    """
    value = (value or "").strip()
    if not value:
        return None
    if value.startswith(BASE64_PREFIX):
        raw = value[len(BASE64_PREFIX):]
        try:
            value = base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4)).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            return None
    if _looks_like_jwt(value):
        return value
    try:
        data = json.loads(value)
    except ValueError:
        return None
    if isinstance(data, dict):
        token = data.get("access_token")
    elif isinstance(data, list) and data:
        token = data[0]
    else:
        token = None
    return token if isinstance(token, str) and token else None


def _supabase_cookie_value(cookies: Dict[str, str]) -> Optional[str]:
    whole: Optional[str] = None
    chunks: List[tuple] = []
    for name, value in cookies.items():
        match = SUPABASE_COOKIE_RE.match(name)
        if not match:
            continue
        if match.group(1) is None:
            whole = value
        else:
            chunks.append((int(match.group(1)), value))
    if whole:
        return whole
    if chunks:
        return "".join(v for _, v in sorted(chunks))
    return None


def extract_access_token(request: Request, settings: Settings) -> Optional[str]:
    """Bearer header first, then the configured cookie, then any Supabase cookie."""
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    cookie = request.cookies.get(settings.session_cookie_name)
    if cookie:
        token = _token_from_cookie_value(cookie)
        if token:
            return token

    cookie = _supabase_cookie_value(dict(request.cookies))
    return _token_from_cookie_value(cookie) if cookie else None


def token_expired(token: str, now: Optional[float] = None) -> bool:
    """True when the token is unreadable or its ``exp`` has passed."""
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return True
    exp = claims.get("exp")
    if exp is None:
        return False
    try:
        return float(exp) <= (now if now is not None else time.time())
    except (TypeError, ValueError):
        return True


class IdentityProvider:
    """Thin wrapper over the hosted auth service."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http_client = http_client

    def _decode_locally(self, token: str) -> Optional[AuthUser]:
        try:
            claims: Dict[str, Any] = jwt.decode(
                token,
                self.settings.supabase_jwt_secret,
                algorithms=["HS256"],
                audience=self.settings.supabase_jwt_audience,
            )
        except JWTError as e:
            logger.info("Rejected session token: %s", e)
            return None
        user_id = claims.get("sub")
        if not user_id:
            return None
        return AuthUser(id=str(user_id), email=claims.get("email"))

    async def _fetch_remote(self, token: str) -> Optional[AuthUser]:
        url = f"{self.settings.supabase_url.rstrip('/')}/auth/v1/user"
        try:
            res = await self.http_client.get(
                url,
                headers={
                    "apikey": self.settings.supabase_anon_key,
                    "Authorization": f"Bearer {token}",
                },
            )
        except httpx.HTTPError as e:
            logger.warning("Identity provider unreachable: %s", e)
            return None
        if res.status_code != 200:
            return None
        try:
            data = res.json()
        except ValueError:
            return None
        if not isinstance(data, dict) or not data.get("id"):
            return None
        return AuthUser(id=str(data["id"]), email=data.get("email"))

    async def get_user(self, token: Optional[str]) -> Optional[AuthUser]:
        """Resolve a token to a user. Any failure means no user."""
        if not token or token_expired(token):
            return None
        if self.settings.supabase_jwt_secret:
            return self._decode_locally(token)
        if self.settings.supabase_url and self.settings.supabase_anon_key:
            return await self._fetch_remote(token)
        logger.warning("Identity provider is not configured; treating request as anonymous.")
        return None


def get_identity_provider(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> IdentityProvider:
    return IdentityProvider(settings, http_client)


async def get_optional_user(
    request: Request,
    settings: Settings = Depends(get_settings),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Optional[AuthUser]:
    """FastAPI dependency - the caller, or None for anonymous requests."""
    return await provider.get_user(extract_access_token(request, settings))


async def get_current_user(user: Optional[AuthUser] = Depends(get_optional_user)) -> AuthUser:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @router.get("/protected")
        def route(user: AuthUser = Depends(get_current_user)):
            return user
    """
    if user is None:
        raise Unauthorized()
    return user


def _depends_on(dependant, call) -> bool:
    return any(sub.call is call or _depends_on(sub, call) for sub in dependant.dependencies)


def route_requires_user(request: Request) -> bool:
    """True when the matched route resolves ``get_current_user`` anywhere in its dependencies."""
    dependant = getattr(request.scope.get("route"), "dependant", None)
    return dependant is not None and _depends_on(dependant, get_current_user)


async def resolve_request_user(request: Request) -> Optional[AuthUser]:
    """Resolve the caller outside dependency injection (settings overrides still apply)."""
    settings = request.app.dependency_overrides.get(get_settings, get_settings)()
    provider = IdentityProvider(settings, request.app.state.http_client)
    return await provider.get_user(extract_access_token(request, settings))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    The body is decoded before dependencies run, so an unreadable body would
    otherwise hide a missing session. Protected routes answer 401 first.
    """
    if route_requires_user(request) and await resolve_request_user(request) is None:
        return await api_error_handler(request, Unauthorized())
    return await invalid_body_handler(request, exc)
