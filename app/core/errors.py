"""
Error taxonomy and the exception handlers that turn it into JSON.

Two wire envelopes are in use by clients:
- {"ok": false, "message": ...}   (ApiError.message)
- {"error": ...}                  (ApiError.error)
"""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error that already knows its HTTP status and JSON body."""

    def __init__(self, status_code: int, content: Dict[str, Any]):
        super().__init__(content.get("message") or content.get("error"))
        self.status_code = status_code
        self.content = content

    @classmethod
    def message(cls, status_code: int, message: str, **extra: Any) -> "ApiError":
        return cls(status_code, {"ok": False, "message": message, **extra})

    @classmethod
    def error(cls, status_code: int, error: str, **extra: Any) -> "ApiError":
        return cls(status_code, {"error": error, **extra})


class Unauthorized(ApiError):
    def __init__(self):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            {"ok": False, "message": "Unauthorized", "error": "Unauthorized"},
        )


class Forbidden(ApiError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(status.HTTP_403_FORBIDDEN, {"ok": False, "message": message, "error": message})


class DatastoreNotConfigured(ApiError):
    def __init__(self):
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"ok": False, "message": "Datastore is not configured", "error": "Datastore is not configured"},
        )


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.content))


async def invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed or mistyped bodies are client errors (400), not 422.
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({
            "ok": False,
            "message": "Invalid request body",
            "errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()
            ],
        }),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI, validation_handler=invalid_body_handler) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
