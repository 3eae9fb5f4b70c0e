"""
Error taxonomy and the exception handlers that render it.

Every error leaves the API as the standard envelope::

    {"status": "error", "data": <details or null>, "message": "..."}

Services raise the ``AppError`` subclasses below; routers never build
error responses by hand.
"""
from __future__ import annotations

import enum
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, status_code: int | None = None, data=None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.data = data
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 422
    default_message = "Validation failed"


class AuthErrorKind(str, enum.Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    INVALID_OR_EXPIRED = "invalid_or_expired"


_AUTH_MESSAGES = {
    AuthErrorKind.MISSING: "Token missing",
    AuthErrorKind.MALFORMED: "Token malformed",
    AuthErrorKind.INVALID_OR_EXPIRED: "Token invalid or expired",
}


class AuthError(AppError):
    status_code = 401

    def __init__(
        self,
        kind: AuthErrorKind = AuthErrorKind.INVALID_OR_EXPIRED,
        message: str | None = None,
    ) -> None:
        self.kind = kind
        super().__init__(message or _AUTH_MESSAGES[kind])


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class ConflictError(AppError):
    status_code = 422
    default_message = "Resource already exists"


class InternalError(AppError):
    status_code = 500


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def error_response(status_code: int, message: str, data=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "data": data, "message": message},
        headers=headers,
    )


def _format_validation_errors(exc: RequestValidationError) -> tuple[dict[str, str], bool]:
    """
    Flatten pydantic errors to ``{field: reason}``.

    Also reports whether every failure came from the query string or the
    path, in which case the request is answered with 400 instead of 422.
    """
    fields: dict[str, str] = {}
    params_only = True
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if not loc or loc[0] not in ("query", "path"):
            params_only = False
        name = ".".join(loc[1:]) if len(loc) > 1 else ".".join(loc) or "request"
        fields.setdefault(name, err.get("msg", "invalid"))
    return fields, params_only


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, AppError.default_message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return error_response(exc.status_code, exc.message, exc.data, headers)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields, params_only = _format_validation_errors(exc)
    summary = "; ".join(f"{name}: {reason}" for name, reason in fields.items())
    return error_response(400 if params_only else 422, f"Validation failed: {summary}", fields)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, AppError.default_message)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
