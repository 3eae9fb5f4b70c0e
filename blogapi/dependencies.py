import logging

from fastapi import Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.config import Settings
from blogapi.database import get_db
from blogapi.errors import AuthError, AuthErrorKind
from blogapi.models import User
from blogapi.security import TokenService

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates pagination
    query parameters.

    Usage in a router::

        @router.get("/api/blogs")
        async def list_blogs(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    per_page:
        Number of items per page (``perPage`` on the wire), clamped to
        ``Settings.MAX_PAGE_SIZE`` regardless of the value supplied.

    Out-of-range values fail query validation and are answered with 400.
    """

    def __init__(
        self,
        request: Request,
        page: int = Query(
            1,
            ge=1,
            description="Page number (1-based).",
        ),
        per_page: int = Query(
            10,
            alias="perPage",
            ge=1,
            le=100,
            description="Number of items returned per page (max 100).",
        ),
    ) -> None:
        self.page = page
        self.per_page = min(per_page, get_settings(request).MAX_PAGE_SIZE)


# ---------------------------------------------------------------------------
# Auth gate
# ---------------------------------------------------------------------------

def extract_bearer_token(authorization: str | None, cookie: str | None = None) -> str | None:
    """
    Pull the raw token out of an ``Authorization: Bearer <token>`` header,
    falling back to the login cookie.  Returns None when neither is set.
    """
    raw = (authorization or "").strip()
    if not raw:
        return (cookie or "").strip() or None

    parts = raw.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthError(
            AuthErrorKind.MALFORMED,
            "Authorization header must be: Bearer <token>",
        )
    return parts[1].strip()


async def _resolve_user_id(token: str | None, request: Request, db: AsyncSession) -> int:
    user_id = get_token_service(request).validate(token)
    # Tokens outlive accounts; the user must still exist.
    if await db.get(User, user_id) is None:
        logger.warning("Rejected token for missing user %s", user_id)
        raise AuthError(AuthErrorKind.INVALID_OR_EXPIRED, "Unauthorized")
    return user_id


def _request_token(request: Request, authorization: str | None) -> str | None:
    cookie = request.cookies.get(get_settings(request).AUTH_COOKIE_NAME)
    return extract_bearer_token(authorization, cookie)


async def get_current_user_id(
    request: Request,
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> int:
    """Resolve the caller's user id or reject the request with 401."""
    try:
        return await _resolve_user_id(_request_token(request, authorization), request, db)
    except AuthError as exc:
        logger.warning("Auth rejected on %s %s: %s", request.method, request.url.path, exc.kind.value)
        raise


async def get_optional_user_id(
    request: Request,
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> int | None:
    """
    Like ``get_current_user_id`` but anonymous requests pass through as
    None.  A token that is supplied but invalid is still rejected.
    """
    token = _request_token(request, authorization)
    if token is None:
        return None
    return await _resolve_user_id(token, request, db)
