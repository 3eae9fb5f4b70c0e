"""
User service: signup, login and profile operations for the User aggregate.

Email uniqueness is checked up front so the caller gets a readable 422,
and enforced again by the unique constraint; a concurrent duplicate that
slips past the check surfaces as an ``IntegrityError`` at flush time and
is translated to the same ``ConflictError``.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import AuthError, AuthErrorKind, ConflictError, NotFoundError
from blogapi.models import User
from blogapi.pagination import paginate
from blogapi.schemas import LoginRequest, Page, SignupRequest, UpdateUserRequest, UserResult
from blogapi.security import hash_password, verify_password

logger = logging.getLogger(__name__)

_EMAIL_TAKEN = "Email already exists"


def _user_to_result(user: User) -> UserResult:
    return UserResult.model_validate(user)


async def _email_taken(db: AsyncSession, email: str, exclude_user_id: int | None = None) -> bool:
    q = select(User.id).where(User.email == email)
    if exclude_user_id is not None:
        q = q.where(User.id != exclude_user_id)
    return (await db.execute(q.limit(1))).first() is not None


async def _flush_unique(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError:
        raise ConflictError(_EMAIL_TAKEN)


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def signup(db: AsyncSession, data: SignupRequest) -> UserResult:
    """Create an account and return it without the password hash."""
    if await _email_taken(db, data.email):
        raise ConflictError(_EMAIL_TAKEN)

    user = User(
        name=data.name,
        email=data.email,
        password=hash_password(data.password),
        birthdate=None,
        bio=None,
    )
    db.add(user)
    await _flush_unique(db)
    await db.refresh(user)
    logger.info("User %s signed up", user.id)
    return _user_to_result(user)


async def authenticate(db: AsyncSession, data: LoginRequest) -> User:
    """
    Return the user matching the credentials.

    Unknown emails and wrong passwords produce the same error so the
    response does not reveal which accounts exist.
    """
    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(data.password, user.password):
        logger.warning("Failed login attempt for %s", data.email)
        raise AuthError(AuthErrorKind.INVALID_OR_EXPIRED, "Invalid email or password")
    return user


async def get_user(db: AsyncSession, user_id: int) -> UserResult:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return _user_to_result(user)


async def update_user(db: AsyncSession, user_id: int, data: UpdateUserRequest) -> UserResult:
    """Replace the editable profile fields of *user_id*."""
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    if data.email != user.email and await _email_taken(db, data.email, exclude_user_id=user_id):
        raise ConflictError(_EMAIL_TAKEN)

    for field, value in data.model_dump().items():
        setattr(user, field, value)

    await _flush_unique(db)
    return _user_to_result(user)


async def list_users(db: AsyncSession, page: int, per_page: int) -> Page:
    result = await paginate(db, select(User), page, per_page, tiebreaker=User.id.asc())
    return result.map(lambda row: _user_to_result(row[0]))
