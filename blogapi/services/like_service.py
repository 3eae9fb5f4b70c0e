"""
Like service: the liked/unliked toggle for (user, blog) pairs.

The ``(user_id, blog_id)`` unique constraint on ``likes`` is what keeps
the relation at one row per pair; the toggle never does check-then-act:

1. ``DELETE`` the pair.  A removed row means the call unliked.
2. Otherwise ``INSERT`` it, tolerating a conflict.  A concurrent toggle
   that inserted first leaves the pair liked, which is the outcome this
   call wanted anyway.

PostgreSQL and SQLite get a native ``ON CONFLICT DO NOTHING``; other
dialects fall back to a SAVEPOINT around the insert.
"""
import logging

from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import NotFoundError
from blogapi.models import Blog, Like
from blogapi.schemas import LikeStatusResult, LikeToggleResult

logger = logging.getLogger(__name__)

_ON_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def ensure_blog_exists(db: AsyncSession, blog_id: int) -> None:
    exists = (await db.execute(select(Blog.id).where(Blog.id == blog_id))).first()
    if exists is None:
        raise NotFoundError("Blog not found")


async def count_likes(db: AsyncSession, blog_id: int) -> int:
    q = select(func.count(Like.id)).where(Like.blog_id == blog_id)
    return (await db.execute(q)).scalar_one()


async def has_liked(db: AsyncSession, user_id: int | None, blog_id: int) -> bool:
    if user_id is None:
        return False
    q = select(Like.id).where(Like.user_id == user_id, Like.blog_id == blog_id).limit(1)
    return (await db.execute(q)).first() is not None


async def _insert_like(db: AsyncSession, user_id: int, blog_id: int) -> bool:
    """Insert the pair; returns False when it already existed."""
    values = {"user_id": user_id, "blog_id": blog_id}
    dialect = db.get_bind().dialect.name

    dialect_insert = _ON_CONFLICT_INSERTS.get(dialect)
    if dialect_insert is not None:
        stmt = dialect_insert(Like).values(**values).on_conflict_do_nothing(
            index_elements=[Like.user_id, Like.blog_id]
        )
        result = await db.execute(stmt)
        return result.rowcount > 0

    try:
        async with db.begin_nested():
            await db.execute(insert(Like).values(**values))
    except IntegrityError:
        return False
    return True


async def toggle_like(db: AsyncSession, user_id: int, blog_id: int) -> LikeToggleResult:
    """Flip the like state of *blog_id* for *user_id*."""
    await ensure_blog_exists(db, blog_id)

    removed = await db.execute(
        delete(Like).where(Like.user_id == user_id, Like.blog_id == blog_id)
    )
    if removed.rowcount > 0:
        liked = False
    else:
        inserted = await _insert_like(db, user_id, blog_id)
        if not inserted:
            logger.info("Like for user %s on blog %s already present", user_id, blog_id)
        liked = True

    logger.info("User %s %s blog %s", user_id, "liked" if liked else "unliked", blog_id)
    return LikeToggleResult(
        blog_id=blog_id,
        liked=liked,
        like_count=await count_likes(db, blog_id),
    )


async def like_status(db: AsyncSession, user_id: int, blog_id: int) -> LikeStatusResult:
    await ensure_blog_exists(db, blog_id)
    return LikeStatusResult(
        blog_id=blog_id,
        like_count=await count_likes(db, blog_id),
        liked_by_user=await has_liked(db, user_id, blog_id),
    )
