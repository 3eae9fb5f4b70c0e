"""
Blog service: business logic for the Blog aggregate.

Design notes
------------
- Like and comment counts are never stored.  Listings select them as
  correlated scalar subqueries next to the ``Blog`` entity, so every row
  handed back by ``paginate`` is ``(Blog, like_count, comment_count)``.
- Authors are loaded with ``selectinload`` (one extra query per page)
  rather than ``joinedload`` so the listing query stays a plain
  single-table select that can be wrapped for the COUNT.
- Every listing ends in ``Blog.id`` as tiebreaker; ``created_at`` has
  one-second resolution on some backends and ties are common.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import enum
import logging

from fastapi import UploadFile
from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blogapi.config import Settings
from blogapi.errors import ForbiddenError, NotFoundError, ValidationError
from blogapi.models import Blog, Comment, Like, User
from blogapi.pagination import paginate
from blogapi.schemas import (
    AuthorResult,
    BlogDeleted,
    BlogDetail,
    BlogResult,
    BlogSummary,
    LikesInfo,
    Page,
)
from blogapi.services import comment_service, like_service
from blogapi.uploads import delete_thumbnail, save_thumbnail

logger = logging.getLogger(__name__)


class BlogSort(str, enum.Enum):
    LIKES = "likes"
    COMMENTS = "comments"


class SearchFilter(str, enum.Enum):
    USERNAME = "username"
    JUDUL = "judul"
    CONTENT = "content"
    ALL = "all"


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

_like_count = (
    select(func.count(Like.id))
    .where(Like.blog_id == Blog.id)
    .correlate(Blog)
    .scalar_subquery()
    .label("like_count")
)
_comment_count = (
    select(func.count(Comment.id))
    .where(Comment.blog_id == Blog.id)
    .correlate(Blog)
    .scalar_subquery()
    .label("comment_count")
)


def _listing_query() -> Select:
    return select(Blog, _like_count, _comment_count).options(selectinload(Blog.author))


def _contains(column, term: str):
    """Case-insensitive substring match with LIKE wildcards escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _author(user: User | None) -> AuthorResult | None:
    return AuthorResult.model_validate(user) if user is not None else None


def _blog_fields(blog: Blog) -> dict:
    return {
        "id": blog.id,
        "judul": blog.title,
        "content": blog.content,
        "thumbnail": blog.thumbnail,
        "user_id": blog.user_id,
        "created_at": blog.created_at,
    }


def _row_to_summary(row) -> BlogSummary:
    blog, like_count, comment_count = row
    return BlogSummary(
        **_blog_fields(blog),
        author=_author(blog.author),
        like_count=like_count or 0,
        comment_count=comment_count or 0,
    )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def list_blogs(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 10,
    sort: BlogSort | None = None,
) -> Page:
    """
    Return a page of blogs, newest first by default, or most liked /
    most commented first when *sort* is given.
    """
    def order(query: Select) -> Select:
        if sort is BlogSort.LIKES:
            return query.order_by(_like_count.desc(), Blog.created_at.desc())
        if sort is BlogSort.COMMENTS:
            return query.order_by(_comment_count.desc(), Blog.created_at.desc())
        return query.order_by(Blog.created_at.desc())

    result = await paginate(db, _listing_query(), page, per_page, order, tiebreaker=Blog.id.desc())
    return result.map(_row_to_summary)


async def search_blogs(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 10,
    search: str = "",
    search_filter: SearchFilter = SearchFilter.ALL,
) -> Page:
    """
    Return a page of blogs whose author name, title, content (or any of
    them for ``all``) contains *search*.  An empty *search* matches all.
    """
    term = (search or "").strip()

    def apply(query: Select) -> Select:
        query = query.order_by(Blog.created_at.desc())
        if not term:
            return query
        if search_filter is SearchFilter.JUDUL:
            return query.where(_contains(Blog.title, term))
        if search_filter is SearchFilter.CONTENT:
            return query.where(_contains(Blog.content, term))
        query = query.join(User, Blog.user_id == User.id)
        if search_filter is SearchFilter.USERNAME:
            return query.where(_contains(User.name, term))
        return query.where(
            or_(_contains(User.name, term), _contains(Blog.title, term), _contains(Blog.content, term))
        )

    result = await paginate(db, _listing_query(), page, per_page, apply, tiebreaker=Blog.id.desc())
    return result.map(_row_to_summary)


async def get_blog_detail(db: AsyncSession, blog_id: int, viewer_id: int | None = None) -> BlogDetail:
    """
    Return the blog with its author, like summary and comments.

    ``likes.user_liked`` reflects *viewer_id* and is False for anonymous
    viewers.
    """
    q = select(Blog).where(Blog.id == blog_id).options(selectinload(Blog.author))
    blog = (await db.execute(q)).scalar_one_or_none()
    if blog is None:
        raise NotFoundError("Blog not found")

    return BlogDetail(
        **_blog_fields(blog),
        author=_author(blog.author),
        likes=LikesInfo(
            count=await like_service.count_likes(db, blog_id),
            user_liked=await like_service.has_liked(db, viewer_id, blog_id),
        ),
        comments=await comment_service.fetch_comments(db, blog_id),
    )


async def create_blog(
    db: AsyncSession,
    settings: Settings,
    user_id: int,
    title: str,
    content: str,
    thumbnail: UploadFile | None,
) -> BlogResult:
    """
    Create a blog owned by *user_id*.

    Text fields are checked before the thumbnail is written so a bad
    request never leaves an orphaned file behind.
    """
    title = (title or "").strip()
    content = (content or "").strip()
    if not title or not content:
        raise ValidationError("Judul and content are required", status_code=400)
    if len(title) > 300:
        raise ValidationError("Judul must be at most 300 characters", status_code=400)

    thumbnail_url = await save_thumbnail(thumbnail, settings)

    blog = Blog(title=title, content=content, thumbnail=thumbnail_url, user_id=user_id)
    db.add(blog)
    try:
        await db.flush()
    except Exception:
        await delete_thumbnail(thumbnail_url, settings)
        raise
    await db.refresh(blog)
    logger.info("User %s created blog %s", user_id, blog.id)
    return BlogResult(**_blog_fields(blog))


async def delete_blog(db: AsyncSession, settings: Settings, blog_id: int, user_id: int) -> BlogDeleted:
    """Delete *blog_id* and everything hanging off it; owner only."""
    blog = await db.get(Blog, blog_id)
    if blog is None:
        raise NotFoundError("Blog not found")
    if blog.user_id != user_id:
        raise ForbiddenError("You are not authorized to delete this blog")
    thumbnail = blog.thumbnail

    # Children first; SQLite does not enforce ON DELETE CASCADE by default.
    await db.execute(delete(Like).where(Like.blog_id == blog_id))
    await db.execute(delete(Comment).where(Comment.blog_id == blog_id))
    await db.delete(blog)
    await db.flush()
    await delete_thumbnail(thumbnail, settings)
    logger.info("User %s deleted blog %s", user_id, blog_id)
    return BlogDeleted(id=blog_id)
