"""
Comment service: append-only comments on blogs.

Comments cannot be edited or deleted through the API; they disappear
only together with their blog.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.models import Comment, User
from blogapi.schemas import CommentList, CommentRequest, CommentResult
from blogapi.services.like_service import ensure_blog_exists

logger = logging.getLogger(__name__)


def _comment_to_result(comment: Comment, user_name: str | None) -> CommentResult:
    return CommentResult(
        id=comment.id,
        comment=comment.comment,
        blog_id=comment.blog_id,
        user_id=comment.user_id,
        user_name=user_name,
        created_at=comment.created_at,
    )


async def fetch_comments(db: AsyncSession, blog_id: int) -> list[CommentResult]:
    """Comments on *blog_id*, newest first, with the commenter's name."""
    q = (
        select(Comment, User.name)
        .outerjoin(User, Comment.user_id == User.id)
        .where(Comment.blog_id == blog_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    result = await db.execute(q)
    return [_comment_to_result(comment, name) for comment, name in result.all()]


async def add_comment(db: AsyncSession, user_id: int, data: CommentRequest) -> CommentResult:
    await ensure_blog_exists(db, data.blog_id)

    comment = Comment(comment=data.comment, user_id=user_id, blog_id=data.blog_id)
    db.add(comment)
    await db.flush()
    await db.refresh(comment)

    user = await db.get(User, user_id)
    logger.info("User %s commented on blog %s", user_id, data.blog_id)
    return _comment_to_result(comment, user.name if user else None)


async def list_comments(db: AsyncSession, blog_id: int) -> CommentList:
    await ensure_blog_exists(db, blog_id)
    comments = await fetch_comments(db, blog_id)
    return CommentList(blog_id=blog_id, comments=comments, count=len(comments))
