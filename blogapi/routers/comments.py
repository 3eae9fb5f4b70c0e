from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.database import get_db
from blogapi.dependencies import get_current_user_id
from blogapi.schemas import MAX_ID, CommentList, CommentRequest, CommentResult, Envelope
from blogapi.services import comment_service

router = APIRouter(prefix="/comment", tags=["comments"])


@router.post("", status_code=201, response_model=Envelope[CommentResult])
async def add_comment(
    data: CommentRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.add_comment(db, user_id, data)
    return Envelope(data=comment, message="Comment posted")


@router.get("/{blog_id}", response_model=Envelope[CommentList])
async def list_comments(
    blog_id: int = Path(ge=1, le=MAX_ID),
    db: AsyncSession = Depends(get_db),
):
    comments = await comment_service.list_comments(db, blog_id)
    return Envelope(data=comments, message="Comments retrieved successfully")
