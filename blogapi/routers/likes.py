from fastapi import APIRouter, Depends, Path, Response
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.database import get_db
from blogapi.dependencies import get_current_user_id
from blogapi.schemas import MAX_ID, Envelope, LikeRequest, LikeStatusResult, LikeToggleResult
from blogapi.services import like_service

router = APIRouter(prefix="/like", tags=["likes"])


@router.post("", response_model=Envelope[LikeToggleResult])
async def toggle_like(
    data: LikeRequest,
    response: Response,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    result = await like_service.toggle_like(db, user_id, data.blog_id)
    if result.liked:
        response.status_code = 201
        return Envelope(data=result, message="Blog liked successfully")
    return Envelope(data=result, message="Blog unliked successfully")


@router.get("/{blog_id}", response_model=Envelope[LikeStatusResult])
async def like_status(
    blog_id: int = Path(ge=1, le=MAX_ID),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    status = await like_service.like_status(db, user_id, blog_id)
    return Envelope(data=status, message="Like status retrieved successfully")
