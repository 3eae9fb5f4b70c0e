from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.database import get_db
from blogapi.dependencies import PaginationParams, get_current_user_id
from blogapi.schemas import Envelope, Page, UpdateUserRequest, UserResult
from blogapi.services import user_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=Envelope[UserResult])
async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user(db, user_id)
    return Envelope(data=user, message="User retrieved successfully")


@router.put("/update", response_model=Envelope[UserResult])
async def update_user(
    data: UpdateUserRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_user(db, user_id, data)
    return Envelope(data=user, message="User updated successfully")


@router.get("/list", response_model=Envelope[Page[UserResult]])
async def list_users(
    pagination: PaginationParams = Depends(),
    _: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    users = await user_service.list_users(db, pagination.page, pagination.per_page)
    return Envelope(data=users, message="Users retrieved successfully")
