from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.config import Settings
from blogapi.database import get_db
from blogapi.dependencies import (
    PaginationParams,
    get_current_user_id,
    get_optional_user_id,
    get_settings,
)
from blogapi.schemas import MAX_ID, BlogDeleted, BlogDetail, BlogResult, BlogSummary, Envelope, Page
from blogapi.services import blog_service
from blogapi.services.blog_service import BlogSort, SearchFilter

router = APIRouter(prefix="/api", tags=["blogs"])


@router.get("/blogs", response_model=Envelope[Page[BlogSummary]])
async def list_blogs(
    pagination: PaginationParams = Depends(),
    sort: BlogSort | None = Query(None, description="Sort by 'likes' or 'comments'; newest first when omitted."),
    db: AsyncSession = Depends(get_db),
):
    blogs = await blog_service.list_blogs(db, pagination.page, pagination.per_page, sort)
    return Envelope(data=blogs, message="Blogs retrieved successfully")


@router.get("/blogs/search", response_model=Envelope[Page[BlogSummary]])
async def search_blogs(
    pagination: PaginationParams = Depends(),
    search: str = Query("", max_length=200),
    search_filter: SearchFilter = Query(SearchFilter.ALL, alias="filter"),
    db: AsyncSession = Depends(get_db),
):
    blogs = await blog_service.search_blogs(
        db, pagination.page, pagination.per_page, search, search_filter
    )
    return Envelope(data=blogs, message="Blogs retrieved successfully")


@router.get("/blog/{blog_id}", response_model=Envelope[BlogDetail])
async def get_blog(
    blog_id: int = Path(ge=1, le=MAX_ID),
    viewer_id: int | None = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    blog = await blog_service.get_blog_detail(db, blog_id, viewer_id)
    return Envelope(data=blog, message="Blog fetched successfully")


@router.post("/blogs", status_code=201, response_model=Envelope[BlogResult])
async def create_blog(
    judul: str = Form(""),
    content: str = Form(""),
    thumbnail: UploadFile | None = File(None),
    user_id: int = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    blog = await blog_service.create_blog(db, settings, user_id, judul, content, thumbnail)
    return Envelope(data=blog, message="Blog created successfully")


@router.delete("/blogs/{blog_id}", response_model=Envelope[BlogDeleted])
async def delete_blog(
    blog_id: int = Path(ge=1, le=MAX_ID),
    user_id: int = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    deleted = await blog_service.delete_blog(db, settings, blog_id, user_id)
    return Envelope(data=deleted, message="Blog deleted successfully")
