from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.config import Settings
from blogapi.database import get_db
from blogapi.dependencies import get_settings, get_token_service
from blogapi.schemas import Envelope, LoginRequest, SignupRequest, TokenResult, UserResult
from blogapi.security import TokenService
from blogapi.services import user_service

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/signup", response_model=Envelope[UserResult])
async def signup(data: SignupRequest, db: AsyncSession = Depends(get_db)):
    user = await user_service.signup(db, data)
    return Envelope(data=user, message="User created successfully")


@router.post("/login", response_model=Envelope[TokenResult])
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    user = await user_service.authenticate(db, data)
    token = tokens.issue(user.id)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=settings.TOKEN_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.APP_ENV == "production",
    )
    return Envelope(data=TokenResult(token=token), message="Login successful")


@router.post("/logout", response_model=Envelope[None])
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return Envelope(message="Logout successful")
