from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Callable, Generic, Literal, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

T = TypeVar("T")


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


# bcrypt hashes at most 72 bytes; longer input is rejected, not truncated.
MAX_PASSWORD_BYTES = 72

# Ids are int4 columns on PostgreSQL.
MAX_ID = 2**31 - 1


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


Email = Annotated[EmailStr, AfterValidator(normalize_email)]


# --- Envelope / pagination ---

class Envelope(BaseModel, Generic[T]):
    status: Literal["success", "error"] = "success"
    data: T | None = None
    message: str = ""


class Page(BaseModel, Generic[T]):
    """One pagination window plus the metadata describing it."""

    data: list[T]
    current_page: int
    from_: int = Field(alias="from")
    to: int
    last_page: int
    per_page: int
    total: int
    model_config = ConfigDict(populate_by_name=True)

    def map(self, fn: Callable[[Any], Any]) -> "Page":
        return self.model_copy(update={"data": [fn(item) for item in self.data]})


# --- User ---

class SignupRequest(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    email: Email
    password: str = Field(min_length=6, max_length=72)

    _password_bytes = field_validator("password")(_check_password_bytes)


class LoginRequest(BaseModel):
    email: str = Field(max_length=255)
    password: str = Field(min_length=1, max_length=72)

    _password_bytes = field_validator("password")(_check_password_bytes)

    @field_validator("email")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_email(value)


class UpdateUserRequest(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    email: Email
    birthdate: date | None = None
    bio: str | None = Field(None, max_length=1000)


class UserResult(BaseModel):
    id: int
    name: str
    email: str
    birthdate: date | None = None
    bio: str | None = None
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class AuthorResult(BaseModel):
    id: int
    name: str
    email: str
    model_config = ConfigDict(from_attributes=True)


class TokenResult(BaseModel):
    token: str


# --- Comment ---

class CommentRequest(BaseModel):
    blog_id: int = Field(gt=0, le=MAX_ID)
    comment: str = Field(min_length=5, max_length=250)


class CommentResult(BaseModel):
    id: int
    comment: str
    blog_id: int
    user_id: int
    user_name: str | None = None
    created_at: datetime | None = None


class CommentList(BaseModel):
    blog_id: int
    comments: list[CommentResult] = []
    count: int


# --- Blog ---

class BlogResult(BaseModel):
    id: int
    judul: str
    content: str
    thumbnail: str
    user_id: int
    created_at: datetime | None = None


class BlogSummary(BlogResult):
    author: AuthorResult | None = None
    like_count: int = 0
    comment_count: int = 0


class LikesInfo(BaseModel):
    count: int
    user_liked: bool


class BlogDetail(BlogResult):
    author: AuthorResult | None = None
    likes: LikesInfo
    comments: list[CommentResult] = []


class BlogDeleted(BaseModel):
    id: int


# --- Like ---

class LikeRequest(BaseModel):
    blog_id: int = Field(gt=0, le=MAX_ID)


class LikeToggleResult(BaseModel):
    blog_id: int
    liked: bool
    like_count: int


class LikeStatusResult(BaseModel):
    blog_id: int
    like_count: int
    liked_by_user: bool
