"""
Like toggle tests: the liked/unliked involution over HTTP, the status
endpoint, and the conflict-tolerant insert at the service layer.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import NotFoundError
from blogapi.models import Blog, Like, User
from blogapi.services import like_service


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_user_and_blog(db: AsyncSession) -> tuple[int, int]:
    user = User(name="Liker", email="liker@example.com", password="x")
    db.add(user)
    await db.flush()
    blog = Blog(title="Likeable", content="c", thumbnail="/uploads/t.png", user_id=user.id)
    db.add(blog)
    await db.flush()
    return user.id, blog.id


async def _like_rows(db: AsyncSession, user_id: int, blog_id: int) -> int:
    q = select(func.count(Like.id)).where(Like.user_id == user_id, Like.blog_id == blog_id)
    return (await db.execute(q)).scalar_one()


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_like_then_unlike(async_client: AsyncClient, register, create_blog):
    _, headers = await register()
    blog_id = await create_blog(headers)

    resp = await async_client.post("/like", json={"blog_id": blog_id}, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["message"] == "Blog liked successfully"
    assert resp.json()["data"] == {"blog_id": blog_id, "liked": True, "like_count": 1}

    resp = await async_client.post("/like", json={"blog_id": blog_id}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Blog unliked successfully"
    assert resp.json()["data"] == {"blog_id": blog_id, "liked": False, "like_count": 0}


@pytest.mark.asyncio
async def test_likes_from_different_users_accumulate(async_client: AsyncClient, register, create_blog):
    _, ann = await register("Ann", "ann@x.com")
    _, bob = await register("Bob", "bob@x.com")
    blog_id = await create_blog(ann)

    await async_client.post("/like", json={"blog_id": blog_id}, headers=ann)
    resp = await async_client.post("/like", json={"blog_id": blog_id}, headers=bob)
    assert resp.json()["data"]["like_count"] == 2

    # Bob's unlike leaves Ann's like in place.
    resp = await async_client.post("/like", json={"blog_id": blog_id}, headers=bob)
    assert resp.json()["data"]["like_count"] == 1


@pytest.mark.asyncio
async def test_like_unknown_blog(async_client: AsyncClient, register):
    _, headers = await register()
    resp = await async_client.post("/like", json={"blog_id": 99999}, headers=headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Blog not found"


@pytest.mark.asyncio
async def test_like_requires_auth(async_client: AsyncClient):
    resp = await async_client.post("/like", json={"blog_id": 1})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_like_missing_blog_id(async_client: AsyncClient, register):
    _, headers = await register()
    resp = await async_client.post("/like", json={}, headers=headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_like_status(async_client: AsyncClient, register, create_blog):
    _, ann = await register("Ann", "ann@x.com")
    _, bob = await register("Bob", "bob@x.com")
    blog_id = await create_blog(ann)
    await async_client.post("/like", json={"blog_id": blog_id}, headers=ann)

    resp = await async_client.get(f"/like/{blog_id}", headers=ann)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"blog_id": blog_id, "like_count": 1, "liked_by_user": True}

    resp = await async_client.get(f"/like/{blog_id}", headers=bob)
    assert resp.json()["data"]["liked_by_user"] is False


@pytest.mark.asyncio
async def test_like_status_unknown_blog(async_client: AsyncClient, register):
    _, headers = await register()
    resp = await async_client.get("/like/99999", headers=headers)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Service layer
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_toggle_is_an_involution(db_session: AsyncSession):
    user_id, blog_id = await _create_user_and_blog(db_session)
    before = await like_service.count_likes(db_session, blog_id)

    first = await like_service.toggle_like(db_session, user_id, blog_id)
    second = await like_service.toggle_like(db_session, user_id, blog_id)

    assert first.liked is True
    assert second.liked is False
    assert await like_service.count_likes(db_session, blog_id) == before
    assert await _like_rows(db_session, user_id, blog_id) == 0


@pytest.mark.asyncio
async def test_insert_tolerates_existing_row(db_session: AsyncSession):
    """A racing insert that finds the pair already liked is not an error."""
    user_id, blog_id = await _create_user_and_blog(db_session)
    db_session.add(Like(user_id=user_id, blog_id=blog_id))
    await db_session.flush()

    inserted = await like_service._insert_like(db_session, user_id, blog_id)

    assert inserted is False
    assert await _like_rows(db_session, user_id, blog_id) == 1


@pytest.mark.asyncio
async def test_unique_constraint_on_user_blog_pair(db_session: AsyncSession):
    user_id, blog_id = await _create_user_and_blog(db_session)
    db_session.add(Like(user_id=user_id, blog_id=blog_id))
    await db_session.flush()

    db_session.add(Like(user_id=user_id, blog_id=blog_id))
    with pytest.raises(IntegrityError):
        await db_session.flush()


@pytest.mark.asyncio
async def test_toggle_unknown_blog_raises(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await like_service.toggle_like(db_session, 1, 99999)


@pytest.mark.asyncio
async def test_has_liked_anonymous(db_session: AsyncSession):
    _, blog_id = await _create_user_and_blog(db_session)
    assert await like_service.has_liked(db_session, None, blog_id) is False


@pytest.mark.asyncio
async def test_insert_savepoint_path_tolerates_existing_row(db_session: AsyncSession, monkeypatch):
    """Dialects without ON CONFLICT fall back to a SAVEPOINT around the insert."""
    monkeypatch.setattr(like_service, "_ON_CONFLICT_INSERTS", {})
    user_id, blog_id = await _create_user_and_blog(db_session)

    assert await like_service._insert_like(db_session, user_id, blog_id) is True
    assert await like_service._insert_like(db_session, user_id, blog_id) is False

    # The failed insert rolled back only its savepoint.
    assert await _like_rows(db_session, user_id, blog_id) == 1


@pytest.mark.asyncio
async def test_toggle_through_savepoint_path(db_session: AsyncSession, monkeypatch):
    monkeypatch.setattr(like_service, "_ON_CONFLICT_INSERTS", {})
    user_id, blog_id = await _create_user_and_blog(db_session)

    assert (await like_service.toggle_like(db_session, user_id, blog_id)).liked is True
    assert (await like_service.toggle_like(db_session, user_id, blog_id)).liked is False
    assert await _like_rows(db_session, user_id, blog_id) == 0


# ---------------------------------------------------------------------------
# Id bounds
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_like_blog_id_out_of_range(async_client: AsyncClient, register):
    _, headers = await register()
    resp = await async_client.post("/like", json={"blog_id": 99999999999}, headers=headers)
    assert resp.status_code == 422
    assert "blog_id" in resp.json()["data"]


@pytest.mark.asyncio
async def test_like_status_id_out_of_range(async_client: AsyncClient, register):
    _, headers = await register()
    resp = await async_client.get(f"/like/{2**31}", headers=headers)
    assert resp.status_code == 400
