"""
User endpoint tests: current-user detail, profile update and the
paginated user list.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import ConflictError, NotFoundError
from blogapi.schemas import SignupRequest, UpdateUserRequest
from blogapi.services import user_service


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_current_user(async_client: AsyncClient, register):
    user_id, headers = await register()
    resp = await async_client.get("/api/users", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "User retrieved successfully"
    assert body["data"]["id"] == user_id
    assert body["data"]["email"] == "ann@example.com"
    assert body["data"]["birthdate"] is None
    assert "password" not in body["data"]


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_user(async_client: AsyncClient, register):
    _, headers = await register()
    resp = await async_client.put("/api/users/update", json={
        "name": "Ann Smith",
        "email": "ann.smith@example.com",
        "birthdate": "1990-04-01",
        "bio": "Writes about tea.",
    }, headers=headers)
    assert resp.status_code == 200
    user = resp.json()["data"]
    assert user["name"] == "Ann Smith"
    assert user["email"] == "ann.smith@example.com"
    assert user["birthdate"] == "1990-04-01"
    assert user["bio"] == "Writes about tea."

    # The new email is the login from now on.
    resp = await async_client.post("/api/login", json={"email": "ann.smith@example.com", "password": "secret1"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_update_user_keeping_own_email(async_client: AsyncClient, register):
    _, headers = await register()
    resp = await async_client.put("/api/users/update", json={
        "name": "Annie", "email": "ann@example.com",
    }, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Annie"


@pytest.mark.asyncio
async def test_update_user_duplicate_email(async_client: AsyncClient, register):
    await register("Bob", "bob@x.com")
    _, headers = await register("Ann", "ann@x.com")
    resp = await async_client.put("/api/users/update", json={
        "name": "Ann", "email": "bob@x.com",
    }, headers=headers)
    assert resp.status_code == 422
    assert resp.json()["message"] == "Email already exists"


@pytest.mark.asyncio
async def test_update_user_validation(async_client: AsyncClient, register):
    _, headers = await register()
    resp = await async_client.put("/api/users/update", json={"name": "Ann"}, headers=headers)
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_users_paginated(async_client: AsyncClient, register):
    headers = None
    for i in range(3):
        _, headers = await register(f"User {i}", f"user{i}@x.com")

    resp = await async_client.get("/api/users/list", params={"page": 1, "perPage": 2}, headers=headers)
    assert resp.status_code == 200
    page = resp.json()["data"]
    assert page["total"] == 3
    assert page["last_page"] == 2
    assert [u["email"] for u in page["data"]] == ["user0@x.com", "user1@x.com"]


@pytest.mark.asyncio
async def test_list_users_requires_auth(async_client: AsyncClient):
    resp = await async_client.get("/api/users/list")
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Service layer
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_signup_conflict_via_service(db_session: AsyncSession):
    data = SignupRequest(name="Ann", email="svc@example.com", password="secret1")
    await user_service.signup(db_session, data)
    with pytest.raises(ConflictError):
        await user_service.signup(db_session, data)


@pytest.mark.asyncio
async def test_update_missing_user_via_service(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await user_service.update_user(
            db_session, 99999, UpdateUserRequest(name="Nobody", email="nobody@example.com")
        )
