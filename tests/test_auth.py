"""
Tests for authentication endpoints.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from qualinex.core.errors import ConflictError
from qualinex.core.security import create_access_token
from qualinex.models.user import User, UserCreate
from qualinex.services import users
from tests.helpers import TEST_PASSWORD, auth


@pytest.mark.asyncio
async def test_create_first_admin(client: AsyncClient):
    """Test creating first admin user."""
    response = await client.post(
        "/api/v1/auth/create-admin",
        json={
            "email": "newadmin@example.com",
            "password": "Securepass1",
            "full_name": "New Admin",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]["user"]
    assert data["email"] == "newadmin@example.com"
    assert data["role"] == "admin"
    assert "hashed_password" not in data


@pytest.mark.asyncio
async def test_create_admin_refused_once_admin_exists(client: AsyncClient, admin_user: User):
    response = await client.post(
        "/api/v1/auth/create-admin",
        json={"email": "late@example.com", "password": "Securepass1", "full_name": "Late Admin"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_register_normalizes_email(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "  Jane@Example.COM ", "password": "Goodpass1", "full_name": " Jane "},
    )

    assert response.status_code == 201
    data = response.json()["data"]["user"]
    assert data["email"] == "jane@example.com"
    assert data["full_name"] == "Jane"
    assert data["role"] == "user"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, regular_user: User):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "USER@example.com", "password": "Goodpass1", "full_name": "Copy"},
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Email already registered"


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "weak@example.com", "password": "alllowercase", "full_name": "Weak"},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["field"] == "password"


@pytest.mark.asyncio
async def test_register_invalid_email(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "not-an-email", "password": "Goodpass1", "full_name": "Nobody"},
    )

    assert response.status_code == 400
    fields = [error["field"] for error in response.json()["errors"]]
    assert "email" in fields


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, admin_user: User):
    """Test successful login."""
    response = await client.post(
        "/api/v1/auth/login",
        data={"username": "admin@example.com", "password": TEST_PASSWORD},
    )

    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_login_stamps_last_login(client: AsyncClient, regular_user: User):
    assert regular_user.last_login is None

    response = await client.post(
        "/api/v1/auth/login",
        data={"username": "user@example.com", "password": TEST_PASSWORD},
    )
    me = await client.get("/api/v1/auth/me", headers=auth(response.json()["access_token"]))

    assert me.json()["data"]["user"]["last_login"] is not None


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, admin_user: User):
    """Test login with wrong password."""
    response = await client.post(
        "/api/v1/auth/login",
        data={"username": "admin@example.com", "password": "wrongpassword"},
    )

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_login_nonexistent_user(client: AsyncClient):
    """Test login with non-existent user."""
    response = await client.post(
        "/api/v1/auth/login",
        data={"username": "nobody@example.com", "password": "password"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_federated_user_cannot_password_login(client: AsyncClient, federated_user: User):
    response = await client.post(
        "/api/v1/auth/login",
        data={"username": "fed@example.com", "password": ""},
    )

    assert response.status_code in (400, 401)


@pytest.mark.asyncio
async def test_inactive_user_cannot_login(client: AsyncClient, inactive_admin: User):
    response = await client.post(
        "/api/v1/auth/login",
        data={"username": "retired@example.com", "password": TEST_PASSWORD},
    )

    assert response.status_code == 403
    assert response.json()["reason"] == "inactive"


@pytest.mark.asyncio
async def test_get_current_user(client: AsyncClient, admin_token: str):
    """Test getting current user info."""
    response = await client.get("/api/v1/auth/me", headers=auth(admin_token))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]["user"]
    assert data["email"] == "admin@example.com"
    assert data["role"] == "admin"


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient, user_token: str):
    response = await client.put(
        "/api/v1/auth/profile",
        json={"full_name": "Renamed User", "avatar": "https://cdn.example.com/a.png"},
        headers=auth(user_token),
    )

    assert response.status_code == 200
    assert response.json()["data"]["user"]["full_name"] == "Renamed User"

    profile = await client.get("/api/v1/auth/profile", headers=auth(user_token))
    assert profile.json()["data"]["user"]["avatar"] == "https://cdn.example.com/a.png"


@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, user_token: str):
    response = await client.put(
        "/api/v1/auth/change-password",
        json={"current_password": TEST_PASSWORD, "new_password": "Brandnew2"},
        headers=auth(user_token),
    )
    assert response.status_code == 200

    old = await client.post(
        "/api/v1/auth/login",
        data={"username": "user@example.com", "password": TEST_PASSWORD},
    )
    new = await client.post(
        "/api/v1/auth/login",
        data={"username": "user@example.com", "password": "Brandnew2"},
    )
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_change_password_wrong_current(client: AsyncClient, user_token: str):
    response = await client.put(
        "/api/v1/auth/change-password",
        json={"current_password": "Nottheone1", "new_password": "Brandnew2"},
        headers=auth(user_token),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Current password is incorrect"


@pytest.mark.asyncio
async def test_access_without_token(client: AsyncClient):
    """Test accessing protected route without token."""
    response = await client.get("/api/v1/auth/me")

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_access_with_invalid_token(client: AsyncClient):
    """Test accessing protected route with invalid token."""
    response = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": "Bearer invalidtoken"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_disabled_account_token_is_refused(client: AsyncClient, inactive_admin: User):
    token = create_access_token(data={"sub": inactive_admin.id, "email": inactive_admin.email})

    response = await client.get("/api/v1/auth/me", headers=auth(token))

    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "message": "User account is disabled",
        "reason": "inactive",
    }


@pytest.mark.asyncio
async def test_concurrent_duplicate_registration_is_a_conflict(
    test_db: AsyncSession,
    regular_user: User,
    monkeypatch,
):
    async def not_found(session, email):
        return None

    # Both registrations passed the lookup before either committed
    monkeypatch.setattr(users, "get_user_by_email", not_found)

    with pytest.raises(ConflictError) as exc_info:
        await users.register_user(
            test_db,
            UserCreate(email="user@example.com", password="Goodpass1", full_name="Twin"),
        )

    assert exc_info.value.message == "Email already registered"
