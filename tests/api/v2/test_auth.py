"""
Tests for the auth API endpoints (/api/v2/auth).
"""
from datetime import timedelta

import pytest
from httpx import AsyncClient
from jose import jwt

from app.api.deps import create_access_token, verify_password, get_password_hash
from app.config import settings
from app.models.user import User

AUTH_PREFIX = "/api/v2/auth"


class TestPasswordHashing:

    def test_hash_roundtrip(self):
        hashed = get_password_hash("s3cret-password")
        assert hashed != "s3cret-password"
        assert verify_password("s3cret-password", hashed)
        assert not verify_password("wrong-password", hashed)


class TestAccessToken:

    def test_token_carries_subject_and_expiry(self):
        token = create_access_token({"sub": "42", "email": "a@example.com"})
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

        assert payload["sub"] == "42"
        assert "exp" in payload


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_creates_user(self, client: AsyncClient):
        response = await client.post(
            f"{AUTH_PREFIX}/register",
            json={
                "email": "new@example.com",
                "password": "longenough",
                "name": "New Owner",
                "company": "Widgets Ltd",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new@example.com"
        assert data["name"] == "New Owner"
        assert data["company"] == "Widgets Ltd"
        assert "hashed_password" not in data

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, client: AsyncClient, test_user: User):
        response = await client.post(
            f"{AUTH_PREFIX}/register",
            json={"email": test_user.email, "password": "longenough", "name": "Dup"},
        )

        assert response.status_code == 409
        assert response.json()["code"] == "RES_002"

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, client: AsyncClient):
        response = await client.post(
            f"{AUTH_PREFIX}/register",
            json={"email": "short@example.com", "password": "short", "name": "Short"},
        )

        assert response.status_code == 422
        assert response.headers["content-type"].startswith("application/problem+json")

    @pytest.mark.asyncio
    async def test_registration_is_rate_limited_per_ip(self, client: AsyncClient):
        for i in range(3):
            response = await client.post(
                f"{AUTH_PREFIX}/register",
                json={"email": f"user{i}@example.com", "password": "longenough", "name": "U"},
            )
            assert response.status_code == 201

        response = await client.post(
            f"{AUTH_PREFIX}/register",
            json={"email": "user9@example.com", "password": "longenough", "name": "U"},
        )

        assert response.status_code == 429
        assert response.json()["code"] == "BIZ_002"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_returns_token_and_cookie(self, client: AsyncClient, test_user: User):
        response = await client.post(
            f"{AUTH_PREFIX}/login",
            json={"email": test_user.email, "password": "testpassword123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"] == data["token"]
        assert "session=" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_wrong_password(self, client: AsyncClient, test_user: User):
        response = await client.post(
            f"{AUTH_PREFIX}/login",
            json={"email": test_user.email, "password": "not-the-password"},
        )

        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "AUTH_001"
        assert body["detail"] == "Incorrect email or password"

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client: AsyncClient):
        response = await client.post(f"{AUTH_PREFIX}/logout")

        assert response.status_code == 200
        assert 'session=""' in response.headers["set-cookie"]


class TestMe:

    @pytest.mark.asyncio
    async def test_bearer_token(self, authenticated_client: AsyncClient, test_user: User):
        response = await authenticated_client.get(f"{AUTH_PREFIX}/me")

        assert response.status_code == 200
        assert response.json()["user"]["id"] == str(test_user.id)

    @pytest.mark.asyncio
    async def test_session_cookie(self, client: AsyncClient, test_user: User):
        token = create_access_token({"sub": str(test_user.id), "email": test_user.email})
        client.cookies.set("session", token)

        response = await client.get(f"{AUTH_PREFIX}/me")

        assert response.status_code == 200
        assert response.json()["user"]["email"] == test_user.email

    @pytest.mark.asyncio
    async def test_missing_credentials(self, client: AsyncClient):
        response = await client.get(f"{AUTH_PREFIX}/me")

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_001"

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient, test_user: User):
        token = create_access_token(
            {"sub": str(test_user.id)}, expires_delta=timedelta(minutes=-5)
        )

        response = await client.get(
            f"{AUTH_PREFIX}/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_inactive_user(self, client: AsyncClient, test_user: User, test_db):
        test_user.is_active = False
        await test_db.commit()
        token = create_access_token({"sub": str(test_user.id)})

        response = await client.get(
            f"{AUTH_PREFIX}/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "User account is disabled"
