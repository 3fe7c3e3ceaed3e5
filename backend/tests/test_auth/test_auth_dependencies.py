"""Tests for auth dependencies: get_current_user edge cases."""

import uuid
from datetime import timedelta

from httpx import AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import create_access_token, create_user, headers_for
from marketplace.auth.jwt import decode_token
from marketplace.config import settings
from marketplace.models.user import User


class TestGetCurrentUser:
    """Test get_current_user dependency via the /users/me endpoint."""

    async def test_missing_header_rejected(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me")
        assert response.status_code == 401

    async def test_expired_token_rejected(self, client: AsyncClient, test_user: User):
        token = create_access_token({"sub": str(test_user.id)}, expires_delta=timedelta(seconds=-1))
        response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_invalid_token_format(self, client: AsyncClient):
        headers = {"Authorization": "Bearer not.a.valid.jwt"}
        response = await client.get("/api/v1/users/me", headers=headers)
        assert response.status_code == 401

    async def test_wrong_token_type_rejected(self, client: AsyncClient, test_user: User):
        token = jwt.encode(
            {"sub": str(test_user.id), "type": "refresh"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_non_uuid_subject_rejected(self, client: AsyncClient):
        token = create_access_token({"sub": "user-42"})
        response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_unknown_subject_is_provisioned(self, client: AsyncClient, db_session: AsyncSession):
        user_id = uuid.uuid4()
        token = create_access_token(
            {"sub": str(user_id), "email": "new@example.com", "name": "New Person"}
        )
        response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["email"] == "new@example.com"
        user = await db_session.get(User, user_id)
        assert user is not None
        assert user.name == "New Person"

    async def test_inactive_user_forbidden(self, client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, is_active=False)
        response = await client.get("/api/v1/users/me", headers=headers_for(user))
        assert response.status_code == 403


class TestAccessToken:
    def test_round_trip_claims(self):
        token = create_access_token({"sub": "abc"})
        payload = decode_token(token)
        assert payload["sub"] == "abc"
        assert payload["type"] == "access"
        assert payload["exp"] > payload["iat"]
