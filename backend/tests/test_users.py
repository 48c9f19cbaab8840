"""
Tests for the current-user endpoints.
"""
import pytest
from httpx import AsyncClient


class TestCurrentUser:

    @pytest.mark.asyncio
    async def test_me_requires_auth(self, async_client: AsyncClient):
        response = await async_client.get("/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_exposes_referral_code_once_assigned(self, async_client: AsyncClient, make_user, auth_headers):
        user = await make_user()
        headers = auth_headers(user)

        before = await async_client.get("/me", headers=headers)
        assert before.status_code == 200
        assert before.json()["username"] == user.username
        assert before.json()["referralCode"] is None

        code = (await async_client.get("/referrals/me/code", headers=headers)).json()["referralCode"]

        after = await async_client.get("/me", headers=headers)
        assert after.json()["referralCode"] == code

    @pytest.mark.asyncio
    async def test_token_for_deleted_user_is_rejected(self, async_client: AsyncClient, make_user, auth_headers, db_session):
        user = await make_user()
        headers = auth_headers(user)
        user.is_active = False
        await db_session.commit()

        response = await async_client.get("/me", headers=headers)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_badges_empty_for_new_user(self, async_client: AsyncClient, make_user, auth_headers):
        user = await make_user()
        response = await async_client.get("/me/badges", headers=auth_headers(user))
        assert response.status_code == 200
        assert response.json() == []


class TestRequestContext:

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, async_client: AsyncClient):
        response = await async_client.get("/", headers={"X-Request-ID": "req-abc123"})
        assert response.status_code == 200
        assert response.headers["x-request-id"] == "req-abc123"

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, async_client: AsyncClient):
        response = await async_client.get("/")
        assert response.headers["x-request-id"]
