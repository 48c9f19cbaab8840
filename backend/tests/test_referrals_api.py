"""
API tests for the /referrals endpoints.
"""
import pytest
from httpx import AsyncClient


class TestReferralCodeEndpoint:

    @pytest.mark.asyncio
    async def test_requires_auth(self, async_client: AsyncClient):
        response = await async_client.get("/referrals/me/code")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_invalid_token(self, async_client: AsyncClient):
        response = await async_client.get("/referrals/me/code", headers={"Authorization": "Bearer not.a.token"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_returns_same_code_every_time(self, async_client: AsyncClient, make_user, auth_headers):
        user = await make_user()
        headers = auth_headers(user)

        first = await async_client.get("/referrals/me/code", headers=headers)
        second = await async_client.get("/referrals/me/code", headers=headers)

        assert first.status_code == 200
        code = first.json()["referralCode"]
        assert len(code) == 5
        assert second.json() == {"referralCode": code}
        assert first.headers["cache-control"].startswith("no-store")


class TestApplyReferralEndpoint:

    @pytest.mark.asyncio
    async def test_apply_then_status(self, async_client: AsyncClient, make_user, auth_headers):
        referrer = await make_user(referral_code="AB12C")
        applicant = await make_user()
        headers = auth_headers(applicant)

        response = await async_client.post("/referrals/me/apply", json={"referralCode": "AB12C"}, headers=headers)
        assert response.status_code == 200
        assert response.json() == {"referrerUsername": referrer.username}

        status = await async_client.get("/referrals/me/status", headers=headers)
        assert status.json() == {"hasBeenReferred": True, "referrerUsername": referrer.username}

    @pytest.mark.asyncio
    async def test_apply_twice_is_forbidden(self, async_client: AsyncClient, make_user, auth_headers):
        await make_user(referral_code="AB12C")
        applicant = await make_user()
        headers = auth_headers(applicant)

        await async_client.post("/referrals/me/apply", json={"referralCode": "AB12C"}, headers=headers)
        response = await async_client.post("/referrals/me/apply", json={"referralCode": "AB12C"}, headers=headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "User has already been referred."

    @pytest.mark.asyncio
    async def test_unknown_code_is_bad_request(self, async_client: AsyncClient, make_user, auth_headers):
        applicant = await make_user()
        response = await async_client.post(
            "/referrals/me/apply", json={"referralCode": "ZZZZZ"}, headers=auth_headers(applicant)
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid referral code."

    @pytest.mark.asyncio
    async def test_own_code_is_forbidden(self, async_client: AsyncClient, make_user, auth_headers):
        applicant = await make_user(referral_code="MINE1")
        response = await async_client.post(
            "/referrals/me/apply", json={"referralCode": "MINE1"}, headers=auth_headers(applicant)
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Cannot apply your own referral code."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"referralCode": "AB12"}, {"referralCode": "AB12CD"}, {}])
    async def test_code_must_be_five_characters(self, async_client: AsyncClient, make_user, auth_headers, body):
        applicant = await make_user()
        response = await async_client.post("/referrals/me/apply", json=body, headers=auth_headers(applicant))
        assert response.status_code == 400


class TestStatusAndHistoryEndpoints:

    @pytest.mark.asyncio
    async def test_status_for_unreferred_user_omits_username(self, async_client: AsyncClient, make_user, auth_headers):
        user = await make_user()
        response = await async_client.get("/referrals/me/status", headers=auth_headers(user))
        assert response.status_code == 200
        assert response.json() == {"hasBeenReferred": False}

    @pytest.mark.asyncio
    async def test_history_lists_referred_users(self, async_client: AsyncClient, make_user, auth_headers):
        referrer = await make_user(referral_code="HIST1")
        referred = await make_user()
        await async_client.post("/referrals/me/apply", json={"referralCode": "HIST1"}, headers=auth_headers(referred))

        response = await async_client.get("/referrals/me/history", headers=auth_headers(referrer))

        assert response.status_code == 200
        history = response.json()
        assert len(history) == 1
        assert history[0]["referrerId"] == referrer.id
        assert history[0]["referredUserId"] == referred.id
        assert history[0]["referredUser"]["username"] == referred.username
        assert "createdAt" in history[0]


class TestLeaderboardEndpoint:

    @pytest.mark.asyncio
    async def test_public_and_paginated(self, async_client: AsyncClient, make_user, auth_headers):
        star = await make_user(referral_code="STAR1")
        await make_user(referral_code="DIM01")
        for code, n in (("STAR1", 2), ("DIM01", 1)):
            for _ in range(n):
                referred = await make_user()
                await async_client.post("/referrals/me/apply", json={"referralCode": code}, headers=auth_headers(referred))

        response = await async_client.get("/referrals/leaderboard")

        assert response.status_code == 200
        body = response.json()
        assert [entry["referralCount"] for entry in body["data"]] == [2, 1]
        assert body["data"][0] == {
            "userId": star.id,
            "username": star.username,
            "displayName": star.display_name,
            "avatarUrl": star.avatar_url,
            "referralCount": 2,
        }
        assert body["meta"] == {"total": 2, "page": 1, "limit": 20, "totalPages": 1}

    @pytest.mark.asyncio
    async def test_out_of_range_params_are_clamped(self, async_client: AsyncClient):
        response = await async_client.get("/referrals/leaderboard", params={"page": 0, "limit": 1000})
        assert response.status_code == 200
        assert response.json()["meta"] == {"total": 0, "page": 1, "limit": 100, "totalPages": 0}

    @pytest.mark.asyncio
    async def test_zero_limit_is_clamped_to_one(self, async_client: AsyncClient):
        response = await async_client.get("/referrals/leaderboard", params={"limit": 0})
        assert response.status_code == 200
        assert response.json()["meta"]["limit"] == 1
