"""
Tests for the referral code backfill script.
"""
import pytest
from unittest.mock import patch
from fastapi import HTTPException
from sqlalchemy import select

import backfill_referral_codes
from db.models.user import User as UserModel


class TestBackfillReferralCodes:

    @pytest.mark.asyncio
    async def test_assigns_codes_to_users_without_one(self, session_factory, db_session, make_user):
        keeper = await make_user(referral_code="KEEP1")
        await make_user()
        await make_user()

        with patch.object(backfill_referral_codes, "SessionLocal", session_factory):
            summary = await backfill_referral_codes.backfill_referral_codes()

        assert summary == {"updated": 2, "failed": 0}
        result = await db_session.execute(select(UserModel.id, UserModel.referral_code))
        codes = dict(result.all())
        assert codes[keeper.id] == "KEEP1"
        assert all(code and len(code) == 5 for code in codes.values())
        assert len(set(codes.values())) == 3

    @pytest.mark.asyncio
    async def test_nothing_to_do(self, session_factory, make_user):
        await make_user(referral_code="DONE1")
        with patch.object(backfill_referral_codes, "SessionLocal", session_factory):
            assert await backfill_referral_codes.backfill_referral_codes() == {"updated": 0, "failed": 0}

    @pytest.mark.asyncio
    async def test_failures_are_counted_and_skipped(self, session_factory, make_user):
        await make_user()
        await make_user()

        failure = HTTPException(status_code=500, detail="Failed to generate unique referral code")
        with patch.object(backfill_referral_codes, "SessionLocal", session_factory), \
             patch.object(backfill_referral_codes, "get_referral_code", side_effect=[failure, "OKAY1"]):
            summary = await backfill_referral_codes.backfill_referral_codes()

        assert summary == {"updated": 1, "failed": 1}
