from db.session import get_or_use_session
from db.models.user import User as UserModel
from db.models.referral import Referral
from config import config
from fastapi import HTTPException
from sqlalchemy import select, func, distinct
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload
from typing import Optional
import logging
import math
import secrets
from utils.db import is_unique_violation
from utils.timing import timeit
from services import events

logger = logging.getLogger(__name__)


def generate_referral_code() -> str:
    """Generate a random referral code from the configured alphabet"""
    alphabet = config.get_referral_code_alphabet()
    return ''.join(secrets.choice(alphabet) for _ in range(config.get_referral_code_length()))


def normalize_referral_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


async def _get_user(db: AsyncSession, user_id: str) -> Optional[UserModel]:
    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    return result.scalars().first()


async def _get_user_by_code(db: AsyncSession, code: str) -> Optional[UserModel]:
    result = await db.execute(select(UserModel).where(UserModel.referral_code == code))
    return result.scalars().first()


@timeit("get_referral_code")
async def get_referral_code(user_id: str, db: AsyncSession = None) -> str:
    """Return the user's referral code, assigning one on first request."""
    async with get_or_use_session(db) as _db:
        user = await _get_user(_db, user_id)
        if not user:
            logger.error(f"User not found for ID: {user_id}")
            raise HTTPException(status_code=404, detail="User not found")

        if user.referral_code:
            return user.referral_code

        return await _generate_and_assign_referral_code(_db, user_id)


async def _generate_and_assign_referral_code(db: AsyncSession, user_id: str) -> str:
    # No wider fallback once the attempts are spent; the caller sees a 500
    max_attempts = config.get_referral_max_attempts()
    attempts = 0

    while attempts < max_attempts:
        referral_code = generate_referral_code()

        existing = await db.execute(select(UserModel.id).where(UserModel.referral_code == referral_code))
        if existing.first() is not None:
            attempts += 1
            logger.warning(f"Referral code collision detected: {referral_code}. Attempt {attempts}")
            continue

        user = await _get_user(db, user_id)
        user.referral_code = referral_code
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if not is_unique_violation(e):
                raise
            # Either another request assigned this user a code, or the code was taken meanwhile
            user = await _get_user(db, user_id)
            if user is not None and user.referral_code:
                return user.referral_code
            attempts += 1
            logger.warning(f"Referral code collision on save: {referral_code}. Attempt {attempts}")
            continue

        logger.info(f"Assigned referral code {referral_code} to user {user_id}")
        return referral_code

    logger.error(
        f"Failed to generate a unique referral code for user {user_id} after {max_attempts} attempts."
    )
    raise HTTPException(status_code=500, detail="Failed to generate unique referral code")


@timeit("process_referral")
async def process_referral(referral_code: str, referred_user_id: str, db: AsyncSession = None) -> Optional[Referral]:
    """Record that ``referred_user_id`` was referred by the owner of ``referral_code``.

    Invalid codes, self-referrals and already-referred users are logged and
    ignored. Returns the new referral, or None when nothing was recorded.
    """
    referral_code = normalize_referral_code(referral_code)
    if not referral_code:
        return None

    logger.info(f"Processing referral: code={referral_code}, newUserId={referred_user_id}")

    async with get_or_use_session(db) as _db:
        referrer = await _get_user_by_code(_db, referral_code)
        if not referrer:
            logger.warning(f"Referral code {referral_code} not found for user {referred_user_id}.")
            return None

        referrer_id = referrer.id
        if referrer_id == referred_user_id:
            logger.warning(f"User {referred_user_id} attempted to refer themselves with code {referral_code}.")
            return None

        existing = await _db.execute(select(Referral).where(Referral.referred_user_id == referred_user_id))
        existing_referral = existing.scalars().first()
        if existing_referral:
            logger.warning(
                f"User {referred_user_id} has already been referred by user {existing_referral.referrer_id}."
            )
            return None

        referral = Referral(referrer_id=referrer_id, referred_user_id=referred_user_id)
        _db.add(referral)
        try:
            await _db.commit()
        except IntegrityError as e:
            await _db.rollback()
            if is_unique_violation(e):
                logger.warning(
                    f"Attempted to create duplicate referral for referredUserId: {referred_user_id}. "
                    f"Might be race condition. Error: {e.orig}"
                )
                return None
            logger.error(f"Failed to save referral for {referrer_id} -> {referred_user_id}: {e}")
            raise

        referral_id = referral.id
        logger.info(f"Referral successful: {referrer_id} referred {referred_user_id}")

        await events.emit(
            events.REFERRAL_SUCCESSFUL,
            {
                "referrer_id": referrer_id,
                "referred_user_id": referred_user_id,
                "referral_id": referral_id,
            },
            _db,
        )
        return referral


@timeit("apply_manual_referral")
async def apply_manual_referral(user_id: str, referral_code: str, db: AsyncSession = None) -> dict:
    """User-initiated redemption: same insert path as signup, failures raised as HTTP errors."""
    referral_code = normalize_referral_code(referral_code)
    logger.info(f"Processing manual referral application: userId={user_id}, code={referral_code}")

    async with get_or_use_session(db) as _db:
        if await has_been_referred(user_id, _db):
            logger.warning(f"User {user_id} attempted to apply code {referral_code} but has already been referred.")
            raise HTTPException(status_code=403, detail="User has already been referred.")

        referrer = await _get_user_by_code(_db, referral_code) if referral_code else None
        if not referrer:
            logger.warning(f"Manual referral code {referral_code} not found for applicant {user_id}.")
            raise HTTPException(status_code=404, detail="Invalid referral code.")

        if referrer.id == user_id:
            logger.warning(f"User {user_id} attempted to apply their own code {referral_code}.")
            raise HTTPException(status_code=403, detail="Cannot apply your own referral code.")

        referrer_username = referrer.username
        referral = await process_referral(referral_code, user_id, _db)
        if referral is None:
            # Lost a concurrent redemption for the same user
            raise HTTPException(status_code=403, detail="User has already been referred.")

        return {"referrer_username": referrer_username}


async def has_been_referred(user_id: str, db: AsyncSession = None) -> bool:
    async with get_or_use_session(db) as _db:
        result = await _db.execute(
            select(func.count(Referral.id)).where(Referral.referred_user_id == user_id)
        )
        return (result.scalar() or 0) > 0


@timeit("get_referral_status")
async def get_referral_status(user_id: str, db: AsyncSession = None) -> dict:
    async with get_or_use_session(db) as _db:
        result = await _db.execute(
            select(Referral)
            .options(joinedload(Referral.referrer))
            .where(Referral.referred_user_id == user_id)
        )
        referral = result.scalars().first()
        if not referral:
            return {"has_been_referred": False}
        return {"has_been_referred": True, "referrer_username": referral.referrer.username}


@timeit("get_referrals_made_by_user")
async def get_referrals_made_by_user(user_id: str, db: AsyncSession = None) -> list:
    """Referrals where the user is the referrer, newest first."""
    async with get_or_use_session(db) as _db:
        result = await _db.execute(
            select(Referral)
            .options(joinedload(Referral.referred_user))
            .where(Referral.referrer_id == user_id)
            .order_by(Referral.created_at.desc())
        )
        return list(result.scalars().all())


def clamp_pagination(page: Optional[int], limit: Optional[int]) -> tuple[int, int]:
    bounds = config.get_leaderboard_config()
    # Defaults only for missing values; 0 and negatives are clamped
    page = 1 if page is None else int(page)
    limit = bounds["default_limit"] if limit is None else int(limit)
    page = max(1, page)
    limit = min(max(1, limit), bounds["max_limit"])
    return page, limit


@timeit("get_referral_leaderboard")
async def get_referral_leaderboard(page: int = 1, limit: int = 20, db: AsyncSession = None) -> dict:
    """Referrers ranked by number of successful referrals."""
    page, limit = clamp_pagination(page, limit)

    async with get_or_use_session(db) as _db:
        referral_count = func.count(Referral.id).label("referral_count")
        rows = await _db.execute(
            select(
                Referral.referrer_id.label("user_id"),
                UserModel.username,
                UserModel.display_name,
                UserModel.avatar_url,
                referral_count,
            )
            .join(UserModel, UserModel.id == Referral.referrer_id)
            .group_by(Referral.referrer_id, UserModel.username, UserModel.display_name, UserModel.avatar_url)
            .order_by(referral_count.desc(), UserModel.username.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        data = [
            {
                "user_id": row.user_id,
                "username": row.username,
                "display_name": row.display_name,
                "avatar_url": row.avatar_url,
                "referral_count": int(row.referral_count),
            }
            for row in rows
        ]
        total_result = await _db.execute(select(func.count(distinct(Referral.referrer_id))))
        total = int(total_result.scalar() or 0)

    return {
        "data": data,
        "meta": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit),
        },
    }
