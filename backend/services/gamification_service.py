from db.session import get_or_use_session
from db.models.badge import UserBadge
from db.models.referral import Referral
from config import config
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging
from services import events
from utils.timing import timeit

logger = logging.getLogger(__name__)


async def count_referrals(user_id: str, db: AsyncSession = None) -> int:
    async with get_or_use_session(db) as _db:
        result = await _db.execute(select(func.count(Referral.id)).where(Referral.referrer_id == user_id))
        return int(result.scalar() or 0)


@timeit("check_referral_count_badges")
async def check_referral_count_badges(user_id: str, db: AsyncSession = None) -> List[str]:
    """Award every referral-count badge the user has reached but does not hold yet.

    Returns the keys of newly awarded badges.
    """
    async with get_or_use_session(db) as _db:
        referral_count = await count_referrals(user_id, _db)
        held_result = await _db.execute(select(UserBadge.badge_key).where(UserBadge.user_id == user_id))
        held = set(held_result.scalars().all())

        awarded = []
        for badge in config.get_referral_badges():
            if referral_count < int(badge["threshold"]) or badge["key"] in held:
                continue
            _db.add(UserBadge(user_id=user_id, badge_key=badge["key"]))
            awarded.append(badge["key"])

        if awarded:
            await _db.commit()
            logger.info(f"Awarded badges {awarded} to user {user_id} at {referral_count} referrals")
        return awarded


@events.on(events.REFERRAL_SUCCESSFUL)
async def handle_referral_successful(payload: dict, db: AsyncSession = None) -> None:
    logger.info(
        f"Handling successful referral: Referrer {payload['referrer_id']} referred {payload['referred_user_id']}"
    )
    await check_referral_count_badges(payload["referrer_id"], db)


async def get_user_badges(user_id: str, db: AsyncSession = None) -> list:
    """Badges the user holds, with display names from config."""
    catalog = {badge["key"]: badge for badge in config.get_referral_badges()}
    async with get_or_use_session(db) as _db:
        result = await _db.execute(
            select(UserBadge).where(UserBadge.user_id == user_id).order_by(UserBadge.awarded_at.asc())
        )
        badges = []
        for user_badge in result.scalars().all():
            meta = catalog.get(user_badge.badge_key, {})
            badges.append({
                "badge_key": user_badge.badge_key,
                "name": meta.get("name", user_badge.badge_key),
                "description": meta.get("description", ""),
                "awarded_at": user_badge.awarded_at,
            })
        return badges
