from db.session import get_or_use_session
from db.models.notification import Notification, NotificationType
from db.models.user import User as UserModel
from config import config
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging
from services import events
from utils.timing import timeit

logger = logging.getLogger(__name__)


async def create_notification(
    user_id: str,
    notification_type: str,
    message: str,
    related_entity_id: Optional[str] = None,
    related_entity_type: Optional[str] = None,
    db: AsyncSession = None,
) -> Notification:
    async with get_or_use_session(db) as _db:
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            message=message,
            related_entity_id=related_entity_id,
            related_entity_type=related_entity_type,
        )
        _db.add(notification)
        await _db.commit()
        logger.info(f"Created {notification_type} notification for user {user_id}")
        return notification


@events.on(events.REFERRAL_SUCCESSFUL)
async def notify_referrer(payload: dict, db: AsyncSession = None) -> None:
    """Tell the referrer that someone joined with their code."""
    async with get_or_use_session(db) as _db:
        result = await _db.execute(select(UserModel.username).where(UserModel.id == payload["referred_user_id"]))
        username = result.scalar() or "A new user"
        template = config.get_notification_template(NotificationType.REFERRAL_SUCCESS)
        await create_notification(
            payload["referrer_id"],
            NotificationType.REFERRAL_SUCCESS,
            template.format(username=username),
            related_entity_id=payload["referral_id"],
            related_entity_type="referrals",
            db=_db,
        )


@timeit("get_notifications")
async def get_notifications(user_id: str, unread_only: bool = False, db: AsyncSession = None) -> list:
    async with get_or_use_session(db) as _db:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        result = await _db.execute(query.order_by(Notification.created_at.desc()))
        return list(result.scalars().all())


async def mark_as_read(user_id: str, notification_id: str, db: AsyncSession = None) -> Notification:
    async with get_or_use_session(db) as _db:
        result = await _db.execute(
            select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
        )
        notification = result.scalars().first()
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        if not notification.is_read:
            notification.is_read = True
            await _db.commit()
        return notification
