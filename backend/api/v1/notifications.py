from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from api.dependencies import get_current_user
from db.session import get_db_session
from db.models.user import User as UserModel
from schemas.notification_schema import NotificationOut
from services.notification_service import get_notifications, mark_as_read
from utils.responses import no_store_json

router = APIRouter(prefix="/notifications")

@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    unread_only: bool = False,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    notifications = await get_notifications(current_user.id, unread_only, db)
    return no_store_json([NotificationOut.model_validate(n) for n in notifications])

@router.post("/{notification_id}/read", response_model=NotificationOut)
async def read_notification(
    notification_id: str,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    notification = await mark_as_read(current_user.id, notification_id, db)
    return no_store_json(NotificationOut.model_validate(notification))
