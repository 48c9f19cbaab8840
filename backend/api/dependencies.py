from fastapi import Depends, HTTPException, status
from core.security import oauth2_scheme, get_token_subject
from db.session import get_db_session
from db.models.user import User as UserModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

logger = logging.getLogger(__name__)

CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db_session)) -> UserModel:
    """Authenticated referral participant; 401 unless the token names an active user."""
    user_id = get_token_subject(token)
    if user_id is None:
        raise CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalars().first()
    if user is None or not user.is_active:
        logger.warning(f"Token subject {user_id} does not match an active user")
        raise CREDENTIALS_EXCEPTION
    return user
