from schemas.user_schema import UserCreate
from db.session import get_or_use_session
from db.models.user import User as UserModel
from core.security import get_password_hash, verify_password, create_access_token
from fastapi import HTTPException
import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from utils.timing import timeit
from utils.db import safe_commit
from services.referral_service import process_referral

logger = logging.getLogger(__name__)


async def get_user_by_id(user_id: str, db: AsyncSession = None) -> Optional[UserModel]:
    async with get_or_use_session(db) as _db:
        result = await _db.execute(select(UserModel).where(UserModel.id == user_id))
        return result.scalars().first()


async def get_user_by_username(username: str, db: AsyncSession = None) -> Optional[UserModel]:
    async with get_or_use_session(db) as _db:
        result = await _db.execute(select(UserModel).where(UserModel.username == username))
        return result.scalars().first()


@timeit("create_user")
async def create_user(user: UserCreate, db: AsyncSession = None) -> UserModel:
    """Create a new user, then redeem the signup referral code if one was given.

    Referral problems are logged and never fail the signup.
    """
    async with get_or_use_session(db) as _db:
        if await get_user_by_username(user.username, _db) is not None:
            raise HTTPException(status_code=400, detail="Username already registered")

        new_user = UserModel(
            username=user.username,
            display_name=user.display_name or user.username,
            avatar_url=user.avatar_url,
            hashed_password=get_password_hash(user.password),
        )
        _db.add(new_user)
        await safe_commit(_db, client_error_message="Invalid signup data")
        new_user_id = new_user.id
        logger.info(f"Created user {new_user_id} ({user.username})")

        if user.referral_code:
            try:
                await process_referral(user.referral_code, new_user_id, _db)
            except Exception as e:
                logger.error(f"Failed to process referral code for user {new_user_id}: {e}")
                await _db.rollback()

        created = await get_user_by_id(new_user_id, _db)
        return created


async def authenticate_user(username: str, password: str, db: AsyncSession = None) -> Optional[UserModel]:
    async with get_or_use_session(db) as _db:
        user = await get_user_by_username(username, _db)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user


@timeit("login_user")
async def login_user(username: str, password: str, db: AsyncSession = None) -> dict:
    """Login user and return a bearer token"""
    user = await authenticate_user(username, password, db)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(user.id, user.username)
    return {"access_token": access_token, "token_type": "bearer"}


async def is_username_available(username: str, db: AsyncSession = None) -> bool:
    return await get_user_by_username(username, db) is None
