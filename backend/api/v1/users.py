from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from api.dependencies import get_current_user
from db.session import get_db_session
from db.models.user import User as UserModel
from schemas.user_schema import User as UserSchema, UserBadgeOut
from services.gamification_service import get_user_badges
from services.user_service import is_username_available
from utils.responses import no_store_json

router = APIRouter()

@router.get("/check-username")
async def check_username(username: str, db: AsyncSession = Depends(get_db_session)):
    return {"available": await is_username_available(username, db)}

@router.get("/me", response_model=UserSchema)
async def read_users_me(current_user: UserModel = Depends(get_current_user)):
    return no_store_json(UserSchema.model_validate(current_user))

@router.get("/me/badges", response_model=list[UserBadgeOut])
async def read_my_badges(current_user: UserModel = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    badges = await get_user_badges(current_user.id, db)
    return no_store_json([UserBadgeOut(**badge) for badge in badges])
