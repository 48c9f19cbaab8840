from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from schemas.user_schema import Token, User as UserSchema, UserCreate
from services.user_service import create_user, login_user
from db.session import get_db_session
from utils.responses import no_store_json

router = APIRouter()

@router.post("/signup", response_model=UserSchema, status_code=201)
async def signup(user: UserCreate, db: AsyncSession = Depends(get_db_session)):
    created = await create_user(user, db)
    return no_store_json(UserSchema.model_validate(created), status_code=201)

@router.post("/login", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await login_user(form_data.username, form_data.password, db))
