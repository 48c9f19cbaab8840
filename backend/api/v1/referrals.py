from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from api.dependencies import get_current_user
from db.session import get_db_session
from db.models.user import User as UserModel
from schemas.referral_schema import (
    ApplyReferralCodeRequest,
    ApplyReferralCodeResponse,
    ReferralCodeResponse,
    ReferralLeaderboard,
    ReferralOut,
    ReferralStatus,
)
from services import referral_service
from utils.responses import no_store_json

router = APIRouter(prefix="/referrals")

@router.get("/me/code", response_model=ReferralCodeResponse)
async def get_my_referral_code(current_user: UserModel = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    code = await referral_service.get_referral_code(current_user.id, db)
    return no_store_json(ReferralCodeResponse(referral_code=code))

@router.post("/me/apply", response_model=ApplyReferralCodeResponse)
async def apply_referral_code(
    body: ApplyReferralCodeRequest,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    user_id = current_user.id
    status = await referral_service.get_referral_status(user_id, db)
    if status["has_been_referred"]:
        raise HTTPException(status_code=403, detail="User has already been referred.")

    try:
        result = await referral_service.apply_manual_referral(user_id, body.referral_code, db)
    except HTTPException as e:
        if e.status_code == 404:
            raise HTTPException(status_code=400, detail="Invalid referral code.")
        raise
    return no_store_json(ApplyReferralCodeResponse(**result))

@router.get("/me/status", response_model=ReferralStatus)
async def get_my_referral_status(current_user: UserModel = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    status = await referral_service.get_referral_status(current_user.id, db)
    return no_store_json(ReferralStatus(**status).model_dump(by_alias=True, exclude_none=True))

@router.get("/me/history", response_model=list[ReferralOut])
async def get_my_referral_history(current_user: UserModel = Depends(get_current_user), db: AsyncSession = Depends(get_db_session)):
    referrals = await referral_service.get_referrals_made_by_user(current_user.id, db)
    return no_store_json([ReferralOut.model_validate(referral) for referral in referrals])

@router.get("/leaderboard", response_model=ReferralLeaderboard)
async def get_referral_leaderboard(
    page: int = Query(1),
    limit: int = Query(20),
    db: AsyncSession = Depends(get_db_session),
):
    """Public ranking of referrers; page and limit are clamped, not rejected."""
    return await referral_service.get_referral_leaderboard(page, limit, db)
