from datetime import datetime
from typing import List, Optional

from pydantic import Field

from schemas.user_schema import CamelModel, UserSummary


class ReferralCodeResponse(CamelModel):
    referral_code: str


class ApplyReferralCodeRequest(CamelModel):
    referral_code: str = Field(min_length=5, max_length=5)


class ApplyReferralCodeResponse(CamelModel):
    referrer_username: str


class ReferralStatus(CamelModel):
    has_been_referred: bool
    referrer_username: Optional[str] = None


class ReferralOut(CamelModel):
    id: str
    referrer_id: str
    referred_user_id: str
    created_at: datetime
    referred_user: Optional[UserSummary] = None


class LeaderboardEntry(CamelModel):
    user_id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    referral_count: int


class PaginatedMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


class ReferralLeaderboard(CamelModel):
    data: List[LeaderboardEntry]
    meta: PaginatedMeta
