from datetime import datetime
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelModel(BaseModel):
    """Base for API payloads: snake_case attributes, camelCase JSON keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class UserCreate(CamelModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=8)
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    referral_code: Optional[str] = None


class User(CamelModel):
    id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    referral_code: Optional[str] = None
    created_at: Optional[datetime] = None


class UserSummary(CamelModel):
    id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class UserBadgeOut(CamelModel):
    badge_key: str
    name: str
    description: str
    awarded_at: datetime


class Token(BaseModel):
    access_token: str
    token_type: str
