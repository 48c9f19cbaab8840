from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from db.session import Base
from db.models.user import _uuid, _utcnow


class Referral(Base):
    __tablename__ = "referrals"

    id = Column(String(36), primary_key=True, default=_uuid)
    referrer_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    referred_user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    referrer = relationship("User", foreign_keys=[referrer_id], lazy="raise")
    referred_user = relationship("User", foreign_keys=[referred_user_id], lazy="raise")

    __table_args__ = (
        UniqueConstraint("referred_user_id", name="uq_referrals_referred_user_id"),
        CheckConstraint("referrer_id <> referred_user_id", name="ck_referrals_not_self"),
    )
