from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from db.session import Base
from db.models.user import _uuid, _utcnow


class UserBadge(Base):
    __tablename__ = "user_badges"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    badge_key = Column(String(64), nullable=False)
    awarded_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    __table_args__ = (
        UniqueConstraint("user_id", "badge_key", name="uq_user_badge"),
    )
