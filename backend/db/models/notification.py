from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from db.session import Base
from db.models.user import _uuid, _utcnow


class NotificationType:
    REFERRAL_SUCCESS = "referral_success"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    type = Column(String(50), nullable=False)
    message = Column(String(1024), nullable=False)
    related_entity_id = Column(String(36), nullable=True)
    related_entity_type = Column(String(50), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )
