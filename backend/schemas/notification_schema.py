from datetime import datetime
from typing import Optional

from schemas.user_schema import CamelModel


class NotificationOut(CamelModel):
    id: str
    type: str
    message: str
    related_entity_id: Optional[str] = None
    related_entity_type: Optional[str] = None
    is_read: bool
    created_at: datetime
