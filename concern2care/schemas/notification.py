# concern2care/schemas/notification.py
from datetime import datetime

from pydantic import BaseModel

from concern2care.models.enums import (
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)


class NotificationPublic(BaseModel):
    id: int
    submission_id: int
    type: NotificationType
    status: NotificationStatus
    priority: NotificationPriority
    title: str
    message: str | None = None
    admin_id: str | None = None
    created_at: datetime | None = None
    read_at: datetime | None = None
    resolved_at: datetime | None = None

    model_config = {"from_attributes": True}
