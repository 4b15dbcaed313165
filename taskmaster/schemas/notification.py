from datetime import datetime

from pydantic import BaseModel, ConfigDict

from taskmaster.models.enums import NotificationType


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    notification_id: int
    user_id: int
    type: NotificationType
    reference_id: int
    message: str
    is_read: bool
    created_at: datetime
