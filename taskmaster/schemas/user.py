from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, StrictBool

from taskmaster.models.enums import UserRole


class NotificationSettings(BaseModel):
    in_app: StrictBool
    email: StrictBool


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    email: str
    name: str
    role: UserRole


class UserDetailResponse(UserResponse):
    notification_settings: NotificationSettings
    created_at: datetime
    updated_at: datetime


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    notification_settings: Optional[NotificationSettings] = None
