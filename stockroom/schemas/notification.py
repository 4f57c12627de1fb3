from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..core.enums import NotificationType


class NotificationCreate(BaseModel):
    type: NotificationType = NotificationType.SYSTEM
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    item_name: Optional[str] = None
    action_link: Optional[str] = None


class NotificationOut(BaseModel):
    id: str
    type: NotificationType
    subject_id: Optional[str] = None
    title: str
    item_name: Optional[str] = None
    message: str
    action_link: Optional[str] = None
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationList(BaseModel):
    unread_count: int
    notifications: list[NotificationOut]
