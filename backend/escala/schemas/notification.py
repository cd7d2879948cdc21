"""Notification and push subscription schemas."""
from typing import Optional, Any
from pydantic import BaseModel, Field
from datetime import datetime


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    message: str
    type: str
    related_event_id: Optional[int] = None
    is_read: bool = False
    created: datetime

    class Config:
        from_attributes = True


class NotificationDelete(BaseModel):
    notificationId: Optional[int] = None
    deleteAll: bool = False


class PushSubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscriptionData(BaseModel):
    """Browser PushSubscription.toJSON() output."""
    endpoint: str = Field(..., min_length=1, max_length=1000)
    expirationTime: Optional[Any] = None
    keys: PushSubscriptionKeys


class PushSubscriptionSave(BaseModel):
    subscription: PushSubscriptionData
