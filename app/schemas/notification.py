from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NotificationType(StrEnum):
    call_started = "call_started"
    call_completed = "call_completed"
    performance_alert = "performance_alert"
    live_intervention = "live_intervention"
    system_alert = "system_alert"
    reminder = "reminder"
    achievement = "achievement"
    coaching_tip = "coaching_tip"


class NotificationPriority(StrEnum):
    low = "low"
    normal = "normal"
    high = "high"
    urgent = "urgent"


class SendNotificationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: UUID | None = None
    organization_id: UUID | None = None
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    priority: NotificationPriority = NotificationPriority.normal
    type: NotificationType = NotificationType.system_alert


class NotificationRecord(BaseModel):
    id: str
    organization_id: str | None = None
    user_id: str | None = None
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    created_at: datetime
