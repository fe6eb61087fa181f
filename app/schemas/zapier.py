from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.external_analysis import CamelModel
from app.schemas.notification import NotificationPriority


class CreateSalesCallRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    customer_name: str = Field(min_length=1, max_length=255)
    customer_email: str | None = Field(default=None, max_length=255)
    customer_phone: str | None = Field(default=None, max_length=50)
    appointment_date: datetime
    sales_representative_id: UUID | None = None
    organization_id: UUID | None = None
    notes: str | None = None


class SalesCallEventType(StrEnum):
    completed = "completed"
    analyzed = "analyzed"
    failed = "failed"


class SalesCallEventRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    sales_call_id: UUID
    organization_id: UUID
    event_type: SalesCallEventType
    data: dict[str, Any] | None = None


class SalesCallEventReceipt(CamelModel):
    sales_call_id: str
    event_type: SalesCallEventType
    processed_at: datetime


class SalesCallEventResponse(BaseModel):
    success: bool = True
    message: str
    data: SalesCallEventReceipt


class PerformanceAlertType(StrEnum):
    low_performance = "low_performance"
    high_performance = "high_performance"
    script_violation = "script_violation"
    objection_handling = "objection_handling"


class PerformanceAlertRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: UUID
    organization_id: UUID
    alert_type: PerformanceAlertType
    metrics: dict[str, Any]
    threshold: float | None = None


class PerformanceAlertReceipt(CamelModel):
    notification_id: str
    user_id: str
    alert_type: PerformanceAlertType
    processed_at: datetime


class PerformanceAlertResponse(BaseModel):
    success: bool = True
    message: str
    data: PerformanceAlertReceipt


class PerformanceAlertRecord(BaseModel):
    id: str
    organization_id: str | None = None
    user_id: str | None = None
    title: str
    message: str
    priority: NotificationPriority
    alert_type: str | None = None
    metrics: dict[str, Any] = Field(default_factory=dict)
    threshold: float | None = None
    action_url: str | None = None
    created_at: datetime


class PerformanceAlertsResponse(BaseModel):
    items: list[PerformanceAlertRecord]


class OrganizationOption(BaseModel):
    id: str
    label: str
    value: str
    name: str
    type: str


class OrganizationSearchResponse(BaseModel):
    items: list[OrganizationOption]
