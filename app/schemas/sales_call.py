from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class SalesCallStatus(StrEnum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"


class CustomerSentiment(StrEnum):
    positive = "positive"
    neutral = "neutral"
    negative = "negative"


class SalesCallRecord(BaseModel):
    id: str
    organization_id: str | None = None
    sales_representative_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    appointment_date: datetime | None = None
    call_start_time: datetime | None = None
    call_end_time: datetime | None = None
    duration: int | None = None
    status: SalesCallStatus
    outcome: str | None = None
    sale_amount: float | None = None
    external_meeting_id: str | None = None
    recording_url: str | None = None
    transcript_url: str | None = None
    analysis_data: dict[str, Any] = Field(default_factory=dict)
    performance_score: float | None = None
    customer_sentiment: CustomerSentiment | None = None
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SalesCallRecordsResponse(BaseModel):
    items: list[SalesCallRecord]


class AnalyticsRecord(BaseModel):
    id: str
    organization_id: str | None = None
    user_id: str | None = None
    sales_call_id: str | None = None
    report_type: str
    report_name: str
    report_data: dict[str, Any]
    generated_at: datetime
    expires_at: datetime | None = None
    is_scheduled: bool = False


class AnalyticsRecordsResponse(BaseModel):
    items: list[AnalyticsRecord]
