from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.sales_call import CustomerSentiment


class SentimentAnalysisPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    sentiment_category: str | None = None
    strengths: str | list[str] | None = None
    weaknesses: str | list[str] | None = None
    meeting_score: float | None = None


class UserIdentityPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    user_email: str | None = None
    user_name: str | None = None
    calendar_guests: str | list[Any] | None = None


class MeetingDetailsPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    duration: str | int | float | None = None
    start_datetime: str | None = None
    end_datetime: str | None = None


class ExternalAnalysisRequest(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    transcript: str | None = None
    captured_data_url: str | None = None
    sentiment_analysis: SentimentAnalysisPayload | None = None
    user_info: UserIdentityPayload | None = None
    user_identification: UserIdentityPayload | None = None
    meeting_details: MeetingDetailsPayload | None = None
    meeting_id: str | int | None = None
    sales_call_id: UUID | None = Field(default=None, alias="salesCallId")
    organization_id: UUID | None = Field(default=None, alias="organizationId")
    user_id: UUID | None = Field(default=None, alias="userId")


class SideEffectStatus(StrEnum):
    succeeded = "succeeded"
    failed = "failed"
    skipped = "skipped"


class SideEffectOutcome(BaseModel):
    name: str
    status: SideEffectStatus
    record_id: str | None = None
    error: str | None = None


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DataReceivedSummary(CamelModel):
    transcript: bool
    recording: bool
    sentiment_analysis: bool
    user_identity: bool
    meeting_details: bool


class AnalysisSummary(CamelModel):
    customer_name: str
    customer_email: str | None = None
    identity_source: str
    duration: int | None = None
    customer_sentiment: CustomerSentiment | None = None
    performance_score: float | None = None
    strengths_count: int = 0
    weaknesses_count: int = 0


class ExternalAnalysisResult(CamelModel):
    processed_at: datetime
    sales_call_id: str | None = None
    organization_id: str | None = None
    meeting_id: str | None = Field(default=None, alias="meeting_id")
    sales_call_created: bool
    data_received: DataReceivedSummary
    analysis_summary: AnalysisSummary
    side_effects: list[SideEffectOutcome] = Field(default_factory=list)


class ExternalAnalysisResponse(BaseModel):
    success: bool = True
    message: str
    data: ExternalAnalysisResult


class ConnectionTestResponse(CamelModel):
    success: bool = True
    message: str
    timestamp: datetime
    endpoint: str
    method: str
    expected_data: dict[str, str]
