import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from app.schemas.external_analysis import ExternalAnalysisRequest, UserIdentityPayload
from app.schemas.sales_call import CustomerSentiment
from app.services.duration_parser import parse_duration_seconds
from app.services.sentiment_mapper import map_sentiment_category

UNKNOWN_CUSTOMER_NAME = "Unknown Customer"
# sales_calls.performance_score is DECIMAL(3, 2).
MAX_PERFORMANCE_SCORE = 9.99


@dataclass(frozen=True)
class ExtractedAnalysisFields:
    customer_name: str
    customer_email: str | None
    identity_source: str
    appointment_date: datetime
    call_start_time: datetime | None
    call_end_time: datetime | None
    duration: int | None
    performance_score: float | None
    customer_sentiment: CustomerSentiment | None
    recording_url: str | None
    transcript_url: str | None
    meeting_id: str | None
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    calendar_guests: list[str] = field(default_factory=list)
    analysis_data: dict[str, Any] = field(default_factory=dict)


def extract_analysis_fields(
    request: ExternalAnalysisRequest,
    raw_payload: Mapping[str, Any],
    now: datetime | None = None,
) -> ExtractedAnalysisFields:
    received_at = now or datetime.now(UTC)
    identity_blocks = (
        ("user_info", request.user_info),
        ("user_identification", request.user_identification),
    )

    customer_name = UNKNOWN_CUSTOMER_NAME
    identity_source = "fallback"
    for source, block in identity_blocks:
        name = _to_text(block.user_name) if block else None
        if name:
            customer_name = name
            identity_source = source
            break

    customer_email: str | None = None
    for _, block in identity_blocks:
        email = _to_text(block.user_email) if block else None
        if email:
            customer_email = email.lower()
            break

    calendar_guests: list[str] = []
    for _, block in identity_blocks:
        if block and block.calendar_guests:
            calendar_guests = _split_values(block.calendar_guests)
            break

    meeting_details = request.meeting_details
    call_start_time = _parse_datetime(meeting_details.start_datetime) if meeting_details else None
    call_end_time = _parse_datetime(meeting_details.end_datetime) if meeting_details else None

    duration = parse_duration_seconds(meeting_details.duration) if meeting_details else None
    if duration is None and call_start_time and call_end_time and call_end_time >= call_start_time:
        duration = int((call_end_time - call_start_time).total_seconds())

    sentiment_analysis = request.sentiment_analysis
    performance_score = None
    customer_sentiment = None
    strengths: list[str] = []
    weaknesses: list[str] = []
    if sentiment_analysis:
        performance_score = clamp_performance_score(sentiment_analysis.meeting_score)
        customer_sentiment = map_sentiment_category(sentiment_analysis.sentiment_category)
        strengths = _split_values(sentiment_analysis.strengths)
        weaknesses = _split_values(sentiment_analysis.weaknesses)

    meeting_id = _to_text(request.meeting_id)
    analysis_data = {
        "source": "external_analysis",
        "meeting_id": meeting_id,
        "identity_source": identity_source,
        "user_identity": _dump_identity(request.user_info or request.user_identification),
        "calendar_guests": calendar_guests,
        "sentiment_analysis": sentiment_analysis.model_dump() if sentiment_analysis else None,
        "meeting_details": meeting_details.model_dump() if meeting_details else None,
        "raw_payload": dict(raw_payload),
        "received_at": received_at.isoformat(),
    }

    return ExtractedAnalysisFields(
        customer_name=customer_name,
        customer_email=customer_email,
        identity_source=identity_source,
        appointment_date=call_start_time or received_at,
        call_start_time=call_start_time,
        call_end_time=call_end_time,
        duration=duration,
        performance_score=performance_score,
        customer_sentiment=customer_sentiment,
        recording_url=_to_text(request.captured_data_url),
        transcript_url=_to_text(request.transcript),
        meeting_id=meeting_id,
        strengths=strengths,
        weaknesses=weaknesses,
        calendar_guests=calendar_guests,
        analysis_data=analysis_data,
    )


def clamp_performance_score(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return round(max(-MAX_PERFORMANCE_SCORE, min(value, MAX_PERFORMANCE_SCORE)), 2)


def _dump_identity(block: UserIdentityPayload | None) -> dict[str, Any] | None:
    if not block:
        return None
    return block.model_dump()


def _parse_datetime(value: str | None) -> datetime | None:
    text = _to_text(value)
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def _split_values(value: Any) -> list[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, list):
        items: list[str] = []
        for item in value:
            if isinstance(item, Mapping):
                item = item.get("email") or item.get("name")
            text = _to_text(item)
            if text:
                items.append(text)
        return items
    return []


def _to_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        cleaned = value.strip()
        return cleaned or None
    if isinstance(value, int | float):
        return str(value)
    return None
