from datetime import UTC, datetime

from app.schemas.external_analysis import ExternalAnalysisRequest
from app.schemas.sales_call import CustomerSentiment
from app.services.analysis_fields import (
    MAX_PERFORMANCE_SCORE,
    UNKNOWN_CUSTOMER_NAME,
    clamp_performance_score,
    extract_analysis_fields,
)

FIXED_NOW = datetime(2026, 3, 1, 15, 0, tzinfo=UTC)


def _extract(payload: dict[str, object]):
    request = ExternalAnalysisRequest.model_validate(payload)
    return extract_analysis_fields(request, payload, now=FIXED_NOW)


def test_user_info_block_is_preferred_over_legacy_identification() -> None:
    fields = _extract(
        {
            "user_info": {"user_name": "Maria Lopez", "user_email": "Maria@Example.com"},
            "user_identification": {"user_name": "Legacy Name", "user_email": "legacy@example.com"},
        },
    )

    assert fields.customer_name == "Maria Lopez"
    assert fields.customer_email == "maria@example.com"
    assert fields.identity_source == "user_info"


def test_legacy_identification_block_is_used_when_user_info_is_missing() -> None:
    fields = _extract(
        {
            "user_identification": {
                "user_name": "Legacy Name",
                "user_email": "legacy@example.com",
                "calendar_guests": "a@example.com, b@example.com",
            },
        },
    )

    assert fields.customer_name == "Legacy Name"
    assert fields.customer_email == "legacy@example.com"
    assert fields.identity_source == "user_identification"
    assert fields.calendar_guests == ["a@example.com", "b@example.com"]


def test_missing_identity_falls_back_to_unknown_customer() -> None:
    fields = _extract({"user_info": {"user_name": "   "}})

    assert fields.customer_name == UNKNOWN_CUSTOMER_NAME
    assert fields.customer_email is None
    assert fields.identity_source == "fallback"


def test_meeting_timing_uses_details_or_falls_back_to_now() -> None:
    fields = _extract(
        {
            "meeting_details": {
                "start_datetime": "2026-02-27T10:00:00Z",
                "end_datetime": "2026-02-27T10:45:30Z",
            },
        },
    )

    assert fields.appointment_date == datetime(2026, 2, 27, 10, 0, tzinfo=UTC)
    assert fields.call_start_time == datetime(2026, 2, 27, 10, 0, tzinfo=UTC)
    assert fields.call_end_time == datetime(2026, 2, 27, 10, 45, 30, tzinfo=UTC)
    # Derived from the timestamps when no explicit duration is supplied.
    assert fields.duration == 2730

    empty_fields = _extract({})
    assert empty_fields.appointment_date == FIXED_NOW
    assert empty_fields.call_start_time is None
    assert empty_fields.call_end_time is None
    assert empty_fields.duration is None


def test_unparseable_timestamps_are_treated_as_absent() -> None:
    fields = _extract({"meeting_details": {"start_datetime": "next tuesday", "duration": "1h 30m"}})

    assert fields.call_start_time is None
    assert fields.appointment_date == FIXED_NOW
    assert fields.duration == 5400


def test_naive_timestamps_are_assumed_utc() -> None:
    fields = _extract({"meeting_details": {"start_datetime": "2026-02-27 09:30:00"}})

    assert fields.call_start_time == datetime(2026, 2, 27, 9, 30, tzinfo=UTC)


def test_sentiment_analysis_fields_are_normalized() -> None:
    fields = _extract(
        {
            "sentiment_analysis": {
                "sentiment_category": "Mediocre/ugly",
                "strengths": "Rapport, clear pricing ,",
                "weaknesses": ["Rushed close", " "],
                "meeting_score": "12.5",
            },
        },
    )

    assert fields.customer_sentiment == CustomerSentiment.negative
    assert fields.strengths == ["Rapport", "clear pricing"]
    assert fields.weaknesses == ["Rushed close"]
    assert fields.performance_score == MAX_PERFORMANCE_SCORE


def test_clamp_performance_score() -> None:
    assert clamp_performance_score(None) is None
    assert clamp_performance_score(8.123) == 8.12
    assert clamp_performance_score(10) == 9.99
    assert clamp_performance_score(float("inf")) is None
    assert clamp_performance_score(-42) == -9.99
    assert clamp_performance_score(-2.5) == -2.5


def test_analysis_blob_retains_raw_payload_and_references() -> None:
    payload = {
        "transcript": "https://files.example.com/transcript.txt",
        "captured_data_url": "https://files.example.com/recording.mp3",
        "meeting_id": 98765,
        "custom_field": {"nested": True},
    }

    fields = _extract(payload)

    assert fields.transcript_url == "https://files.example.com/transcript.txt"
    assert fields.recording_url == "https://files.example.com/recording.mp3"
    assert fields.meeting_id == "98765"
    assert fields.analysis_data["raw_payload"] == payload
    assert fields.analysis_data["received_at"] == FIXED_NOW.isoformat()
