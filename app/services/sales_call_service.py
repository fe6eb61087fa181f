import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from fastapi import HTTPException, status

from app.core.config import Settings
from app.schemas.sales_call import (
    AnalyticsRecord,
    AnalyticsRecordsResponse,
    SalesCallRecord,
    SalesCallRecordsResponse,
    SalesCallStatus,
)
from app.schemas.zapier import (
    CreateSalesCallRequest,
    SalesCallEventReceipt,
    SalesCallEventRequest,
    SalesCallEventResponse,
)
from app.services.analytics_store import AnalyticsStore, create_analytics_store
from app.services.sales_call_store import SalesCallStore, create_sales_call_store

logger = logging.getLogger(__name__)


class SalesCallService:
    def __init__(
        self,
        settings: Settings,
        store: SalesCallStore | None = None,
        analytics_store: AnalyticsStore | None = None,
    ) -> None:
        self.settings = settings
        self.store = store or create_sales_call_store(settings)
        self.analytics_store = analytics_store or create_analytics_store(settings)

    def get_sales_call(self, sales_call_id: str) -> SalesCallRecord:
        try:
            record = self.store.get_by_id(sales_call_id)
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to query sales call storage.",
            ) from exc

        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Sales call not found.",
            )
        return map_sales_call_record(record)

    def list_sales_calls(
        self,
        *,
        organization_id: str | None = None,
        call_status: SalesCallStatus | None = SalesCallStatus.completed,
        limit: int = 50,
    ) -> SalesCallRecordsResponse:
        normalized_limit = min(max(limit, 1), self.settings.triggers_max_limit)
        try:
            raw_items = self.store.list_recent(
                limit=normalized_limit,
                organization_id=organization_id,
                status=call_status.value if call_status else None,
            )
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to query sales call storage.",
            ) from exc

        return SalesCallRecordsResponse(items=[map_sales_call_record(record) for record in raw_items])

    def list_analytics_records(self, sales_call_id: str, limit: int = 50) -> AnalyticsRecordsResponse:
        # Raises 404 for unknown calls before touching analytics.
        self.get_sales_call(sales_call_id)
        try:
            raw_items = self.analytics_store.list_by_sales_call_id(
                sales_call_id,
                limit=min(max(limit, 1), self.settings.triggers_max_limit),
            )
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to query analytics storage.",
            ) from exc

        return AnalyticsRecordsResponse(items=[map_analytics_record(record) for record in raw_items])

    def create_sales_call(self, payload: CreateSalesCallRequest) -> SalesCallRecord:
        appointment_date = payload.appointment_date
        if appointment_date.tzinfo is None:
            appointment_date = appointment_date.replace(tzinfo=UTC)
        customer_email = payload.customer_email.strip().lower() if payload.customer_email else None
        document = {
            "organization_id": str(payload.organization_id) if payload.organization_id else None,
            "sales_representative_id": (
                str(payload.sales_representative_id) if payload.sales_representative_id else None
            ),
            "customer_name": payload.customer_name.strip(),
            "customer_email": customer_email or None,
            "customer_phone": payload.customer_phone.strip() if payload.customer_phone else None,
            "appointment_date": appointment_date,
            "status": SalesCallStatus.scheduled.value,
            "notes": payload.notes,
            "analysis_data": {},
            "strengths": [],
            "weaknesses": [],
        }
        try:
            created = self.store.create(document)
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to persist sales call.",
            ) from exc

        logger.info(
            "Sales call created source=zapier_action sales_call_id=%s organization_id=%s sales_representative_id=%s",
            created.get("_id"),
            document["organization_id"],
            document["sales_representative_id"],
        )
        return map_sales_call_record(created)

    def acknowledge_event(self, payload: SalesCallEventRequest) -> SalesCallEventResponse:
        logger.info(
            "Sales call event received sales_call_id=%s organization_id=%s event_type=%s has_data=%s",
            payload.sales_call_id,
            payload.organization_id,
            payload.event_type.value,
            bool(payload.data),
        )
        return SalesCallEventResponse(
            message="Webhook processed successfully",
            data=SalesCallEventReceipt(
                sales_call_id=str(payload.sales_call_id),
                event_type=payload.event_type,
                processed_at=datetime.now(UTC),
            ),
        )


def map_sales_call_record(record: Mapping[str, Any]) -> SalesCallRecord:
    analysis_data = record.get("analysis_data")
    return SalesCallRecord(
        id=str(record.get("_id")),
        organization_id=record.get("organization_id"),
        sales_representative_id=record.get("sales_representative_id"),
        customer_name=record.get("customer_name"),
        customer_email=record.get("customer_email"),
        customer_phone=record.get("customer_phone"),
        appointment_date=record.get("appointment_date"),
        call_start_time=record.get("call_start_time"),
        call_end_time=record.get("call_end_time"),
        duration=record.get("duration"),
        status=SalesCallStatus(str(record.get("status", SalesCallStatus.scheduled.value))),
        outcome=record.get("outcome"),
        sale_amount=record.get("sale_amount"),
        external_meeting_id=record.get("external_meeting_id"),
        recording_url=record.get("recording_url"),
        transcript_url=record.get("transcript_url"),
        analysis_data=dict(analysis_data) if isinstance(analysis_data, Mapping) else {},
        performance_score=record.get("performance_score"),
        customer_sentiment=record.get("customer_sentiment"),
        strengths=list(record.get("strengths") or []),
        weaknesses=list(record.get("weaknesses") or []),
        notes=record.get("notes"),
        created_at=record.get("created_at"),
        updated_at=record.get("updated_at"),
    )


def map_analytics_record(record: Mapping[str, Any]) -> AnalyticsRecord:
    report_data = record.get("report_data")
    generated_at = record.get("generated_at")
    return AnalyticsRecord(
        id=str(record.get("_id")),
        organization_id=record.get("organization_id"),
        user_id=record.get("user_id"),
        sales_call_id=record.get("sales_call_id"),
        report_type=str(record.get("report_type", "")),
        report_name=str(record.get("report_name", "")),
        report_data=dict(report_data) if isinstance(report_data, Mapping) else {},
        generated_at=generated_at if isinstance(generated_at, datetime) else datetime.now(UTC),
        expires_at=record.get("expires_at"),
        is_scheduled=bool(record.get("is_scheduled", False)),
    )
