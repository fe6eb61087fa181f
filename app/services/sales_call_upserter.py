import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from app.schemas.sales_call import SalesCallStatus
from app.services.analysis_fields import ExtractedAnalysisFields
from app.services.sales_call_store import SalesCallStore

logger = logging.getLogger(__name__)

# Only these fields are refreshed when an existing call is re-analyzed.
_UPDATABLE_FIELDS = (
    "appointment_date",
    "call_start_time",
    "call_end_time",
    "duration",
    "recording_url",
    "transcript_url",
    "performance_score",
    "customer_sentiment",
)


@dataclass(frozen=True)
class UpsertResult:
    sales_call_id: str | None
    created: bool
    error: str | None = None


class SalesCallUpserter:
    def __init__(self, store: SalesCallStore) -> None:
        self.store = store

    def upsert(
        self,
        *,
        sales_call_id: str | None,
        organization_id: str | None,
        sales_representative_id: str | None,
        fields: ExtractedAnalysisFields,
    ) -> UpsertResult:
        try:
            existing_record = self.store.get_by_id(sales_call_id) if sales_call_id else None
            if existing_record:
                self._update_existing(existing_record, fields)
                logger.info("Sales call updated from external analysis sales_call_id=%s", sales_call_id)
                return UpsertResult(sales_call_id=sales_call_id, created=False)

            created_record = self.store.create(
                build_sales_call_document(
                    sales_call_id=sales_call_id,
                    organization_id=organization_id,
                    sales_representative_id=sales_representative_id,
                    fields=fields,
                ),
            )
        except Exception as exc:
            logger.exception(
                "Sales call upsert failed sales_call_id=%s organization_id=%s",
                sales_call_id,
                organization_id,
            )
            return UpsertResult(sales_call_id=None, created=False, error=str(exc) or type(exc).__name__)

        created_id = str(created_record.get("_id"))
        logger.info(
            "Sales call created from external analysis sales_call_id=%s organization_id=%s",
            created_id,
            organization_id,
        )
        return UpsertResult(sales_call_id=created_id, created=True)

    def _update_existing(
        self,
        existing_record: Mapping[str, Any],
        fields: ExtractedAnalysisFields,
    ) -> None:
        incoming = {
            # appointment_date falls back to "now" in extraction; only a real start time may move it.
            "appointment_date": fields.call_start_time,
            "call_start_time": fields.call_start_time,
            "call_end_time": fields.call_end_time,
            "duration": fields.duration,
            "recording_url": fields.recording_url,
            "transcript_url": fields.transcript_url,
            "performance_score": fields.performance_score,
            "customer_sentiment": (
                fields.customer_sentiment.value if fields.customer_sentiment else None
            ),
        }
        updates: dict[str, Any] = {
            name: incoming[name] if incoming[name] is not None else existing_record.get(name)
            for name in _UPDATABLE_FIELDS
        }
        updates["strengths"] = fields.strengths or list(existing_record.get("strengths") or [])
        updates["weaknesses"] = fields.weaknesses or list(existing_record.get("weaknesses") or [])
        updates["analysis_data"] = fields.analysis_data
        if fields.meeting_id and not existing_record.get("external_meeting_id"):
            updates["external_meeting_id"] = fields.meeting_id

        updated_record = self.store.update_by_id(str(existing_record.get("_id")), updates)
        if updated_record is None:
            raise LookupError("sales_call_not_found")


def build_sales_call_document(
    *,
    sales_call_id: str | None,
    organization_id: str | None,
    sales_representative_id: str | None,
    fields: ExtractedAnalysisFields,
) -> dict[str, Any]:
    document: dict[str, Any] = {
        "organization_id": organization_id,
        "sales_representative_id": sales_representative_id,
        "customer_name": fields.customer_name,
        "customer_email": fields.customer_email,
        "appointment_date": fields.appointment_date,
        "call_start_time": fields.call_start_time,
        "call_end_time": fields.call_end_time,
        "duration": fields.duration,
        "status": SalesCallStatus.completed.value,
        # Neither can be derived from an analysis payload.
        "outcome": None,
        "sale_amount": None,
        "external_meeting_id": fields.meeting_id,
        "recording_url": fields.recording_url,
        "transcript_url": fields.transcript_url,
        "analysis_data": fields.analysis_data,
        "performance_score": fields.performance_score,
        "customer_sentiment": fields.customer_sentiment.value if fields.customer_sentiment else None,
        "strengths": list(fields.strengths),
        "weaknesses": list(fields.weaknesses),
    }
    if sales_call_id:
        document["_id"] = sales_call_id
    return document
