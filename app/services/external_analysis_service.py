import hmac
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from fastapi import HTTPException, status
from pydantic import ValidationError

from app.core.config import Settings
from app.schemas.external_analysis import (
    AnalysisSummary,
    ConnectionTestResponse,
    DataReceivedSummary,
    ExternalAnalysisRequest,
    ExternalAnalysisResponse,
    ExternalAnalysisResult,
)
from app.services.analysis_fields import ExtractedAnalysisFields, extract_analysis_fields
from app.services.analytics_store import AnalyticsStore, create_analytics_store
from app.services.notification_store import NotificationStore, create_notification_store
from app.services.organization_store import OrganizationStore, create_organization_store
from app.services.sales_call_store import SalesCallStore, create_sales_call_store
from app.services.sales_call_upserter import SalesCallUpserter, UpsertResult
from app.services.side_effects import SideEffectContext, SideEffectDispatcher

logger = logging.getLogger(__name__)

EXTERNAL_ANALYSIS_PATH = "/webhooks/external-analysis"


class ExternalAnalysisService:
    def __init__(
        self,
        settings: Settings,
        sales_call_store: SalesCallStore | None = None,
        analytics_store: AnalyticsStore | None = None,
        organization_store: OrganizationStore | None = None,
        notification_store: NotificationStore | None = None,
    ) -> None:
        self.settings = settings
        self.organization_store = organization_store or create_organization_store(settings)
        self.upserter = SalesCallUpserter(sales_call_store or create_sales_call_store(settings))
        self.dispatcher = SideEffectDispatcher(
            analytics_store or create_analytics_store(settings),
            notification_store or create_notification_store(settings),
            notifications_enabled=settings.analysis_notifications_enabled,
            analytics_retention_days=settings.analytics_retention_days,
        )

    def ingest(
        self,
        payload: Mapping[str, Any],
        shared_secret: str | None = None,
    ) -> ExternalAnalysisResponse:
        self._validate_auth(shared_secret)
        request = self._validate_payload(payload)

        fields = extract_analysis_fields(request, payload)
        organization_id = self._resolve_organization_id(request)
        user_id = str(request.user_id) if request.user_id else None
        requested_sales_call_id = str(request.sales_call_id) if request.sales_call_id else None

        upsert_result = self.upserter.upsert(
            sales_call_id=requested_sales_call_id,
            organization_id=organization_id,
            sales_representative_id=user_id,
            fields=fields,
        )
        side_effects = self.dispatcher.dispatch(
            SideEffectContext(
                organization_id=organization_id,
                user_id=user_id,
                sales_call_id=upsert_result.sales_call_id,
                raw_payload=payload,
                has_transcript=fields.transcript_url is not None,
                has_analysis=request.sentiment_analysis is not None,
            ),
        )

        return ExternalAnalysisResponse(
            success=True,
            message=self._build_message(upsert_result),
            data=ExternalAnalysisResult(
                processed_at=datetime.now(UTC),
                sales_call_id=upsert_result.sales_call_id or requested_sales_call_id,
                organization_id=organization_id,
                meeting_id=fields.meeting_id,
                sales_call_created=upsert_result.created,
                data_received=DataReceivedSummary(
                    transcript=request.transcript is not None,
                    recording=request.captured_data_url is not None,
                    sentiment_analysis=request.sentiment_analysis is not None,
                    user_identity=(
                        request.user_info is not None or request.user_identification is not None
                    ),
                    meeting_details=request.meeting_details is not None,
                ),
                analysis_summary=self._build_summary(fields),
                side_effects=side_effects,
            ),
        )

    def describe_connection(self) -> ConnectionTestResponse:
        return ConnectionTestResponse(
            message="External analysis connection test successful",
            timestamp=datetime.now(UTC),
            endpoint=f"{self.settings.api_prefix}{EXTERNAL_ANALYSIS_PATH}",
            method="POST",
            expected_data={
                "transcript": "string (optional)",
                "captured_data_url": "string (optional)",
                "sentiment_analysis": "object (optional)",
                "user_info": "object (optional)",
                "user_identification": "object (optional, legacy)",
                "meeting_details": "object (optional)",
                "meeting_id": "string (optional)",
                "salesCallId": "UUID (optional)",
                "organizationId": "UUID (optional)",
                "userId": "UUID (optional)",
            },
        )

    def _validate_auth(self, shared_secret: str | None) -> None:
        expected_secret = self.settings.zapier_webhook_secret
        if not expected_secret:
            return
        if shared_secret and hmac.compare_digest(shared_secret, expected_secret):
            return
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook secret.",
        )

    def _validate_payload(self, payload: Mapping[str, Any]) -> ExternalAnalysisRequest:
        try:
            return ExternalAnalysisRequest.model_validate(dict(payload))
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": "Validation failed",
                    "code": "VALIDATION_ERROR",
                    "details": exc.errors(
                        include_url=False,
                        include_context=False,
                        include_input=False,
                    ),
                },
            ) from exc

    def _resolve_organization_id(self, request: ExternalAnalysisRequest) -> str | None:
        if not request.organization_id:
            return None
        organization_id = str(request.organization_id)
        try:
            organization = self.organization_store.get_by_id(organization_id)
        except Exception:
            logger.exception("Organization lookup failed organization_id=%s", organization_id)
            return None
        if not organization:
            logger.warning(
                "Organization not found, storing without tenant reference organization_id=%s",
                organization_id,
            )
            return None
        return organization_id

    def _build_message(self, upsert_result: UpsertResult) -> str:
        if upsert_result.error:
            return "External analysis received; sales call could not be persisted"
        if upsert_result.created:
            return "External analysis processed successfully; sales call created"
        return "External analysis processed successfully; sales call updated"

    def _build_summary(self, fields: ExtractedAnalysisFields) -> AnalysisSummary:
        return AnalysisSummary(
            customer_name=fields.customer_name,
            customer_email=fields.customer_email,
            identity_source=fields.identity_source,
            duration=fields.duration,
            customer_sentiment=fields.customer_sentiment,
            performance_score=fields.performance_score,
            strengths_count=len(fields.strengths),
            weaknesses_count=len(fields.weaknesses),
        )
