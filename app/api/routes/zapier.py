from fastapi import APIRouter, Query, Request, status

from app.api.routes.webhooks import process_external_analysis
from app.core.config import get_settings
from app.schemas.external_analysis import ConnectionTestResponse, ExternalAnalysisResponse
from app.schemas.notification import NotificationRecord, SendNotificationRequest
from app.schemas.sales_call import SalesCallRecord, SalesCallRecordsResponse, SalesCallStatus
from app.schemas.zapier import (
    CreateSalesCallRequest,
    OrganizationSearchResponse,
    PerformanceAlertRequest,
    PerformanceAlertResponse,
    PerformanceAlertsResponse,
    PerformanceAlertType,
    SalesCallEventRequest,
    SalesCallEventResponse,
)
from app.services.external_analysis_service import ExternalAnalysisService
from app.services.notification_service import NotificationService
from app.services.organization_service import OrganizationService
from app.services.sales_call_service import SalesCallService

router = APIRouter(prefix="/zapier", tags=["zapier"])


# Older Zaps still post OtterAI analyses here.
@router.post(
    "/actions/otterai-analyze",
    response_model=ExternalAnalysisResponse,
)
async def receive_otterai_analysis(request: Request) -> ExternalAnalysisResponse:
    return await process_external_analysis(request)


@router.get(
    "/test/external-analysis",
    response_model=ConnectionTestResponse,
)
def check_external_analysis_connection() -> ConnectionTestResponse:
    service = ExternalAnalysisService(get_settings())
    return service.describe_connection()


@router.post(
    "/webhook/sales-call-completed",
    response_model=SalesCallEventResponse,
)
def receive_sales_call_event(payload: SalesCallEventRequest) -> SalesCallEventResponse:
    service = SalesCallService(get_settings())
    return service.acknowledge_event(payload)


@router.post(
    "/webhook/performance-alert",
    response_model=PerformanceAlertResponse,
)
def receive_performance_alert(payload: PerformanceAlertRequest) -> PerformanceAlertResponse:
    service = NotificationService(get_settings())
    return service.send_performance_alert(payload)


@router.get(
    "/triggers/sales-calls",
    response_model=SalesCallRecordsResponse,
)
def list_sales_call_triggers(
    organization_id: str | None = Query(default=None, alias="organizationId"),
    call_status: SalesCallStatus = Query(default=SalesCallStatus.completed, alias="status"),
    limit: int = 50,
) -> SalesCallRecordsResponse:
    service = SalesCallService(get_settings())
    return service.list_sales_calls(
        organization_id=organization_id,
        call_status=call_status,
        limit=limit,
    )


@router.get(
    "/triggers/performance-alerts",
    response_model=PerformanceAlertsResponse,
)
def list_performance_alert_triggers(
    organization_id: str | None = Query(default=None, alias="organizationId"),
    alert_type: PerformanceAlertType | None = Query(default=None, alias="alertType"),
    limit: int = 50,
) -> PerformanceAlertsResponse:
    service = NotificationService(get_settings())
    return service.list_performance_alerts(
        organization_id=organization_id,
        alert_type=alert_type,
        limit=limit,
    )


@router.post(
    "/actions/create-sales-call",
    response_model=SalesCallRecord,
    status_code=status.HTTP_201_CREATED,
)
def create_sales_call(payload: CreateSalesCallRequest) -> SalesCallRecord:
    service = SalesCallService(get_settings())
    return service.create_sales_call(payload)


@router.post(
    "/actions/send-notification",
    response_model=NotificationRecord,
    status_code=status.HTTP_201_CREATED,
)
def send_notification(payload: SendNotificationRequest) -> NotificationRecord:
    service = NotificationService(get_settings())
    return service.send(payload)


@router.get(
    "/search/organizations",
    response_model=OrganizationSearchResponse,
)
def search_organizations(query: str | None = None) -> OrganizationSearchResponse:
    service = OrganizationService(get_settings())
    return service.search_organizations(query)
