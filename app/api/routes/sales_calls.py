from fastapi import APIRouter

from app.core.config import get_settings
from app.schemas.sales_call import AnalyticsRecordsResponse, SalesCallRecord
from app.services.sales_call_service import SalesCallService

router = APIRouter(prefix="/sales-calls", tags=["sales-calls"])


@router.get(
    "/{sales_call_id}",
    response_model=SalesCallRecord,
)
def get_sales_call(sales_call_id: str) -> SalesCallRecord:
    service = SalesCallService(get_settings())
    return service.get_sales_call(sales_call_id)


@router.get(
    "/{sales_call_id}/analytics",
    response_model=AnalyticsRecordsResponse,
)
def list_sales_call_analytics(sales_call_id: str, limit: int = 50) -> AnalyticsRecordsResponse:
    service = SalesCallService(get_settings())
    return service.list_analytics_records(sales_call_id, limit=limit)
