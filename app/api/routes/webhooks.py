import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status

from app.core.config import get_settings
from app.schemas.external_analysis import ExternalAnalysisResponse
from app.services.external_analysis_service import ExternalAnalysisService

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = logging.getLogger(__name__)


@router.post(
    "/external-analysis",
    response_model=ExternalAnalysisResponse,
)
async def receive_external_analysis(request: Request) -> ExternalAnalysisResponse:
    return await process_external_analysis(request)


async def process_external_analysis(request: Request) -> ExternalAnalysisResponse:
    payload = await _load_payload(request)
    logger.info(
        "Webhook received source=external_analysis path=%s has_secret=%s",
        str(request.url.path),
        bool(_extract_shared_secret(request)),
    )

    service = ExternalAnalysisService(get_settings())
    try:
        response = service.ingest(payload, shared_secret=_extract_shared_secret(request))
    except HTTPException as exc:
        logger.warning(
            "Webhook rejected source=external_analysis path=%s status_code=%s detail=%s",
            str(request.url.path),
            exc.status_code,
            exc.detail,
        )
        raise

    side_effect_summary = ",".join(
        f"{outcome.name}:{outcome.status.value}" for outcome in response.data.side_effects
    )
    logger.info(
        "Webhook processed source=external_analysis path=%s meeting_id=%s sales_call_id=%s created=%s side_effects=%s",
        str(request.url.path),
        response.data.meeting_id,
        response.data.sales_call_id,
        response.data.sales_call_created,
        side_effect_summary,
    )
    return response


def _extract_shared_secret(request: Request) -> str | None:
    x_webhook_secret = request.headers.get("x-webhook-secret")
    if x_webhook_secret:
        return x_webhook_secret.strip()

    authorization = request.headers.get("authorization")
    if not authorization:
        return None

    auth_scheme, _, auth_token = authorization.partition(" ")
    if auth_scheme.lower() != "bearer":
        return None

    token = auth_token.strip()
    return token or None


async def _load_payload(request: Request) -> dict[str, Any]:
    raw_body = await request.body()
    try:
        parsed_payload = json.loads(raw_body or b"{}")
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Request body must be valid JSON.",
                "code": "VALIDATION_ERROR",
                "details": [],
            },
        ) from exc

    if not isinstance(parsed_payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Request body must be a JSON object.",
                "code": "VALIDATION_ERROR",
                "details": [],
            },
        )

    return parsed_payload
