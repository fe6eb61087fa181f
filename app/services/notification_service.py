import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from fastapi import HTTPException, status

from app.core.config import Settings
from app.schemas.notification import (
    NotificationPriority,
    NotificationRecord,
    NotificationType,
    SendNotificationRequest,
)
from app.schemas.zapier import (
    PerformanceAlertReceipt,
    PerformanceAlertRecord,
    PerformanceAlertRequest,
    PerformanceAlertResponse,
    PerformanceAlertsResponse,
    PerformanceAlertType,
)
from app.services.notification_store import (
    NotificationStore,
    build_notification_record,
    create_notification_store,
)

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, settings: Settings, store: NotificationStore | None = None) -> None:
        self.settings = settings
        self.store = store or create_notification_store(settings)

    def send(self, payload: SendNotificationRequest) -> NotificationRecord:
        record = build_notification_record(
            organization_id=str(payload.organization_id) if payload.organization_id else None,
            user_id=str(payload.user_id) if payload.user_id else None,
            notification_type=payload.type.value,
            title=payload.title.strip(),
            message=payload.message.strip(),
            priority=payload.priority.value,
        )
        try:
            created = self.store.create(record)
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to persist notification.",
            ) from exc

        logger.info(
            "Notification sent notification_id=%s user_id=%s organization_id=%s type=%s",
            created.get("_id"),
            record["user_id"],
            record["organization_id"],
            record["type"],
        )
        return _map_notification(created)

    def send_performance_alert(self, payload: PerformanceAlertRequest) -> PerformanceAlertResponse:
        user_id = str(payload.user_id)
        record = build_notification_record(
            organization_id=str(payload.organization_id),
            user_id=user_id,
            notification_type=NotificationType.performance_alert.value,
            title=f"Performance Alert: {payload.alert_type.value.replace('_', ' ').upper()}",
            message="Performance metrics have triggered an alert. Check your dashboard for details.",
            priority=NotificationPriority.high.value,
            data={
                "alert_type": payload.alert_type.value,
                "metrics": dict(payload.metrics),
                "threshold": payload.threshold,
                "action_url": f"/analytics/user/{user_id}",
            },
        )
        try:
            created = self.store.create(record)
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to persist performance alert.",
            ) from exc

        logger.info(
            "Performance alert received notification_id=%s user_id=%s organization_id=%s alert_type=%s",
            created.get("_id"),
            user_id,
            record["organization_id"],
            payload.alert_type.value,
        )
        return PerformanceAlertResponse(
            message="Performance alert processed successfully",
            data=PerformanceAlertReceipt(
                notification_id=str(created.get("_id")),
                user_id=user_id,
                alert_type=payload.alert_type,
                processed_at=datetime.now(UTC),
            ),
        )

    def list_performance_alerts(
        self,
        *,
        organization_id: str | None = None,
        alert_type: PerformanceAlertType | None = None,
        limit: int = 50,
    ) -> PerformanceAlertsResponse:
        try:
            raw_items = self.store.list_recent(
                limit=min(max(limit, 1), self.settings.triggers_max_limit),
                organization_id=organization_id,
                notification_type=NotificationType.performance_alert.value,
                alert_type=alert_type.value if alert_type else None,
                unread_only=True,
            )
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to query notification storage.",
            ) from exc

        return PerformanceAlertsResponse(items=[_map_performance_alert(record) for record in raw_items])


def _map_notification(record: Mapping[str, Any]) -> NotificationRecord:
    data = record.get("data")
    return NotificationRecord(
        id=str(record.get("_id")),
        organization_id=record.get("organization_id"),
        user_id=record.get("user_id"),
        type=record["type"],
        title=str(record.get("title", "")),
        message=str(record.get("message", "")),
        priority=record["priority"],
        data=dict(data) if isinstance(data, Mapping) else {},
        is_read=bool(record.get("is_read", False)),
        created_at=record["created_at"],
    )


def _map_performance_alert(record: Mapping[str, Any]) -> PerformanceAlertRecord:
    data = record.get("data")
    if not isinstance(data, Mapping):
        data = {}
    metrics = data.get("metrics")
    threshold = data.get("threshold")
    return PerformanceAlertRecord(
        id=str(record.get("_id")),
        organization_id=record.get("organization_id"),
        user_id=record.get("user_id"),
        title=str(record.get("title", "")),
        message=str(record.get("message", "")),
        priority=record.get("priority", NotificationPriority.high.value),
        alert_type=data.get("alert_type"),
        metrics=dict(metrics) if isinstance(metrics, Mapping) else {},
        threshold=threshold if isinstance(threshold, int | float) else None,
        action_url=data.get("action_url"),
        created_at=record["created_at"],
    )
