import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from app.schemas.external_analysis import SideEffectOutcome, SideEffectStatus
from app.schemas.notification import NotificationPriority, NotificationType
from app.services.analytics_store import AnalyticsStore, build_analytics_record
from app.services.notification_store import NotificationStore, build_notification_record

logger = logging.getLogger(__name__)

ANALYTICS_RECORD = "analytics_record"
USER_NOTIFICATION = "user_notification"


class SideEffectSkipped(Exception):
    pass


@dataclass(frozen=True)
class SideEffectContext:
    organization_id: str | None
    user_id: str | None
    sales_call_id: str | None
    raw_payload: Mapping[str, Any]
    has_transcript: bool
    has_analysis: bool


class SideEffectDispatcher:
    def __init__(
        self,
        analytics_store: AnalyticsStore,
        notification_store: NotificationStore,
        *,
        notifications_enabled: bool = False,
        analytics_retention_days: int = 30,
    ) -> None:
        self.analytics_store = analytics_store
        self.notification_store = notification_store
        self.notifications_enabled = notifications_enabled
        self.analytics_retention_days = analytics_retention_days

    def dispatch(self, context: SideEffectContext) -> list[SideEffectOutcome]:
        attempts: tuple[tuple[str, Callable[[SideEffectContext], str]], ...] = (
            (ANALYTICS_RECORD, self._create_analytics_record),
            (USER_NOTIFICATION, self._create_user_notification),
        )
        return [self._run(name, action, context) for name, action in attempts]

    def _run(
        self,
        name: str,
        action: Callable[[SideEffectContext], str],
        context: SideEffectContext,
    ) -> SideEffectOutcome:
        try:
            record_id = action(context)
        except SideEffectSkipped as exc:
            outcome = SideEffectOutcome(name=name, status=SideEffectStatus.skipped, error=str(exc))
        except Exception as exc:
            logger.exception(
                "Side effect raised name=%s sales_call_id=%s",
                name,
                context.sales_call_id,
            )
            outcome = SideEffectOutcome(
                name=name,
                status=SideEffectStatus.failed,
                error=str(exc) or type(exc).__name__,
            )
        else:
            outcome = SideEffectOutcome(
                name=name,
                status=SideEffectStatus.succeeded,
                record_id=record_id,
            )

        logger.info(
            "Side effect result name=%s status=%s record_id=%s sales_call_id=%s error=%s",
            outcome.name,
            outcome.status.value,
            outcome.record_id,
            context.sales_call_id,
            outcome.error,
        )
        return outcome

    def _create_analytics_record(self, context: SideEffectContext) -> str:
        record = build_analytics_record(
            organization_id=context.organization_id,
            user_id=context.user_id,
            sales_call_id=context.sales_call_id,
            raw_payload=context.raw_payload,
            retention_days=self.analytics_retention_days,
        )
        return self.analytics_store.create(record)

    def _create_user_notification(self, context: SideEffectContext) -> str:
        # Kept behind a flag until notification validation accepts webhook-originated records.
        if not self.notifications_enabled:
            raise SideEffectSkipped("disabled")
        if not context.user_id:
            raise SideEffectSkipped("missing_user_id")

        record = build_notification_record(
            organization_id=context.organization_id,
            user_id=context.user_id,
            notification_type=NotificationType.call_completed.value,
            title="Call Analysis Complete",
            message="Your sales call has been analyzed. Check the analytics dashboard for insights.",
            priority=NotificationPriority.normal.value,
            data={
                "sales_call_id": context.sales_call_id,
                "has_transcript": context.has_transcript,
                "has_analysis": context.has_analysis,
            },
        )
        created = self.notification_store.create(record)
        return str(created.get("_id"))
