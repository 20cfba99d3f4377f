from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from deadline_push.config import get_settings
from deadline_push.models.pending_notification import PendingNotification
from deadline_push.notifications.clock import to_storage, truncate_to_hour, utcnow
from deadline_push.notifications.delivery import (
    Delivered,
    DeliveryResult,
    Failed,
    PushGateway,
    RetryAction,
    next_action,
)
from deadline_push.notifications.fcm import get_push_gateway


@dataclass
class DispatchSummary:
    fire_at: datetime
    matched: int = 0
    delivered: int = 0
    retried: int = 0
    dropped: int = 0
    cancelled: int = 0
    errors: int = 0


class NotificationDispatcher:
    """Delivers the pending reminders of one hour and settles each entry."""

    def __init__(self, session: Session, gateway: Optional[PushGateway] = None):
        self.session = session
        self.settings = get_settings()
        self.gateway = gateway if gateway is not None else get_push_gateway()

    def due(self, fire_at: datetime) -> List[PendingNotification]:
        """Entries whose fire time is exactly ``fire_at``."""
        return (
            self.session.query(PendingNotification)
            .filter_by(fire_at=to_storage(fire_at))
            .order_by(PendingNotification.id)
            .all()
        )

    def _attempt(self, message: Dict[str, Any]) -> DeliveryResult:
        try:
            return self.gateway.send(message)
        except Exception as e:
            return Failed(str(e) or e.__class__.__name__)

    async def _deliver_all(self, messages: List[Dict[str, Any]]) -> List[DeliveryResult]:
        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=self.settings.dispatch_max_workers) as pool:
            return await asyncio.gather(
                *(loop.run_in_executor(pool, self._attempt, m) for m in messages)
            )

    def _settle(
        self,
        entry_id: int,
        retry_count: int,
        result: DeliveryResult,
        summary: DispatchSummary,
    ) -> None:
        action = next_action(result, retry_count)

        if isinstance(result, Failed):
            logger.error(
                f"Delivery failed for pending notification {entry_id} "
                f"(attempt {retry_count + 1}): {result.reason}"
            )

        # Keyed by id so an entry cancelled meanwhile is not reloaded
        query = self.session.query(PendingNotification).filter_by(id=entry_id)
        try:
            if action is RetryAction.delete:
                affected = query.delete(synchronize_session=False)
            else:
                affected = query.update(
                    {"retry_count": retry_count + 1, "last_error": result.reason},
                    synchronize_session=False,
                )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            summary.errors += 1
            logger.error(f"Could not settle pending notification {entry_id}: {e}")
            return

        if not affected:
            summary.cancelled += 1
            logger.info(f"Pending notification {entry_id} was cancelled during dispatch")
        elif isinstance(result, Delivered):
            summary.delivered += 1
        elif action is RetryAction.retry:
            summary.retried += 1
        else:
            summary.dropped += 1

    def dispatch(self, now: Optional[datetime] = None) -> DispatchSummary:
        """Deliver every reminder due in the hour containing ``now``.

        Args:
            now: Any instant inside the hour to drain; defaults to the
                current time. Passing a past hour re-drains entries left
                behind by an earlier failure.

        Returns:
            Counts of matched, delivered, retried and dropped entries.
        """
        target = truncate_to_hour(now or utcnow())
        summary = DispatchSummary(fire_at=target)

        if not self.settings.notification_enabled:
            logger.info("Notifications are disabled, skipping dispatch")
            return summary
        if not self.gateway.is_configured():
            logger.warning("Push gateway is not configured, skipping dispatch")
            return summary

        entries = self.due(target)
        summary.matched = len(entries)
        if not entries:
            logger.info(f"No reminders due at {target.isoformat()}")
            return summary

        logger.info(f"Delivering {len(entries)} reminders due at {target.isoformat()}")
        # Snapshot before the first commit expires the loaded entries
        snapshot = [(entry.id, entry.retry_count, entry.payload) for entry in entries]
        results = asyncio.run(self._deliver_all([payload for _, _, payload in snapshot]))

        for (entry_id, retry_count, _), result in zip(snapshot, results):
            self._settle(entry_id, retry_count, result, summary)

        logger.info(
            f"Dispatch {target.isoformat()}: delivered={summary.delivered} "
            f"retried={summary.retried} dropped={summary.dropped} "
            f"cancelled={summary.cancelled} errors={summary.errors}"
        )
        return summary
