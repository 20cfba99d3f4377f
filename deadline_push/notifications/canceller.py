from __future__ import annotations

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from deadline_push.models.pending_notification import PendingNotification
from deadline_push.notifications.events import ScheduleDeleted


class ScheduleCanceller:
    """Removes the remaining reminders of a deleted schedule."""

    def __init__(self, session: Session):
        self.session = session

    def cancel(self, event: ScheduleDeleted) -> int:
        entries = (
            self.session.query(PendingNotification)
            .filter_by(owner_id=event.owner_id, schedule_id=event.schedule_id)
            .all()
        )

        try:
            for entry in entries:
                self.session.delete(entry)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

        logger.info(
            f"Cancelled {len(entries)} reminders for schedule "
            f"{event.schedule_id} of user {event.owner_id}"
        )
        return len(entries)
