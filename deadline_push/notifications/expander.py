from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from deadline_push.models.pending_notification import PendingNotification
from deadline_push.models.user import User
from deadline_push.notifications.clock import (
    at_hour,
    end_of_day,
    to_reference,
    to_storage,
    utcnow,
)
from deadline_push.notifications.events import ScheduleCreated
from deadline_push.notifications.formatter import format_reminder


class OwnerAddressNotFound(LookupError):
    """The schedule owner is unknown or has no push delivery address."""


def plan_fire_times(
    deadline: datetime, notification_hour: int, now: datetime
) -> List[datetime]:
    """One reference-zone fire time per day, from the first upcoming
    ``notification_hour`` through the deadline's calendar day inclusive.

    If the hour has already been reached today, planning starts tomorrow.
    An empty list means the deadline passes before the first reminder.
    """
    local_now = to_reference(now)
    day = local_now.date()
    if local_now.hour >= notification_hour:
        day += timedelta(days=1)

    last = end_of_day(deadline)
    fire_times = []
    fire_at = at_hour(day, notification_hour)
    while fire_at <= last:
        fire_times.append(fire_at)
        day += timedelta(days=1)
        fire_at = at_hour(day, notification_hour)
    return fire_times


class ScheduleExpander:
    """Turns a newly created schedule into its queue of daily reminders."""

    def __init__(self, session: Session):
        self.session = session

    def _owner_address(self, owner_id: str) -> str:
        user = self.session.get(User, owner_id)
        if user is None:
            raise OwnerAddressNotFound(f"User {owner_id} does not exist")
        if not user.fcm_token:
            raise OwnerAddressNotFound(f"User {owner_id} has no push token")
        return user.fcm_token

    def expand(
        self, event: ScheduleCreated, now: Optional[datetime] = None
    ) -> List[PendingNotification]:
        """Queue every reminder of ``event`` in a single transaction.

        Running this twice for the same schedule queues every reminder twice.
        """
        address = self._owner_address(event.owner_id)
        fire_times = plan_fire_times(
            event.deadline, event.notification_hour, now or utcnow()
        )

        entries = [
            PendingNotification(
                owner_id=event.owner_id,
                schedule_id=event.schedule_id,
                payload=format_reminder(event.content, address, fire_at),
                fire_at=to_storage(fire_at),
                retry_count=0,
            )
            for fire_at in fire_times
        ]

        try:
            self.session.add_all(entries)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

        if entries:
            logger.info(
                f"Queued {len(entries)} reminders for schedule "
                f"{event.schedule_id} of user {event.owner_id} "
                f"({fire_times[0].date()} .. {fire_times[-1].date()})"
            )
        else:
            logger.info(
                f"Schedule {event.schedule_id} of user {event.owner_id} "
                f"ends before its first reminder, nothing queued"
            )
        return entries
