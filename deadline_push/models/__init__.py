from deadline_push.models.pending_notification import PendingNotification
from deadline_push.models.schedule import Schedule
from deadline_push.models.user import User

__all__ = [
    "PendingNotification",
    "Schedule",
    "User",
]
