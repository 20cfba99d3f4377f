from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from deadline_push.config import get_settings
from deadline_push.notifications.clock import to_reference


def format_reminder(content: str, address: str, fire_at: datetime) -> Dict[str, Any]:
    """Build the push message for one daily reminder.

    Returns:
        FCM v1 message dict with "token" and a string-only "data" section.
    """
    settings = get_settings()
    return {
        "token": address,
        "data": {
            "title": settings.notification_title,
            "body": f"Don't forget '{content}'!",
            "scheduled_date": to_reference(fire_at).isoformat(),
        },
    }
