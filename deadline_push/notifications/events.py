"""Typed trigger payloads, validated before they reach the components."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from deadline_push.notifications.clock import from_storage, utcnow


class ScheduleCreated(BaseModel):
    owner_id: str = Field(min_length=1)
    schedule_id: int
    content: str
    deadline: datetime
    notification_hour: int = Field(ge=0, le=23)

    @classmethod
    def from_schedule(cls, schedule) -> "ScheduleCreated":
        return cls(
            owner_id=schedule.owner_id,
            schedule_id=schedule.id,
            content=schedule.content,
            deadline=from_storage(schedule.deadline),
            notification_hour=schedule.notification_hour,
        )


class ScheduleDeleted(BaseModel):
    owner_id: str = Field(min_length=1)
    schedule_id: int


class HourlyTick(BaseModel):
    now: datetime = Field(default_factory=utcnow)
