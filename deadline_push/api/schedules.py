from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deadline_push.db.database import get_db
from deadline_push.models.pending_notification import PendingNotification
from deadline_push.models.schedule import Schedule
from deadline_push.models.user import User
from deadline_push.notifications.canceller import ScheduleCanceller
from deadline_push.notifications.clock import from_storage, to_reference, to_storage
from deadline_push.notifications.events import ScheduleCreated, ScheduleDeleted
from deadline_push.notifications.expander import OwnerAddressNotFound, ScheduleExpander

router = APIRouter(prefix="/api/users/{owner_id}/schedules", tags=["schedules"])


class CreateScheduleRequest(BaseModel):
    content: str = Field(min_length=1, max_length=500)
    deadline: datetime  # naive values are read as UTC
    notification_hour: int = Field(ge=0, le=23)


class ScheduleResponse(BaseModel):
    id: int
    owner_id: str
    content: str
    deadline: str
    notification_hour: int
    queued: int


class PendingNotificationResponse(BaseModel):
    id: int
    fire_at: str
    retry_count: int
    last_error: Optional[str]


async def _get_owned_schedule(
    db: AsyncSession, owner_id: str, schedule_id: int
) -> Schedule:
    schedule = await db.get(Schedule, schedule_id)
    if schedule is None or schedule.owner_id != owner_id:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return schedule


@router.post("", status_code=201, response_model=ScheduleResponse)
async def create_schedule(
    owner_id: str, body: CreateScheduleRequest, db: AsyncSession = Depends(get_db)
):
    if await db.get(User, owner_id) is None:
        raise HTTPException(status_code=404, detail="User not found")

    schedule = Schedule(
        owner_id=owner_id,
        content=body.content,
        deadline=to_storage(body.deadline),
        notification_hour=body.notification_hour,
    )
    db.add(schedule)
    await db.commit()
    await db.refresh(schedule)

    event = ScheduleCreated.from_schedule(schedule)
    try:
        entries = await db.run_sync(lambda session: ScheduleExpander(session).expand(event))
    except OwnerAddressNotFound as e:
        logger.warning(f"Schedule {schedule.id} saved without reminders: {e}")
        raise HTTPException(
            status_code=409,
            detail="Schedule saved, but the owner has no push token; no reminders queued",
        )

    return ScheduleResponse(
        id=schedule.id,
        owner_id=owner_id,
        content=schedule.content,
        deadline=to_reference(from_storage(schedule.deadline)).isoformat(),
        notification_hour=schedule.notification_hour,
        queued=len(entries),
    )


@router.delete("/{schedule_id}")
async def delete_schedule(
    owner_id: str, schedule_id: int, db: AsyncSession = Depends(get_db)
):
    schedule = await _get_owned_schedule(db, owner_id, schedule_id)
    await db.delete(schedule)
    await db.commit()

    event = ScheduleDeleted(owner_id=owner_id, schedule_id=schedule_id)
    cancelled = await db.run_sync(lambda session: ScheduleCanceller(session).cancel(event))
    return {"id": schedule_id, "cancelled": cancelled}


@router.get("/{schedule_id}/notifications", response_model=List[PendingNotificationResponse])
async def list_pending_notifications(
    owner_id: str, schedule_id: int, db: AsyncSession = Depends(get_db)
):
    await _get_owned_schedule(db, owner_id, schedule_id)
    result = await db.execute(
        select(PendingNotification)
        .where(
            PendingNotification.owner_id == owner_id,
            PendingNotification.schedule_id == schedule_id,
        )
        .order_by(PendingNotification.fire_at)
    )
    return [
        PendingNotificationResponse(
            id=n.id,
            fire_at=to_reference(from_storage(n.fire_at)).isoformat(),
            retry_count=n.retry_count,
            last_error=n.last_error,
        )
        for n in result.scalars().all()
    ]
