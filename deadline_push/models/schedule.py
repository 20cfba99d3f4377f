from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deadline_push.db.database import Base
from deadline_push.models.base import TimestampMixin

if TYPE_CHECKING:
    from deadline_push.models.user import User


class Schedule(Base, TimestampMixin):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    content: Mapped[str] = mapped_column(String(500), nullable=False)
    deadline: Mapped[datetime] = mapped_column(DateTime, nullable=False)  # naive UTC
    notification_hour: Mapped[int] = mapped_column(Integer, nullable=False)

    owner: Mapped["User"] = relationship(back_populates="schedules")

    def __repr__(self) -> str:
        return f"<Schedule {self.owner_id}/{self.id} @{self.notification_hour:02d}h>"
