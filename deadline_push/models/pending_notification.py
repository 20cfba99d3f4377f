from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from deadline_push.db.database import Base


class PendingNotification(Base):
    __tablename__ = "pending_notifications"

    id: Mapped[int] = mapped_column(primary_key=True)
    # Back-references used only to find entries when a schedule is removed
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    schedule_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    # Hour-aligned instant, stored as naive UTC; the dispatch key
    fire_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<PendingNotification {self.owner_id}/{self.schedule_id} "
            f"at={self.fire_at.isoformat()} retries={self.retry_count}>"
        )
