from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deadline_push.db.database import Base
from deadline_push.models.base import TimestampMixin

if TYPE_CHECKING:
    from deadline_push.models.schedule import Schedule


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    # Push delivery address, registered outside this service
    fcm_token: Mapped[Optional[str]] = mapped_column(String(512))

    schedules: Mapped[List["Schedule"]] = relationship(back_populates="owner")

    def __repr__(self) -> str:
        return f"<User {self.id}>"
