from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from deadline_push.db.database import Base
from deadline_push.models import PendingNotification
from deadline_push.notifications.canceller import ScheduleCanceller
from deadline_push.notifications.events import ScheduleDeleted


@pytest.fixture
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    Base.metadata.drop_all(engine)


@pytest.fixture
def mixed_queue(db_session):
    """Two reminders for the target schedule plus neighbours that must survive."""
    rows = [
        ("alice", 1, 0),
        ("alice", 1, 1),
        ("alice", 2, 0),  # same owner, other schedule
        ("bob", 1, 0),  # same schedule id, other owner
    ]
    for owner_id, schedule_id, day in rows:
        db_session.add(
            PendingNotification(
                owner_id=owner_id,
                schedule_id=schedule_id,
                payload={"token": owner_id},
                fire_at=datetime(2026, 10, 18 + day, 0, 0),
            )
        )
    db_session.commit()


def remaining(session):
    return sorted(
        (n.owner_id, n.schedule_id) for n in session.query(PendingNotification).all()
    )


def test_removes_only_matching_schedule(db_session, mixed_queue):
    removed = ScheduleCanceller(db_session).cancel(
        ScheduleDeleted(owner_id="alice", schedule_id=1)
    )

    assert removed == 2
    assert remaining(db_session) == [("alice", 2), ("bob", 1)]


def test_nothing_to_cancel(db_session, mixed_queue):
    removed = ScheduleCanceller(db_session).cancel(
        ScheduleDeleted(owner_id="carol", schedule_id=1)
    )

    assert removed == 0
    assert len(remaining(db_session)) == 4


def test_commit_failure_keeps_every_entry(db_session, mixed_queue):
    canceller = ScheduleCanceller(db_session)
    with patch.object(db_session, "commit", side_effect=SQLAlchemyError("locked")):
        with pytest.raises(SQLAlchemyError):
            canceller.cancel(ScheduleDeleted(owner_id="alice", schedule_id=1))

    assert len(remaining(db_session)) == 4
