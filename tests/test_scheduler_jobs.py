from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from deadline_push.notifications.dispatcher import DispatchSummary


class TestRunHourlyDispatch:
    @patch("deadline_push.scheduler.jobs.NotificationDispatcher")
    @patch("deadline_push.scheduler.jobs.get_sync_session")
    def test_dispatches_given_hour(self, mock_get_session, mock_dispatcher_cls):
        session = MagicMock()
        mock_get_session.return_value.__enter__ = MagicMock(return_value=session)
        mock_get_session.return_value.__exit__ = MagicMock(return_value=False)
        now = datetime(2026, 10, 18, 3, 0, tzinfo=timezone.utc)
        expected = DispatchSummary(fire_at=now, matched=2, delivered=2)
        mock_dispatcher_cls.return_value.dispatch.return_value = expected

        from deadline_push.scheduler.jobs import run_hourly_dispatch

        summary = run_hourly_dispatch(now)

        assert summary is expected
        mock_dispatcher_cls.assert_called_once_with(session)
        mock_dispatcher_cls.return_value.dispatch.assert_called_once_with(now)

    @patch("deadline_push.scheduler.jobs.NotificationDispatcher")
    @patch("deadline_push.scheduler.jobs.get_sync_session")
    def test_query_failure_propagates(self, mock_get_session, mock_dispatcher_cls):
        mock_get_session.return_value.__enter__ = MagicMock(return_value=MagicMock())
        mock_get_session.return_value.__exit__ = MagicMock(return_value=False)
        mock_dispatcher_cls.return_value.dispatch.side_effect = OperationalError(
            "SELECT", {}, Exception("no such table")
        )

        from deadline_push.scheduler.jobs import run_hourly_dispatch

        with pytest.raises(OperationalError):
            run_hourly_dispatch()


def test_scheduler_runs_dispatch_every_hour():
    from deadline_push.scheduler.jobs import run_hourly_dispatch
    from deadline_push.scheduler.runner import create_scheduler

    scheduler = create_scheduler()
    job = scheduler.get_job("hourly_dispatch")

    assert job is not None
    assert job.func is run_hourly_dispatch
    minute_field = next(f for f in job.trigger.fields if f.name == "minute")
    assert str(minute_field) == "0"


def test_sync_sessions_share_one_engine():
    from deadline_push.scheduler.jobs import get_sync_session, sync_engine

    first = get_sync_session()
    second = get_sync_session()
    try:
        assert first.get_bind() is sync_engine
        assert second.get_bind() is sync_engine
    finally:
        first.close()
        second.close()
