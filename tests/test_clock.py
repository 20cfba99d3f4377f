from datetime import date, datetime, timedelta, timezone

from deadline_push.notifications.clock import (
    REFERENCE_TZ,
    at_hour,
    end_of_day,
    from_storage,
    to_reference,
    to_storage,
    truncate_to_hour,
)


def test_reference_zone_is_fixed_utc_plus_nine():
    assert REFERENCE_TZ.utcoffset(None) == timedelta(hours=9)


def test_to_reference_treats_naive_as_utc():
    local = to_reference(datetime(2026, 10, 18, 15, 0))
    assert local == datetime(2026, 10, 19, 0, 0, tzinfo=REFERENCE_TZ)
    assert local.date() == date(2026, 10, 19)


def test_truncate_to_hour_zeroes_everything_below_the_hour():
    instant = datetime(2026, 10, 18, 0, 59, 59, 999999, tzinfo=timezone.utc)
    truncated = truncate_to_hour(instant)
    assert truncated == datetime(2026, 10, 18, 9, 0, tzinfo=REFERENCE_TZ)
    assert (truncated.minute, truncated.second, truncated.microsecond) == (0, 0, 0)


def test_end_of_day_uses_reference_calendar_day():
    # 20:00 UTC is already the next day in UTC+9
    instant = datetime(2026, 10, 18, 20, 0, tzinfo=timezone.utc)
    assert end_of_day(instant) == datetime(
        2026, 10, 19, 23, 59, 59, 999000, tzinfo=REFERENCE_TZ
    )


def test_storage_round_trip_is_naive_utc():
    fire_at = at_hour(date(2026, 10, 18), 9)
    stored = to_storage(fire_at)
    assert stored == datetime(2026, 10, 18, 0, 0)
    assert stored.tzinfo is None
    assert from_storage(stored) == fire_at
