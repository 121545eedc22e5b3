from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from app.services.schedules import InvalidScheduleError, parse_schedule


def test_daily_after_fire_time_rolls_to_next_day():
    schedule = parse_schedule("0 9 * * *")

    assert schedule.kind == "daily"
    assert schedule.next_after(datetime(2025, 3, 10, 9, 5, tzinfo=UTC)) == datetime(
        2025, 3, 11, 9, 0, tzinfo=UTC
    )


def test_daily_before_fire_time_is_same_day():
    schedule = parse_schedule("0 9 * * *")

    assert schedule.next_after(datetime(2025, 3, 10, 8, 59, 30, tzinfo=UTC)) == datetime(
        2025, 3, 10, 9, 0, tzinfo=UTC
    )


def test_next_after_is_strictly_after():
    schedule = parse_schedule("0 0 * * *")
    midnight = datetime(2025, 3, 10, 0, 0, tzinfo=UTC)

    assert schedule.next_after(midnight) == datetime(2025, 3, 11, 0, 0, tzinfo=UTC)


def test_interval_aligns_to_clock():
    schedule = parse_schedule("*/15 * * * *")

    assert schedule.kind == "interval"
    assert schedule.next_after(datetime(2025, 3, 10, 9, 5, tzinfo=UTC)) == datetime(
        2025, 3, 10, 9, 15, tzinfo=UTC
    )
    assert schedule.next_after(datetime(2025, 3, 10, 9, 15, tzinfo=UTC)) == datetime(
        2025, 3, 10, 9, 30, tzinfo=UTC
    )
    assert schedule.next_after(datetime(2025, 3, 10, 23, 50, tzinfo=UTC)) == datetime(
        2025, 3, 11, 0, 0, tzinfo=UTC
    )


def test_hourly():
    schedule = parse_schedule("30 * * * *")

    assert schedule.kind == "hourly"
    assert schedule.next_after(datetime(2025, 3, 10, 9, 5, tzinfo=UTC)) == datetime(
        2025, 3, 10, 9, 30, tzinfo=UTC
    )
    assert schedule.next_after(datetime(2025, 3, 10, 9, 45, tzinfo=UTC)) == datetime(
        2025, 3, 10, 10, 30, tzinfo=UTC
    )


def test_weekly_sunday():
    # 2025-03-10 is a Monday
    schedule = parse_schedule("0 0 * * 0")

    assert schedule.kind == "weekly"
    assert schedule.next_after(datetime(2025, 3, 10, 9, 5, tzinfo=UTC)) == datetime(
        2025, 3, 16, 0, 0, tzinfo=UTC
    )


def test_weekly_seven_is_sunday():
    assert parse_schedule("0 0 * * 7").weekday == 0


def test_weekly_same_day_later_time():
    schedule = parse_schedule("0 18 * * 1")

    assert schedule.next_after(datetime(2025, 3, 10, 9, 5, tzinfo=UTC)) == datetime(
        2025, 3, 10, 18, 0, tzinfo=UTC
    )
    assert schedule.next_after(datetime(2025, 3, 10, 18, 0, tzinfo=UTC)) == datetime(
        2025, 3, 17, 18, 0, tzinfo=UTC
    )


def test_evaluated_in_local_timezone():
    jakarta = ZoneInfo("Asia/Jakarta")
    schedule = parse_schedule("0 9 * * *")

    result = schedule.next_after(datetime(2025, 3, 10, 7, 0, tzinfo=jakarta))

    assert result == datetime(2025, 3, 10, 9, 0, tzinfo=jakarta)
    assert result.utcoffset().total_seconds() == 7 * 3600


@pytest.mark.parametrize(
    "expression",
    [
        "",
        "0 9 * *",
        "0 9 * * * *",
        "0 9 1 * *",
        "0 9 * 1 *",
        "*/7 * * * *",
        "*/0 * * * *",
        "*/15 9 * * *",
        "60 9 * * *",
        "0 24 * * *",
        "0 9 * * 8",
        "0 * * * 1",
        "a 9 * * *",
        "0-5 9 * * *",
    ],
)
def test_rejects_unsupported_expressions(expression):
    with pytest.raises(InvalidScheduleError) as exc_info:
        parse_schedule(expression)

    assert "Invalid cron expression" in str(exc_info.value)


def test_invalid_schedule_is_a_value_error():
    with pytest.raises(ValueError):
        parse_schedule("not a cron")
