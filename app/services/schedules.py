"""
Recurrence expressions supported by the job scheduler.

Only a small, closed set of 5-field cron expressions is accepted:

    M H * * *      daily at H:M (e.g. "0 9 * * *", "0 0 * * *")
    */N * * * *    every N minutes, N dividing 60 (e.g. "*/15 * * * *")
    M * * * *      hourly at minute M (e.g. "0 * * * *")
    M H * * D      weekly on weekday D at H:M, 0 or 7 = Sunday (e.g. "0 0 * * 0")

Everything else raises InvalidScheduleError.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

ScheduleKind = Literal["daily", "interval", "hourly", "weekly"]


class InvalidScheduleError(ValueError):
    """Raised for recurrence expressions outside the supported set."""

    def __init__(self, expression: str, reason: str):
        super().__init__(f"Invalid cron expression: {expression} ({reason})")
        self.expression = expression
        self.reason = reason


@dataclass(frozen=True, slots=True)
class Schedule:
    """A parsed recurrence expression."""

    expression: str
    kind: ScheduleKind
    minute: int = 0
    hour: int = 0
    weekday: int = 0  # cron numbering, 0 = Sunday
    interval_minutes: int = 0

    def next_after(self, moment: datetime) -> datetime:
        """Return the first matching instant strictly after ``moment``."""
        base = moment.replace(second=0, microsecond=0)

        if self.kind == "interval":
            slots = base.minute // self.interval_minutes + 1
            return base.replace(minute=0) + timedelta(minutes=slots * self.interval_minutes)

        if self.kind == "hourly":
            candidate = base.replace(minute=self.minute)
            if candidate <= moment:
                candidate += timedelta(hours=1)
            return candidate

        candidate = base.replace(hour=self.hour, minute=self.minute)

        if self.kind == "weekly":
            current = (candidate.weekday() + 1) % 7
            candidate += timedelta(days=(self.weekday - current) % 7)
            if candidate <= moment:
                candidate += timedelta(days=7)
            return candidate

        if candidate <= moment:
            candidate += timedelta(days=1)
        return candidate


def _parse_field(value: str, low: int, high: int, expression: str, name: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise InvalidScheduleError(expression, f"unsupported {name} field '{value}'")
    number = int(value)
    if not low <= number <= high:
        raise InvalidScheduleError(expression, f"{name} out of range")
    return number


def parse_schedule(expression: str) -> Schedule:
    """
    Parse a cron expression into a Schedule.

    Raises:
        InvalidScheduleError: if the expression is not one of the supported shapes
    """
    if not isinstance(expression, str):
        raise InvalidScheduleError(str(expression), "expression must be a string")

    parts = expression.split()
    if len(parts) != 5:
        raise InvalidScheduleError(expression, "expected 5 fields")

    minute, hour, day_of_month, month, day_of_week = parts
    if day_of_month != "*" or month != "*":
        raise InvalidScheduleError(expression, "day-of-month and month must be '*'")

    if minute.startswith("*/"):
        if hour != "*" or day_of_week != "*":
            raise InvalidScheduleError(expression, "minute intervals cannot be combined")
        interval = _parse_field(minute[2:], 1, 60, expression, "interval")
        if 60 % interval:
            raise InvalidScheduleError(expression, "interval must divide 60")
        return Schedule(expression=expression, kind="interval", interval_minutes=interval)

    minute_value = _parse_field(minute, 0, 59, expression, "minute")

    if hour == "*":
        if day_of_week != "*":
            raise InvalidScheduleError(expression, "weekly schedules need a fixed hour")
        return Schedule(expression=expression, kind="hourly", minute=minute_value)

    hour_value = _parse_field(hour, 0, 23, expression, "hour")

    if day_of_week == "*":
        return Schedule(expression=expression, kind="daily", minute=minute_value, hour=hour_value)

    weekday = _parse_field(day_of_week, 0, 7, expression, "day-of-week") % 7
    return Schedule(
        expression=expression,
        kind="weekly",
        minute=minute_value,
        hour=hour_value,
        weekday=weekday,
    )
