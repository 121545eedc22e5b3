"""
Domain models for booking expiry reminders.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ReminderClass(Enum):
    """Reminder classes, each with its own day offset and dedup key prefix."""

    H15 = ("h15", "H-15", 15)
    H1 = ("h1", "H-1", 1)

    def __init__(self, key_prefix: str, label: str, days_ahead: int):
        self.key_prefix = key_prefix
        self.label = label
        self.days_ahead = days_ahead

    def reminder_key(self, booking_id: str) -> str:
        """Key used by the sent-reminder set, e.g. ``h15-<booking_id>``."""
        return f"{self.key_prefix}-{booking_id}"


@dataclass(slots=True)
class BookingCandidate:
    """Booking normalized from the bookings API, as seen by the reminder checks."""

    booking_id: str
    status: str
    end_date: datetime
    phone_number: str | None = None
    user_id: str = "unknown"
    customer_name: str = "Customer"
    room_type: str = "Unknown"
    order_type: str = "MONTHLY"
    start_date: datetime | None = None
    amount: float = 0


@dataclass(slots=True)
class ReminderStats:
    """Counters since the last daily reset."""

    count_by_class: dict[ReminderClass, int] = field(
        default_factory=lambda: {reminder_class: 0 for reminder_class in ReminderClass}
    )
    successful: int = 0
    failed: int = 0
    details: list[str] = field(default_factory=list)

    def add_detail(self, detail: str, limit: int) -> None:
        self.details.append(detail)
        if len(self.details) > limit:
            del self.details[: len(self.details) - limit]

    def snapshot(self) -> dict:
        return {
            "h15_count": self.count_by_class[ReminderClass.H15],
            "h1_count": self.count_by_class[ReminderClass.H1],
            "successful": self.successful,
            "failed": self.failed,
            "details": list(self.details),
        }
