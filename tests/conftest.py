from datetime import UTC, datetime, timedelta

import pytest

from app.auth.verify import api_key_dependency
from app.models.domain.queue_domain import DeliveryOutcome, QueueItem
from app.models.domain.reminder_domain import BookingCandidate


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current

    def set(self, moment: datetime) -> None:
        self.current = moment


class RecordingProcessor:
    """Delivery callback that records calls and can fail on demand."""

    def __init__(self, fail: bool = False, raise_error: bool = False):
        self.fail = fail
        self.raise_error = raise_error
        self.calls: list[QueueItem] = []

    async def __call__(self, item: QueueItem) -> DeliveryOutcome:
        self.calls.append(item)
        if self.raise_error:
            raise RuntimeError("socket closed")
        if self.fail:
            return DeliveryOutcome.failed(item.id, "not connected")
        return DeliveryOutcome(item_id=item.id, success=True)


class FakeBookingSource:
    def __init__(self, bookings: list[BookingCandidate] | None = None):
        self.bookings = bookings or []
        self.error: Exception | None = None
        self.calls = 0

    async def fetch_candidate_records(self) -> list[BookingCandidate]:
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.bookings)


def make_booking(booking_id: str, end_date: datetime, **overrides) -> BookingCandidate:
    values = {
        "booking_id": booking_id,
        "status": "APPROVED",
        "end_date": end_date,
        "phone_number": "628111000111",
        "customer_name": "Budi",
        "room_type": "Deluxe",
        "order_type": "MONTHLY",
    }
    values.update(overrides)
    return BookingCandidate(**values)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 10, 9, 5, tzinfo=UTC))


@pytest.fixture
def processor():
    return RecordingProcessor()


@pytest.fixture
def booking_source():
    return FakeBookingSource()


@pytest.fixture
def auth_override():
    def _override():
        return "test-key"

    return _override


@pytest.fixture
def apply_auth_override(auth_override):
    def _apply(app):
        app.dependency_overrides[api_key_dependency] = auth_override

    return _apply


@pytest.fixture
def booking_factory():
    return make_booking


@pytest.fixture
def processor_factory():
    return RecordingProcessor


@pytest.fixture
def clock_factory():
    return FakeClock
