"""
Bookings API client.

Fetches the current booking list from the frontend API and normalizes each raw
booking into a BookingCandidate for the reminder checks. Read-only; every
transport or payload problem surfaces as FetchFailure so the calling handler
can log it and treat the tick as having zero candidates.
"""

from datetime import UTC, datetime
from typing import Any

import httpx

from app.infrastructure.observability.logging import get_logger
from app.models.domain.reminder_domain import BookingCandidate

logger = get_logger(__name__)

REQUEST_TIMEOUT = 15  # seconds


class FetchFailure(Exception):
    """Candidate records could not be fetched for this tick."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def parse_booking_datetime(value: Any) -> datetime | None:
    """
    Parse the date shapes the bookings API produces.

    Accepts ISO-8601 strings (with or without ``Z``), epoch milliseconds and
    serialized Firestore timestamps (``{"_seconds": ...}``). Naive values are
    taken as UTC.
    """
    if value is None or value == "":
        return None

    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, int | float):
            parsed = datetime.fromtimestamp(value / 1000, tz=UTC)
        elif isinstance(value, dict):
            seconds = value.get("_seconds", value.get("seconds"))
            if seconds is None:
                return None
            parsed = datetime.fromtimestamp(float(seconds), tz=UTC)
        else:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (TypeError, ValueError, OverflowError, OSError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _nested(raw: dict, key: str) -> dict:
    value = raw.get(key)
    return value if isinstance(value, dict) else {}


def normalize_booking(raw: dict) -> BookingCandidate | None:
    """Map a raw booking payload to a BookingCandidate, or None if it has no usable end date."""
    rental_period = _nested(raw, "rentalPeriod")
    contact_info = _nested(raw, "contactInfo")
    room = _nested(raw, "room")

    booking_id = raw.get("id")
    end_date = parse_booking_datetime(rental_period.get("endDate") or raw.get("endDate"))
    if not booking_id or end_date is None:
        return None

    return BookingCandidate(
        booking_id=str(booking_id),
        status=str(raw.get("rentalStatus") or raw.get("status") or ""),
        end_date=end_date,
        phone_number=contact_info.get("whatsapp") or contact_info.get("phone"),
        user_id=raw.get("userId") or "unknown",
        customer_name=contact_info.get("name") or "Customer",
        room_type=room.get("type") or raw.get("roomType") or "Unknown",
        order_type=rental_period.get("durationType") or "MONTHLY",
        start_date=parse_booking_datetime(rental_period.get("startDate") or raw.get("startDate")),
        amount=raw.get("totalAmount") or 0,
    )


class BookingSourceClient:
    """HTTP client for ``GET /api/bookings`` on the frontend."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def fetch_candidate_records(self) -> list[BookingCandidate]:
        """
        Fetch and normalize every booking.

        Raises:
            FetchFailure: on transport errors, non-2xx responses or malformed payloads
        """
        logger.info("Fetching bookings", endpoint=self.endpoint)

        try:
            response = await self._client.get(self.endpoint)
        except httpx.RequestError as e:
            raise FetchFailure(f"Failed to fetch bookings: {e}") from e

        if not response.is_success:
            raise FetchFailure(
                f"Failed to fetch bookings: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise FetchFailure(f"Invalid bookings response: {e}") from e

        raw_bookings = payload.get("bookings") if isinstance(payload, dict) else None
        if raw_bookings is None:
            raw_bookings = []
        if not isinstance(raw_bookings, list):
            raise FetchFailure("Invalid bookings response: 'bookings' is not a list")

        candidates = []
        skipped = 0
        for raw in raw_bookings:
            candidate = normalize_booking(raw) if isinstance(raw, dict) else None
            if candidate is None:
                skipped += 1
                continue
            candidates.append(candidate)

        if skipped:
            logger.warning("Skipped bookings without id or end date", skipped=skipped)

        logger.info("Bookings fetched", total=len(raw_bookings), usable=len(candidates))
        return candidates
