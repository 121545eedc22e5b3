"""
Booking expiry reminders.

Registers three recurring jobs with the job scheduler:

    booking-reminder-h15          bookings ending in ~15 days
    booking-reminder-h1           bookings ending in ~1 day
    booking-reminder-reset-stats  clears counters and the sent-reminder set

Each check fetches bookings, keeps the active ones whose end date is within
one day of the target date, and enqueues one message per booking that has not
been reminded for that class yet. The sent-reminder set is the only
idempotency mechanism and lives in memory: a process restart forgets it, so a
restarted process may remind the same booking again the same day.

Dedup is per reminder class (``h15-<id>``, ``h1-<id>``), so one booking can
get both an H-15 and an H-1 reminder.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from app.infrastructure.observability.logging import get_logger
from app.models.domain.reminder_domain import BookingCandidate, ReminderClass, ReminderStats
from app.services.booking_source import FetchFailure
from app.services.delivery_queue import DeliveryQueue
from app.services.job_scheduler import JobScheduler
from app.services.reminder_messages import format_reminder_message

logger = get_logger(__name__)

H15_JOB = "booking-reminder-h15"
H1_JOB = "booking-reminder-h1"
RESET_JOB = "booking-reminder-reset-stats"

MATCH_TOLERANCE = timedelta(days=1)
TEST_REMINDER_WINDOW = timedelta(days=30)
TEST_REMINDER_LIMIT = 5

CandidateFetcher = Callable[[], Awaitable[list[BookingCandidate]]]
MessageFormatter = Callable[[BookingCandidate, ReminderClass | None], str]


class BookingReminderService:
    """Schedules the H-15 / H-1 checks and feeds their reminders into the delivery queue."""

    def __init__(
        self,
        scheduler: JobScheduler,
        queue: DeliveryQueue,
        fetch_candidates: CandidateFetcher,
        format_message: MessageFormatter = format_reminder_message,
        h15_schedule: str = "0 9 * * *",
        h1_schedule: str = "0 9 * * *",
        reset_schedule: str = "0 0 * * *",
        active_statuses: tuple[str, ...] = ("APPROVED",),
        max_details: int = 100,
    ):
        self.scheduler = scheduler
        self.queue = queue
        self._fetch_candidates = fetch_candidates
        self._format_message = format_message
        self._schedules = {
            H15_JOB: h15_schedule,
            H1_JOB: h1_schedule,
            RESET_JOB: reset_schedule,
        }
        self.active_statuses = {status.upper() for status in active_statuses}
        self.max_details = max_details

        self.sent_reminders: set[str] = set()
        self.stats = ReminderStats()
        self._state_lock = asyncio.Lock()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(self) -> None:
        if self._initialized:
            logger.info("Booking reminder service already initialized")
            return

        self.scheduler.init()
        self.scheduler.schedule(H15_JOB, self._schedules[H15_JOB], self.check_h15_reminders)
        self.scheduler.schedule(H1_JOB, self._schedules[H1_JOB], self.check_h1_reminders)
        self.scheduler.schedule(RESET_JOB, self._schedules[RESET_JOB], self.reset_daily_stats)

        self._initialized = True
        logger.info("Booking reminder service initialized", jobs=list(self._schedules))

    def start(self) -> None:
        if not self._initialized:
            self.init()
            return

        for name in self._schedules:
            if self.scheduler.get_job(name):
                self.scheduler.resume(name)
        logger.info("Booking reminder service started")

    def stop(self) -> None:
        for name in self._schedules:
            self.scheduler.unschedule(name)
        self._initialized = False
        logger.info("Booking reminder service stopped")

    async def check_h15_reminders(self) -> int:
        return await self._check_reminders(ReminderClass.H15)

    async def check_h1_reminders(self) -> int:
        return await self._check_reminders(ReminderClass.H1)

    async def reset_daily_stats(self) -> None:
        async with self._state_lock:
            self.stats = ReminderStats()
            self.sent_reminders.clear()
        logger.info("Daily reminder statistics reset")

    async def check_and_send_reminders(self) -> dict:
        """Run both checks concurrently and report what this call added."""
        logger.info("Manual reminder check triggered")
        started = time.monotonic()
        before = self.stats.snapshot()

        try:
            await asyncio.gather(self.check_h15_reminders(), self.check_h1_reminders())
        except Exception as e:
            logger.error("Error in manual reminder check", error=str(e), error_type=type(e).__name__)
            return {
                "success": False,
                "error": str(e),
                "duration_ms": round((time.monotonic() - started) * 1000, 2),
            }

        after = self.stats.snapshot()
        summary = {
            key: max(after[key] - before[key], 0)
            for key in ("h15_count", "h1_count", "successful", "failed")
        }
        duration_ms = round((time.monotonic() - started) * 1000, 2)
        logger.info("Manual reminder check completed", duration_ms=duration_ms, **summary)
        return {"success": True, "duration_ms": duration_ms, "summary": summary}

    def get_stats(self) -> dict:
        return {
            **self.stats.snapshot(),
            "is_active": self._initialized,
            "sent_today": self.stats.successful,
            "sent_reminder_count": len(self.sent_reminders),
        }

    def get_cron_status(self) -> dict:
        return self.scheduler.get_status()

    async def send_test_reminders(self) -> dict:
        """
        Smoke-test the pipeline: enqueue a generic reminder for up to five
        bookings ending within the next 30 days. Ignores the sent-reminder set
        but counts towards the successful total.
        """
        try:
            bookings = await self._fetch_candidates()
        except FetchFailure as e:
            logger.error("Test reminders could not fetch bookings", error=str(e))
            return {"success": False, "error": str(e)}

        if not bookings:
            return {"success": True, "message": "No test bookings found", "count": 0}

        now = self.scheduler.now()
        horizon = now + TEST_REMINDER_WINDOW
        selected = [
            booking
            for booking in bookings[:TEST_REMINDER_LIMIT]
            if now < booking.end_date <= horizon and booking.phone_number
        ]

        if not selected:
            return {"success": True, "message": "No suitable test bookings found", "count": 0}

        async with self._state_lock:
            for booking in selected:
                self.queue.enqueue(booking.phone_number, self._format_message(booking, None))
                self.stats.successful += 1

        logger.info("Test reminders queued", count=len(selected))
        return {
            "success": True,
            "message": "Test reminders sent successfully",
            "count": len(selected),
            "bookings": [
                {
                    "booking_id": booking.booking_id,
                    "phone_number": booking.phone_number,
                    "end_date": booking.end_date.isoformat(),
                }
                for booking in selected
            ],
        }

    def select_candidates(
        self, bookings: list[BookingCandidate], reminder_class: ReminderClass, now: datetime
    ) -> list[BookingCandidate]:
        """Active bookings ending within one day of ``now + days_ahead``."""
        target = now + timedelta(days=reminder_class.days_ahead)
        return [
            booking
            for booking in bookings
            if booking.status.upper() in self.active_statuses
            and abs(booking.end_date - target) <= MATCH_TOLERANCE
        ]

    async def _check_reminders(self, reminder_class: ReminderClass) -> int:
        label = reminder_class.label
        logger.info("Checking reminders", reminder_class=label, days_ahead=reminder_class.days_ahead)

        try:
            bookings = await self._fetch_candidates()
        except FetchFailure as e:
            logger.error("Error fetching bookings for reminders", reminder_class=label, error=str(e))
            self.stats.add_detail(f"{label} check error: {e}", self.max_details)
            return 0

        matches = self.select_candidates(bookings, reminder_class, self.scheduler.now())
        if not matches:
            logger.info("No reminders needed", reminder_class=label)
            return 0

        queued = 0
        async with self._state_lock:
            for booking in matches:
                key = reminder_class.reminder_key(booking.booking_id)
                if key in self.sent_reminders:
                    logger.debug("Reminder already sent", reminder_key=key)
                    continue

                if not booking.phone_number:
                    logger.warning("No phone number for booking", booking_id=booking.booking_id)
                    continue

                try:
                    body = self._format_message(booking, reminder_class)
                    item_id = self.queue.enqueue(booking.phone_number, body)
                except Exception as e:
                    self.stats.failed += 1
                    self.stats.add_detail(
                        f"Failed to send reminder for {booking.booking_id}: {e}", self.max_details
                    )
                    logger.error(
                        "Error queueing reminder",
                        reminder_key=key,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    continue

                self.sent_reminders.add(key)
                self.stats.count_by_class[reminder_class] += 1
                self.stats.successful += 1
                queued += 1
                logger.info("Reminder queued", reminder_key=key, item_id=item_id)

        logger.info("Reminder check completed", reminder_class=label, matched=len(matches), queued=queued)
        return queued
