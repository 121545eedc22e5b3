"""
Headless booking reminder worker.

Runs the job scheduler and delivery queue without the HTTP layer, for
deployments that keep the API and the reminder loop in separate containers.

Two modes:
    start_booking_reminder_scheduler()  long-running; jobs fire on their schedules
    run_booking_reminder_check()        one-shot; runs both checks, drains the
                                        queue and exits (for an external cron)
"""

import asyncio

from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.services.container import build_services

logger = get_logger(__name__)


async def start_booking_reminder_scheduler() -> None:
    """Start the reminder jobs and keep the worker alive until cancelled."""
    services = build_services(settings)
    await services.start()
    logger.info(
        "Booking reminder worker started",
        jobs=services.scheduler.get_jobs(),
        tick_seconds=services.scheduler.tick_seconds,
    )

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Booking reminder worker stopping")
        await services.close()


async def run_booking_reminder_check() -> dict:
    """
    Run the H-15 and H-1 checks once and wait for the queued reminders to be
    delivered. The sent-reminder set starts empty, so the external trigger
    must fire at most once a day.

    Returns:
        The check_and_send_reminders() result.
    """
    services = build_services(settings)
    try:
        result = await services.reminders.check_and_send_reminders()
        await services.delivery_queue.join()
        queue_status = services.delivery_queue.get_status()
        logger.info(
            "One-shot reminder check finished",
            success=result["success"],
            delivered=queue_status["delivered"],
            failed=queue_status["failed"],
        )
        return result
    finally:
        await services.close()


if __name__ == "__main__":
    asyncio.run(start_booking_reminder_scheduler())
