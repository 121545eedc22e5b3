"""
Service wiring.

Builds the delivery queue, job scheduler, reminder service and their HTTP
adapters from Settings. The process entry point (FastAPI lifespan or the
background worker) owns the returned container and is responsible for
``start()`` and ``close()``.
"""

from dataclasses import dataclass, field

from app.config import Settings
from app.infrastructure.observability.logging import get_logger
from app.services.booking_reminder_service import BookingReminderService
from app.services.booking_source import BookingSourceClient
from app.services.chat_gateway import ChatGatewayClient, make_delivery_processor
from app.services.delivery_queue import DeliveryQueue
from app.services.job_scheduler import JobScheduler
from app.services.reminder_messages import Branding, format_reminder_message

logger = get_logger(__name__)


@dataclass
class NotificationServices:
    settings: Settings
    delivery_queue: DeliveryQueue
    scheduler: JobScheduler
    reminders: BookingReminderService
    booking_source: BookingSourceClient | None = None
    chat_gateway: ChatGatewayClient | None = None
    branding: Branding = field(default_factory=Branding)

    async def start(self) -> None:
        self.scheduler.init()
        self.reminders.init()
        logger.info("Notification services started", jobs=self.scheduler.get_jobs())

    async def close(self) -> None:
        """Stop scheduling first, then drain resources in reverse order."""
        shutdown_errors = []

        self.reminders.stop()
        self.scheduler.stop_all()

        try:
            await self.delivery_queue.close()
        except Exception as e:
            logger.error("Error closing delivery queue", error=str(e))
            shutdown_errors.append(f"Queue: {e}")

        for name, client in (("chat_gateway", self.chat_gateway), ("booking_source", self.booking_source)):
            if client is None:
                continue
            try:
                await client.close()
            except Exception as e:
                logger.error("Error closing HTTP client", client=name, error=str(e))
                shutdown_errors.append(f"{name}: {e}")

        if shutdown_errors:
            logger.warning("Some services had shutdown errors", errors=shutdown_errors)
        else:
            logger.info("Notification services closed")


def build_services(settings: Settings) -> NotificationServices:
    """Construct every component and inject collaborators explicitly."""
    branding = Branding(
        property_name=settings.PROPERTY_NAME,
        admin_whatsapp=settings.ADMIN_WHATSAPP,
        admin_email=settings.ADMIN_EMAIL,
    )

    chat_gateway = ChatGatewayClient(
        settings.chat_send_endpoint(),
        token=settings.CHAT_GATEWAY_TOKEN,
        timeout=settings.CHAT_GATEWAY_TIMEOUT_SECONDS,
    )
    booking_source = BookingSourceClient(
        settings.bookings_endpoint(),
        timeout=settings.BOOKINGS_FETCH_TIMEOUT_SECONDS,
    )

    delivery_queue = DeliveryQueue(make_delivery_processor(chat_gateway), **settings.get_queue_config())
    scheduler = JobScheduler(
        tick_seconds=settings.SCHEDULER_TICK_SECONDS,
        timezone=settings.SCHEDULER_TIMEZONE,
    )
    reminders = BookingReminderService(
        scheduler,
        delivery_queue,
        booking_source.fetch_candidate_records,
        format_message=lambda booking, reminder_class: format_reminder_message(
            booking, reminder_class, branding
        ),
        h15_schedule=settings.REMINDER_H15_SCHEDULE,
        h1_schedule=settings.REMINDER_H1_SCHEDULE,
        reset_schedule=settings.REMINDER_RESET_SCHEDULE,
        active_statuses=tuple(settings.REMINDER_ACTIVE_STATUSES),
        max_details=settings.REMINDER_MAX_DETAILS,
    )

    return NotificationServices(
        settings=settings,
        delivery_queue=delivery_queue,
        scheduler=scheduler,
        reminders=reminders,
        booking_source=booking_source,
        chat_gateway=chat_gateway,
        branding=branding,
    )
