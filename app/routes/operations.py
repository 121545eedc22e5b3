"""
Operations API Routes
HTTP endpoints for the delivery queue, the job scheduler and booking reminders.
All endpoints require the backend API key.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.auth.verify import api_key_dependency
from app.infrastructure.observability.logging import get_logger
from app.models.api.ops_request import RunJobRequest, SendMessageRequest, TenantReminderRequest
from app.models.api.ops_response import (
    JobActionResponse,
    ManualRunResponse,
    QueuedMessageResponse,
    QueueStatusResponse,
    ReminderCheckResponse,
    ReminderStatsResponse,
    SchedulerStatusResponse,
)
from app.services.container import NotificationServices
from app.services.job_scheduler import JobNotFoundError
from app.services.reminder_messages import (
    format_contract_renewal_message,
    format_payment_reminder_message,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["operations"], dependencies=[Depends(api_key_dependency)])


def get_services(request: Request) -> NotificationServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification services not initialized",
        )
    return services


@router.post("/messages", response_model=QueuedMessageResponse)
async def queue_message(
    payload: SendMessageRequest, services: NotificationServices = Depends(get_services)
):
    """Queue a raw message for delivery."""
    message_id = services.delivery_queue.enqueue(payload.phone_number, payload.message)
    return QueuedMessageResponse(
        message="Message added to queue",
        message_id=message_id,
        queued_at=datetime.now(UTC),
    )


@router.get("/messages/queue-status", response_model=QueueStatusResponse)
async def get_queue_status(services: NotificationServices = Depends(get_services)):
    return services.delivery_queue.get_status()


@router.get("/cron/status", response_model=SchedulerStatusResponse)
async def get_cron_status(services: NotificationServices = Depends(get_services)):
    return services.scheduler.get_status()


@router.post("/cron/run-job", response_model=ManualRunResponse)
async def run_job(payload: RunJobRequest, services: NotificationServices = Depends(get_services)):
    """Run a registered job immediately. Unknown jobs report success=false."""
    result = await services.scheduler.run_manually(payload.job_name)
    return ManualRunResponse(job_name=payload.job_name, **result)


@router.post("/cron/jobs/{job_name}/pause", response_model=JobActionResponse)
async def pause_job(job_name: str, services: NotificationServices = Depends(get_services)):
    try:
        services.scheduler.pause(job_name)
    except JobNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return JobActionResponse(success=True, job_name=job_name, message="Job paused")


@router.post("/cron/jobs/{job_name}/resume", response_model=JobActionResponse)
async def resume_job(job_name: str, services: NotificationServices = Depends(get_services)):
    try:
        services.scheduler.resume(job_name)
    except JobNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return JobActionResponse(success=True, job_name=job_name, message="Job resumed")


@router.delete("/cron/jobs/{job_name}", response_model=JobActionResponse)
async def unschedule_job(job_name: str, services: NotificationServices = Depends(get_services)):
    if not services.scheduler.unschedule(job_name):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(JobNotFoundError(job_name))
        )
    return JobActionResponse(success=True, job_name=job_name, message="Job unscheduled")


@router.post("/cron/stop-all")
async def stop_all_jobs(services: NotificationServices = Depends(get_services)):
    services.reminders.stop()
    services.scheduler.stop_all()
    logger.warning("All scheduled jobs stopped via API")
    return {"success": True, "message": "All cron jobs stopped successfully"}


@router.post("/cron/check-reminders", response_model=ReminderCheckResponse)
async def check_reminders(services: NotificationServices = Depends(get_services)):
    """Run the H-15 and H-1 checks now."""
    return await services.reminders.check_and_send_reminders()


@router.post("/cron/test-reminders")
async def send_test_reminders(services: NotificationServices = Depends(get_services)):
    return await services.reminders.send_test_reminders()


@router.get("/cron/reminder-stats", response_model=ReminderStatsResponse)
async def get_reminder_stats(services: NotificationServices = Depends(get_services)):
    return services.reminders.get_stats()


@router.post("/reminders/send", response_model=QueuedMessageResponse)
async def send_tenant_reminder(
    payload: TenantReminderRequest, services: NotificationServices = Depends(get_services)
):
    """Queue a templated reminder pushed by the frontend for one tenant."""
    if payload.type == "contract_renewal_h15":
        formatter = format_contract_renewal_message
    else:
        formatter = format_payment_reminder_message

    message = formatter(
        payload.tenant.name,
        payload.booking.room_id,
        payload.booking.check_out,
        payload.booking.monthly_amount,
        services.branding,
    )
    message_id = services.delivery_queue.enqueue(payload.tenant.phone, message)

    logger.info(
        "Tenant reminder queued",
        reminder_type=payload.type,
        tenant_id=payload.tenant.id,
        booking_id=payload.booking.id,
        item_id=message_id,
    )
    return QueuedMessageResponse(
        message="Reminder queued successfully",
        message_id=message_id,
        queued_at=datetime.now(UTC),
    )
