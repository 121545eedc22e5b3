# app/models/api/ops_response.py
"""
Operations API response models.
Used by routes for output formatting.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class QueuedMessageResponse(BaseModel):
    success: bool = True
    message: str = Field(..., description="Human readable result")
    message_id: str = Field(..., description="Delivery queue item id")
    queued_at: datetime


class QueueItemPreview(BaseModel):
    id: str
    recipient: str
    enqueued_at: datetime


class QueueStatusResponse(BaseModel):
    """Snapshot of the delivery queue."""

    item_count: int
    is_processing: bool
    next_items: list[QueueItemPreview]
    delivered: int
    failed: int
    min_delay_ms: int
    max_delay_ms: int


class JobStatus(BaseModel):
    name: str
    schedule: str
    active: bool
    last_run: datetime | None = None
    next_run: datetime | None = None
    run_count: int
    error_count: int
    last_error: str | None = None


class JobSummary(BaseModel):
    total: int
    active: int
    paused: int


class SchedulerStatusResponse(BaseModel):
    """Scheduler status including every registered job."""

    is_active: bool
    jobs: list[JobStatus]
    summary: JobSummary


class ManualRunResponse(BaseModel):
    success: bool
    job_name: str
    error: str | None = None
    duration_ms: float | None = None


class JobActionResponse(BaseModel):
    success: bool
    job_name: str
    message: str


class ReminderSummary(BaseModel):
    h15_count: int = 0
    h1_count: int = 0
    successful: int = 0
    failed: int = 0


class ReminderCheckResponse(BaseModel):
    success: bool
    duration_ms: float | None = None
    summary: ReminderSummary | None = None
    error: str | None = None


class ReminderStatsResponse(BaseModel):
    h15_count: int
    h1_count: int
    successful: int
    failed: int
    details: list[str]
    is_active: bool
    sent_today: int
    sent_reminder_count: int
