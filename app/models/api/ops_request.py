# app/models/api/ops_request.py
"""
Operations API request models.
Field aliases accept the camelCase payloads the frontend sends.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SendMessageRequest(BaseModel):
    """Request for queueing a raw WhatsApp message."""

    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(..., alias="phoneNumber", min_length=5, description="Recipient number")
    message: str = Field(..., min_length=1, description="Message text")


class RunJobRequest(BaseModel):
    """Request for running a scheduled job out of band."""

    model_config = ConfigDict(populate_by_name=True)

    job_name: str = Field(..., alias="jobName", min_length=1, description="Registered job name")


class ReminderTenant(BaseModel):
    id: str
    name: str
    phone: str = Field(..., min_length=5)
    email: str | None = None


class ReminderBooking(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    room_id: str = Field(..., alias="roomId")
    check_out: datetime = Field(..., alias="checkOut")
    monthly_amount: float = Field(0, alias="monthlyAmount")
    total_amount: float = Field(0, alias="totalAmount")


class TenantReminderRequest(BaseModel):
    """Reminder pushed by the frontend scheduler for a single tenant."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["contract_renewal_h15", "payment_reminder_h1"]
    tenant: ReminderTenant
    booking: ReminderBooking
    days_remaining: int | None = Field(None, alias="daysRemaining")
    scheduled_at: datetime | None = Field(None, alias="scheduledAt")
