"""
Domain model for jobs registered with the job scheduler.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from app.services.schedules import Schedule

JobHandler = Callable[[], Awaitable[None]]


@dataclass(slots=True, eq=False)
class Job:
    """A named recurring job and its timing state."""

    name: str
    schedule: Schedule
    handler: JobHandler
    last_run: datetime | None = None
    next_run: datetime | None = None
    active: bool = True
    run_count: int = 0
    error_count: int = 0
    last_error: str | None = None
    timer: asyncio.Task | None = field(default=None, repr=False)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def to_status(self) -> dict:
        return {
            "name": self.name,
            "schedule": self.schedule.expression,
            "active": self.active,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
            "last_error": self.last_error,
        }
