"""
Polling job scheduler.

Every registered job owns one poll task that wakes at a fixed granularity
(``tick_seconds``, 60s in production) and runs the job once the current time
has reached its computed ``next_run``. Jobs therefore fire up to one tick late,
never early. Handler failures are counted and logged; they never stop the
poll task or affect other jobs.

Handler executions are shielded from poll-task cancellation, so pausing,
unscheduling or stopping a job lets an in-flight run finish. A per-job lock
keeps a job from overlapping itself (scheduled tick vs. manual run).
"""

import asyncio
import time
from collections.abc import Callable
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from app.infrastructure.observability.logging import get_logger, log_job_run
from app.models.domain.scheduler_domain import Job, JobHandler
from app.services.schedules import parse_schedule

logger = get_logger(__name__)

DEFAULT_TICK_SECONDS = 60.0


class JobNotFoundError(Exception):
    """Raised when an operation names a job that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Job {name} not found")
        self.name = name


class HandlerFailure(Exception):
    """Wraps an exception raised by a job handler. Counted, never propagated."""

    def __init__(self, job_name: str, cause: Exception):
        super().__init__(f"Job {job_name} failed: {cause}")
        self.job_name = job_name
        self.cause = cause


class JobScheduler:
    """Named recurring jobs with pause/resume, manual runs and run counters."""

    def __init__(
        self,
        tick_seconds: float = DEFAULT_TICK_SECONDS,
        timezone: str | tzinfo = "UTC",
        clock: Callable[[], datetime] | None = None,
    ):
        self.tick_seconds = tick_seconds
        self.timezone = ZoneInfo(timezone) if isinstance(timezone, str) else timezone
        self._clock = clock or (lambda: datetime.now(self.timezone))
        self._jobs: dict[str, Job] = {}
        self._inflight: set[asyncio.Task] = set()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def now(self) -> datetime:
        return self._clock()

    def init(self) -> None:
        if self._initialized:
            logger.info("Job scheduler already initialized")
            return

        self._initialized = True
        logger.info("Job scheduler initialized", tick_seconds=self.tick_seconds)

    def schedule(self, name: str, expression: str, handler: JobHandler) -> Job:
        """
        Register (or replace) a recurring job.

        Raises:
            InvalidScheduleError: if the expression is not supported
        """
        schedule = parse_schedule(expression)

        if name in self._jobs:
            logger.warning("Job already exists, replacing", job_name=name)
            self.unschedule(name)

        job = Job(
            name=name,
            schedule=schedule,
            handler=handler,
            next_run=schedule.next_after(self.now()),
        )
        self._jobs[name] = job
        job.timer = asyncio.get_running_loop().create_task(
            self._poll(job), name=f"job-poll:{name}"
        )

        logger.info(
            "Scheduled job",
            job_name=name,
            schedule=expression,
            next_run=job.next_run.isoformat(),
        )
        return job

    def unschedule(self, name: str) -> bool:
        job = self._jobs.get(name)
        if job is None:
            return False

        self._cancel_timer(job)
        del self._jobs[name]
        logger.info("Unscheduled job", job_name=name)
        return True

    def pause(self, name: str) -> None:
        job = self._get_or_raise(name)
        job.active = False
        logger.info("Paused job", job_name=name)

    def resume(self, name: str) -> None:
        job = self._get_or_raise(name)
        job.active = True
        logger.info("Resumed job", job_name=name)

    def start_all(self) -> None:
        """Resume every paused job."""
        for job in self._jobs.values():
            job.active = True
        logger.info("All jobs resumed", total=len(self._jobs))

    def stop_all(self) -> None:
        """Cancel every poll task, drop all jobs and mark the scheduler uninitialized."""
        logger.info("Stopping all jobs", total=len(self._jobs))
        for job in self._jobs.values():
            self._cancel_timer(job)
        self._jobs.clear()
        self._initialized = False

    def get_jobs(self) -> list[str]:
        return list(self._jobs)

    def get_job(self, name: str) -> Job | None:
        return self._jobs.get(name)

    def get_status(self) -> dict:
        jobs = [job.to_status() for job in self._jobs.values()]
        active = sum(1 for job in jobs if job["active"])
        return {
            "is_active": self._initialized,
            "jobs": jobs,
            "summary": {
                "total": len(jobs),
                "active": active,
                "paused": len(jobs) - active,
            },
        }

    async def run_pending(self) -> list[str]:
        """Run one tick over every job immediately. Returns the names of jobs that ran."""
        executed = []
        for job in list(self._jobs.values()):
            if await self._run_if_due(job):
                executed.append(job.name)
        return executed

    async def run_manually(self, name: str) -> dict:
        """
        Run a job right now, outside its schedule. ``next_run`` is left untouched.

        Returns:
            {"success": bool, "error"?: str, "duration_ms"?: float}
        """
        job = self._jobs.get(name)
        if job is None:
            error = JobNotFoundError(name)
            logger.warning("Manual run requested for unknown job", job_name=name)
            return {"success": False, "error": str(error)}

        async with job.lock:
            logger.info("Manually running job", job_name=name)
            started = time.monotonic()
            try:
                await job.handler()
            except Exception as e:
                job.error_count += 1
                job.last_error = str(e)
                duration_ms = round((time.monotonic() - started) * 1000, 2)
                log_job_run(name, False, duration_ms, manual=True, error=str(e))
                return {"success": False, "error": str(e)}

            duration_ms = round((time.monotonic() - started) * 1000, 2)
            job.run_count += 1
            job.last_run = self.now()
            log_job_run(name, True, duration_ms, manual=True)
            return {"success": True, "duration_ms": duration_ms}

    async def _poll(self, job: Job) -> None:
        while True:
            await asyncio.sleep(self.tick_seconds)
            if self._jobs.get(job.name) is not job:
                return
            await self._run_if_due(job)

    async def _run_if_due(self, job: Job) -> bool:
        if not job.active or job.next_run is None or self.now() < job.next_run:
            return False

        execution = asyncio.ensure_future(self._execute(job))
        self._inflight.add(execution)
        execution.add_done_callback(self._inflight.discard)
        return await asyncio.shield(execution)

    async def _execute(self, job: Job) -> bool:
        async with job.lock:
            # Another tick may have run the job while this one waited on the lock,
            # or the job was paused meanwhile.
            if not job.active or job.next_run is None or self.now() < job.next_run:
                return False

            started = time.monotonic()
            try:
                await job.handler()
            except Exception as e:
                failure = HandlerFailure(job.name, e)
                job.error_count += 1
                job.last_error = str(e)
                log_job_run(
                    job.name,
                    False,
                    round((time.monotonic() - started) * 1000, 2),
                    error=str(failure),
                )
            else:
                job.last_run = self.now()
                job.run_count += 1
                log_job_run(job.name, True, round((time.monotonic() - started) * 1000, 2))
            finally:
                job.next_run = job.schedule.next_after(self.now())
                logger.debug("Job rescheduled", job_name=job.name, next_run=job.next_run.isoformat())
            return True

    def _cancel_timer(self, job: Job) -> None:
        if job.timer and not job.timer.done():
            job.timer.cancel()
        job.timer = None

    def _get_or_raise(self, name: str) -> Job:
        job = self._jobs.get(name)
        if job is None:
            raise JobNotFoundError(name)
        return job
