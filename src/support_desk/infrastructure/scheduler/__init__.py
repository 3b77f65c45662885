"""
Background Task Infrastructure
==============================

Detached execution of coroutines on the application's event loop, backed by
APScheduler's AsyncIOScheduler.

Submitting a job returns immediately; the caller never awaits the job.
Jobs are one-shot, run as soon as the scheduler is running, and are never
dropped as misfired.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from support_desk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ITaskRunner(ABC):
    """Interface for fire-and-forget job submission."""

    @abstractmethod
    def submit(self, func: Callable[..., Any], *args: Any, name: Optional[str] = None) -> str:
        """Schedule func(*args) to run detached. Returns the job ID."""


class BackgroundTaskRunner(ITaskRunner):
    """
    Wrapper for APScheduler running one-shot background jobs.

    Manages the lifecycle of the scheduler. Jobs submitted before start()
    are held and run once the scheduler starts.
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self._scheduler = scheduler or AsyncIOScheduler()
        self._running = False

    async def start(self) -> None:
        """Start the scheduler on the running event loop."""
        if self._running:
            logger.warning("Background task runner already running")
            return

        self._scheduler.start()
        self._running = True
        logger.info("Background task runner started")

    async def stop(self) -> None:
        """Stop the scheduler. Jobs still in flight are not awaited."""
        if not self._running:
            return

        self._scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Background task runner stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    def submit(self, func: Callable[..., Any], *args: Any, name: Optional[str] = None) -> str:
        job = self._scheduler.add_job(
            func,
            "date",
            args=list(args),
            name=name or getattr(func, "__name__", "background_job"),
            misfire_grace_time=None,
        )
        logger.debug("Submitted background job", extra={"job_id": job.id, "job_name": job.name})
        return job.id
