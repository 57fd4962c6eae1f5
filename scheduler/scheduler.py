"""
Background jobs: email batch dispatch and registration form refresh
"""
import asyncio
from typing import Optional, Callable, Awaitable, Any
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from app.config import scheduler_config


class ClubScheduler:
    """Club background job scheduler"""

    def __init__(
        self,
        batch_func: Callable[[], Awaitable[Any]],
        forms_func: Optional[Callable[[], Any]] = None
    ):
        """
        Args:
            batch_func: processes pending email batches for every club (async)
            forms_func: recomputes registration form status (sync, optional)
        """
        self.scheduler = AsyncIOScheduler()
        self.batch_func = batch_func
        self.forms_func = forms_func
        self._batches_running = False
        self._forms_running = False
        self._last_batch_run: Optional[datetime] = None
        self._last_batch_result: Optional[Any] = None
        self._last_forms_refresh: Optional[datetime] = None

    def setup(self):
        """Register jobs"""
        self.scheduler.add_job(
            self._run_batches,
            IntervalTrigger(minutes=scheduler_config.batch_interval_minutes),
            id="email_batches",
            name="Email Batch Dispatch",
            replace_existing=True
        )
        logger.info(f"Email batch dispatch every {scheduler_config.batch_interval_minutes} minutes")

        if self.forms_func:
            self.scheduler.add_job(
                self._run_forms_refresh,
                CronTrigger(hour=scheduler_config.forms_refresh_hour, minute=5),
                id="registration_forms_refresh",
                name="Registration Forms Refresh",
                replace_existing=True
            )
            logger.info(f"Registration forms refresh daily at {scheduler_config.forms_refresh_hour}:05")

    async def _run_batches(self):
        """Dispatch pending email batches"""
        if self._batches_running:
            logger.warning("Email batch dispatch already running")
            return

        self._batches_running = True
        logger.info("=== Email batch dispatch started ===")

        try:
            self._last_batch_result = await self.batch_func()
            self._last_batch_run = datetime.now()
            logger.info(f"Email batch dispatch finished: {self._last_batch_result}")
        except Exception as e:
            logger.error(f"Email batch dispatch error: {e}")
        finally:
            self._batches_running = False

    async def _run_forms_refresh(self):
        """Open and close registration forms by date"""
        if self._forms_running or not self.forms_func:
            logger.debug("Forms refresh skipped")
            return

        self._forms_running = True
        try:
            changed = await asyncio.to_thread(self.forms_func)
            self._last_forms_refresh = datetime.now()
            logger.info(f"Registration forms refreshed: {changed} changed")
        except Exception as e:
            logger.error(f"Registration forms refresh error: {e}")
        finally:
            self._forms_running = False

    def start(self):
        """Start the scheduler"""
        self.setup()
        self.scheduler.start()
        logger.info("Scheduler started")

    def stop(self):
        """Stop the scheduler"""
        self.scheduler.shutdown()
        logger.info("Scheduler stopped")

    def get_status(self) -> dict:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None
            })

        return {
            "batches_running": self._batches_running,
            "forms_running": self._forms_running,
            "last_batch_run": self._last_batch_run.isoformat() if self._last_batch_run else None,
            "last_batch_result": self._last_batch_result,
            "last_forms_refresh": self._last_forms_refresh.isoformat() if self._last_forms_refresh else None,
            "jobs": jobs
        }

    async def run_now(self, job: str = "batches"):
        """Run a job immediately"""
        if job == "batches":
            await self._run_batches()
        elif job == "forms":
            await self._run_forms_refresh()
        else:
            logger.warning(f"Unknown job: {job}")


def create_scheduler() -> ClubScheduler:
    """Scheduler wired to the club services"""
    from app.club.communications import email_batch_service
    from app.club.registrations import registration_service

    return ClubScheduler(
        batch_func=email_batch_service.process_all_pending,
        forms_func=registration_service.refresh_statuses
    )
