"""
Scheduler Tests
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from scheduler import ClubScheduler, create_scheduler


class TestSetup:
    """Job registration"""

    def test_jobs_registered(self):
        scheduler = ClubScheduler(batch_func=AsyncMock(), forms_func=MagicMock())
        scheduler.setup()

        assert scheduler.scheduler.get_job("email_batches") is not None
        assert scheduler.scheduler.get_job("registration_forms_refresh") is not None

    def test_forms_job_optional(self):
        scheduler = ClubScheduler(batch_func=AsyncMock())
        scheduler.setup()

        assert scheduler.scheduler.get_job("registration_forms_refresh") is None

    def test_status_before_start(self):
        status = ClubScheduler(batch_func=AsyncMock()).get_status()
        assert status["batches_running"] is False
        assert status["last_batch_run"] is None
        assert status["jobs"] == []

    def test_create_scheduler_wiring(self):
        from app.club.communications import email_batch_service
        from app.club.registrations import registration_service

        scheduler = create_scheduler()
        assert scheduler.batch_func == email_batch_service.process_all_pending
        assert scheduler.forms_func == registration_service.refresh_statuses


@pytest.mark.asyncio
class TestRunNow:
    """Manual runs"""

    async def test_run_batches(self):
        batch_func = AsyncMock(return_value={"batches": 2, "emails_sent": 5, "errors": []})
        scheduler = ClubScheduler(batch_func=batch_func)

        await scheduler.run_now("batches")

        batch_func.assert_awaited_once()
        status = scheduler.get_status()
        assert status["last_batch_result"]["emails_sent"] == 5
        assert status["last_batch_run"] is not None

    async def test_batch_error_is_logged_not_raised(self):
        scheduler = ClubScheduler(batch_func=AsyncMock(side_effect=RuntimeError("db down")))

        await scheduler.run_now("batches")

        assert scheduler.get_status()["batches_running"] is False
        assert scheduler.get_status()["last_batch_run"] is None

    async def test_running_guard(self):
        """A run in progress is not started twice"""
        batch_func = AsyncMock()
        scheduler = ClubScheduler(batch_func=batch_func)
        scheduler._batches_running = True

        await scheduler.run_now("batches")

        batch_func.assert_not_awaited()

    async def test_forms_refresh(self):
        forms_func = MagicMock(return_value=3)
        scheduler = ClubScheduler(batch_func=AsyncMock(), forms_func=forms_func)

        await scheduler.run_now("forms")

        forms_func.assert_called_once()
        assert scheduler.get_status()["last_forms_refresh"] is not None

    async def test_unknown_job(self):
        batch_func = AsyncMock()
        scheduler = ClubScheduler(batch_func=batch_func)
        await scheduler.run_now("nope")
        batch_func.assert_not_awaited()
