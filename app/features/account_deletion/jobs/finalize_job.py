"""
Account Deletion Sweep Job - finalizes deletions whose grace period elapsed.

The HTTP finalize endpoint is the primary trigger (an external cron calls it
with the operator secret). This job is the in-process alternative for
deployments that run a worker instead.

Design:
- Never crashes the worker (errors are logged and retried next interval)
- Skips a run while the previous one is still going
- Safe to run repeatedly: already-deleted users no longer appear

Usage:
    python -m app.jobs.worker account_deletion_sweep
"""

import asyncio
from datetime import UTC, datetime

from app.config import settings
from app.features.account_deletion.domain import SweepReport
from app.features.account_deletion.services import (
    AccountDeletionService,
    build_account_deletion_service,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class AccountDeletionSweepJob:
    """Runs one sweep at a time."""

    def __init__(self, service: AccountDeletionService):
        self.service = service
        self.is_running = False

    async def run_once(self) -> SweepReport | None:
        if self.is_running:
            logger.warning("Deletion sweep already running, skipping")
            return None

        self.is_running = True
        start_time = datetime.now(UTC)
        try:
            report = await self.service.sweep()
        finally:
            self.is_running = False

        logger.info(
            "Deletion sweep job completed",
            duration_seconds=(datetime.now(UTC) - start_time).total_seconds(),
            deleted_users=report.deleted_users,
            error_count=len(report.errors),
        )
        return report


async def start_account_deletion_scheduler(
    service: AccountDeletionService | None = None, interval_seconds: int | None = None
) -> None:
    """
    Run the sweep every ``interval_seconds`` (default from settings) until cancelled.
    """
    job = AccountDeletionSweepJob(service or build_account_deletion_service(settings))
    interval = interval_seconds or settings.ACCOUNT_DELETION_SWEEP_INTERVAL_SECONDS

    logger.info("Account deletion scheduler STARTED", interval_seconds=interval)

    while True:
        try:
            await job.run_once()
        except asyncio.CancelledError:
            logger.info("Account deletion scheduler cancelled")
            break
        except Exception as e:
            logger.error("Error in deletion sweep, will retry", error=str(e))

        try:
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("Account deletion scheduler cancelled")
            break


async def run_account_deletion_sweep_once() -> None:
    """Run a single sweep and exit (for external schedulers)."""
    job = AccountDeletionSweepJob(build_account_deletion_service(settings))
    report = await job.run_once()
    if report is not None:
        logger.info("Deletion sweep report", report=report.to_dict())
