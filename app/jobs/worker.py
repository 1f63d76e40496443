"""
Background worker entrypoint.

    interviewpilot-worker account_deletion_sweep       # sweep every interval
    interviewpilot-worker account_deletion_sweep_once  # one sweep, then exit

With no argument the job comes from WORKER_JOB (default: the recurring sweep).
"""

import asyncio
import os
import sys
from collections.abc import Awaitable, Callable

from app.config import settings
from app.features.account_deletion.jobs import (
    run_account_deletion_sweep_once,
    start_account_deletion_scheduler,
)
from app.infrastructure.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)

DEFAULT_JOB = "account_deletion_sweep"

JobCoroutine = Callable[[], Awaitable[None]]

JOB_REGISTRY: dict[str, JobCoroutine] = {
    "account_deletion_sweep": start_account_deletion_scheduler,
    "account_deletion_sweep_once": run_account_deletion_sweep_once,
}


def _requested_job(argv: list[str]) -> str:
    raw = argv[1] if len(argv) > 1 else os.getenv("WORKER_JOB", DEFAULT_JOB)
    return raw.strip().lower()


async def run_worker(job_name: str | None = None) -> None:
    name = (job_name or _requested_job(sys.argv)).strip().lower()
    job = JOB_REGISTRY.get(name)
    if job is None:
        raise ValueError(f"Unknown worker job '{name}'. Available jobs: {', '.join(sorted(JOB_REGISTRY))}")

    logger.info("Worker starting", job=name, environment=settings.environment)
    await job()
    logger.info("Worker finished", job=name)


def main() -> None:
    setup_logging(log_level=settings.LOG_LEVEL)
    try:
        asyncio.run(run_worker(_requested_job(sys.argv)))
    except ValueError as e:
        logger.error("Worker not started", error=str(e))
        sys.exit(2)
    except KeyboardInterrupt:
        logger.info("Worker interrupted")


if __name__ == "__main__":
    main()
