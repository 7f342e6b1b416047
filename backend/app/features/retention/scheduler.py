"""APScheduler wiring for periodic maintenance jobs."""

from typing import Optional

import structlog
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.core import get_global_settings
from app.features.alerts.cooldown import CooldownController

from .sweeper import RetentionSweeper, build_retention_rules

logger = structlog.get_logger(__name__)

# Global scheduler instance
_scheduler: Optional[AsyncIOScheduler] = None

RETENTION_JOB_ID = "retention_sweep"
COOLDOWN_PRUNE_JOB_ID = "cooldown_prune"
COOLDOWN_PRUNE_INTERVAL_SECONDS = 300


def get_scheduler() -> Optional[AsyncIOScheduler]:
    """Get the global scheduler instance, if started."""
    return _scheduler


async def _run_sweep(sweeper: RetentionSweeper) -> None:
    try:
        await sweeper.sweep()
    except Exception as e:
        logger.error(
            "Retention sweep failed",
            error=str(e),
            error_type=type(e).__name__,
        )


def _prune_cooldowns(cooldowns: CooldownController) -> None:
    cooldowns.prune()


async def start_retention_scheduler(
    sweeper: Optional[RetentionSweeper] = None,
    cooldowns: Optional[CooldownController] = None,
) -> Optional[AsyncIOScheduler]:
    """Start the in-memory scheduler running the retention sweep.

    :param sweeper: Sweeper to run, built from settings when omitted
    :param cooldowns: Alert cooldown map pruned on a fixed interval
    :returns: The running scheduler, or None when disabled
    """
    global _scheduler

    settings = get_global_settings()

    if not settings.retention_sweeper_enabled:
        logger.info("Retention sweeper is disabled via configuration")
        return None

    if _scheduler is not None:
        logger.warning("Scheduler already initialized")
        return _scheduler

    sweeper = sweeper or RetentionSweeper(build_retention_rules(settings))

    scheduler = AsyncIOScheduler(
        executors={"default": AsyncIOExecutor()},
        job_defaults={
            "coalesce": True,  # Combine multiple missed runs into one
            "max_instances": 1,
            "misfire_grace_time": 60,
        },
        timezone="UTC",
    )
    scheduler.add_job(
        _run_sweep,
        trigger="interval",
        seconds=settings.retention_sweep_interval_seconds,
        id=RETENTION_JOB_ID,
        name="Retention sweep",
        args=[sweeper],
        replace_existing=True,
    )
    if cooldowns is not None:
        scheduler.add_job(
            _prune_cooldowns,
            trigger="interval",
            seconds=COOLDOWN_PRUNE_INTERVAL_SECONDS,
            id=COOLDOWN_PRUNE_JOB_ID,
            name="Alert cooldown prune",
            args=[cooldowns],
            replace_existing=True,
        )

    scheduler.start()
    _scheduler = scheduler

    logger.info(
        "Retention scheduler started",
        interval_seconds=settings.retention_sweep_interval_seconds,
        rules=[rule.name for rule in sweeper.rules],
    )
    return _scheduler


async def shutdown_retention_scheduler() -> None:
    """Stop the scheduler without waiting for a running sweep."""
    global _scheduler

    if _scheduler is None:
        return

    _scheduler.shutdown(wait=False)
    _scheduler = None
    logger.info("Retention scheduler shut down")
