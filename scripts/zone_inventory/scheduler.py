"""APScheduler-based daily schedule for the zone report."""

from __future__ import annotations

import logging

from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from scripts.zone_inventory.config import InventoryConfig
from scripts.zone_inventory.errors import InventoryError
from scripts.zone_inventory.runner import run_report

logger = logging.getLogger("zone_inventory.scheduler")


def _run_daily_report(config: InventoryConfig) -> None:
    """Run one report; failures are logged and the next run still happens."""
    try:
        result = run_report(config)
    except InventoryError as exc:
        logger.error("Scheduled report failed: %s", exc)
        return
    logger.info(
        "Scheduled report complete: %d/%d accounts, %d rows",
        result.processed_count,
        result.configured_count,
        len(result.rows),
    )


def _on_job_error(event) -> None:
    """Log job execution errors."""
    logger.error(
        "Job %s raised an exception: %s",
        event.job_id,
        event.exception,
    )


def build_scheduler(config: InventoryConfig) -> BlockingScheduler:
    sched = config.scheduler
    scheduler = BlockingScheduler(timezone=sched.timezone)
    scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)
    scheduler.add_job(
        _run_daily_report,
        CronTrigger(hour=sched.hour, minute=sched.minute, timezone=sched.timezone),
        args=[config],
        id="zone_report",
        max_instances=1,
        coalesce=True,
        misfire_grace_time=sched.misfire_grace_time,
    )
    return scheduler


def start_scheduler(config: InventoryConfig) -> None:
    """Block, running the report every day at the configured time."""
    scheduler = build_scheduler(config)
    logger.info(
        "Starting scheduler: daily report at %02d:%02d %s",
        config.scheduler.hour,
        config.scheduler.minute,
        config.scheduler.timezone,
    )
    scheduler.start()
