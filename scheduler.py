"""
Cron trigger for the daily push.

In-process: ``start_scheduler`` registers the job on a background scheduler;
``shutdown(wait=True)`` lets an in-flight run finish before the process exits.
Standalone: ``python scheduler.py`` runs the pipeline once, for hosts that
bring their own cron.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from config import Settings
from pipeline import PipelineOutcome, execute_daily_fortune

logger = logging.getLogger(__name__)

JOB_ID = "daily_fortune"


def run_scheduled() -> PipelineOutcome:
    """One scheduled run with freshly loaded settings. Outcome is only logged."""
    logger.info("[Scheduled] Cron triggered at %s", datetime.now(timezone.utc).isoformat())
    outcome = execute_daily_fortune(Settings.from_env())
    if outcome.success:
        logger.info("[Scheduled] %s", outcome.message)
    else:
        logger.error("[Scheduled] %s", outcome.message)
    return outcome


def build_scheduler(settings: Settings) -> BackgroundScheduler:
    """Scheduler with the daily job registered on ``settings.cron`` (UTC)."""
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        run_scheduled,
        trigger=CronTrigger.from_crontab(settings.cron, timezone="UTC"),
        id=JOB_ID,
        name="Daily fortune push",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def start_scheduler(settings: Settings) -> Optional[BackgroundScheduler]:
    if not settings.scheduler_enabled:
        logger.info("[Scheduled] scheduler disabled")
        return None
    scheduler = build_scheduler(settings)
    scheduler.start()
    logger.info("[Scheduled] daily fortune scheduled with cron %r (UTC)", settings.cron)
    return scheduler


if __name__ == "__main__":
    logging.basicConfig(
        level=Settings.from_env().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(0 if run_scheduled().success else 1)
