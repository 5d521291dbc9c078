"""
Payout scheduler.

Runs the daily payout sweep at the configured business-timezone time and
serves the health endpoints.
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from happyinvest.config.logging import setup_logging
from happyinvest.config.settings import settings
from jobs.health import record_sweep, set_scheduler, start_health_server, stop_health_server
from jobs.tasks.daily_payout_sweep import run_daily_payout_sweep

SWEEP_JOB_ID = "daily_payout_sweep"

# Running scheduler, if any (used by shutdown hooks)
scheduler_instance: AsyncIOScheduler | None = None


async def scheduled_sweep_job() -> None:
    """Scheduler job wrapper that records the outcome for health checks."""
    try:
        result = await run_daily_payout_sweep()
    except Exception as e:
        logger.exception(f"Scheduled payout sweep crashed: {e}")
        record_sweep(None, error=str(e))
        return
    record_sweep(result)


def create_scheduler() -> AsyncIOScheduler:
    """
    Create the scheduler with the daily sweep job.

    Returns:
        Configured (not started) scheduler
    """
    scheduler = AsyncIOScheduler(timezone=settings.tz)
    scheduler.add_job(
        scheduled_sweep_job,
        CronTrigger(
            hour=settings.sweep_hour,
            minute=settings.sweep_minute,
            timezone=settings.tz,
        ),
        id=SWEEP_JOB_ID,
        name="Daily payout sweep",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=3600,
    )
    logger.info(
        f"Daily payout sweep scheduled at "
        f"{settings.sweep_hour:02d}:{settings.sweep_minute:02d} "
        f"{settings.business_timezone}"
    )
    return scheduler


async def main() -> None:
    """Run the scheduler until SIGINT/SIGTERM."""
    global scheduler_instance

    setup_logging()
    scheduler = create_scheduler()
    scheduler_instance = scheduler
    set_scheduler(scheduler)

    runner, _ = await start_health_server(port=settings.health_check_port)
    scheduler.start()
    logger.info("Payout scheduler started")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        logger.info("Graceful shutdown initiated...")
        scheduler.shutdown(wait=False)
        await stop_health_server(runner)
        scheduler_instance = None
        logger.info("Graceful shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
