"""
Daily payout sweep task.

Credits every due investment record. Runs once per day from the scheduler
and can be enqueued manually through dramatiq.
"""

from datetime import datetime

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from happyinvest.config.settings import settings
from happyinvest.services.ledger_engine import LedgerEngine
from happyinvest.services.payout import SweepResult
from happyinvest.utils.datetime_utils import latest_daily_slot, utc_now
from jobs.async_runner import create_local_session_maker, run_async
from jobs.broker import broker  # noqa: F401


async def run_daily_payout_sweep(
    session_maker: async_sessionmaker[AsyncSession] | None = None,
    now: datetime | None = None,
) -> SweepResult:
    """
    Run one scheduled sweep.

    Args:
        session_maker: Session factory (defaults to the configured one)
        now: Sweep time (defaults to the latest scheduled sweep slot, so
            consecutive daily runs are exactly one payout period apart)

    Returns:
        Sweep totals
    """
    if now is None:
        now = latest_daily_slot(
            utc_now(), settings.sweep_hour, settings.sweep_minute, settings.tz
        )

    logger.info(f"Starting daily payout sweep for slot {now.isoformat()}")
    result = await LedgerEngine(session_maker).run_scheduled_sweep(now)

    if result.success:
        logger.info(
            f"Daily payout sweep complete: {result.total_distributed} "
            f"distributed to {result.users_paid} users, "
            f"{result.failures} failures"
        )
    else:
        logger.error(f"Daily payout sweep failed: {result.message}")
    return result


async def _process_daily_payouts_async() -> SweepResult:
    async with create_local_session_maker() as session_maker:
        return await run_daily_payout_sweep(session_maker)


@dramatiq.actor(max_retries=3, time_limit=600_000)  # 10 min
def process_daily_payouts() -> None:
    """
    Dramatiq entry point for the daily payout sweep.

    Safe to enqueue while another sweep is running; records already
    credited are skipped.
    """
    result = run_async(_process_daily_payouts_async())
    if not result.success:
        raise RuntimeError(f"Daily payout sweep failed: {result.message}")
