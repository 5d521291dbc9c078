"""
Scheduled payout sweep.

Daily pass over all due investment records. Each record is credited in its
own session and commit; a failing record is logged and the sweep moves on.
The sweep may overlap with itself or with on-demand checks.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from happyinvest.config.business_constants import PAYOUT_PERIOD
from happyinvest.config.settings import settings
from happyinvest.repositories.investment_repository import (
    InvestmentRepository,
)
from happyinvest.services.base_service import OperationResult
from happyinvest.services.payout.payout_reconciler import (
    CreditOutcome,
    PayoutReconciler,
)
from happyinvest.utils.exceptions import AlreadyProcessedError


@dataclass
class SweepResult(OperationResult):
    """Totals of one sweep."""

    total_distributed: Decimal = Decimal("0")
    users_paid: int = 0
    investments_credited: int = 0
    skipped: int = 0
    failures: int = 0


class _Failed:
    """Marker for a record whose credit failed."""


class ScheduledSweep:
    """Fixed-time payout sweep over all investments."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        concurrency: int | None = None,
        period: timedelta = PAYOUT_PERIOD,
        store_timeout: float | None = None,
    ) -> None:
        """
        Initialize scheduled sweep.

        Args:
            session_maker: Factory for per-record sessions
            concurrency: Records credited in parallel (defaults to settings)
            period: Payout period length
            store_timeout: Seconds allowed per store step (defaults to settings)
        """
        self.session_maker = session_maker
        self.concurrency = concurrency or settings.sweep_concurrency
        self.period = period
        self.store_timeout = store_timeout or settings.store_timeout_seconds

    async def _credit_and_commit(
        self, session: AsyncSession, investment_id: int, now: datetime
    ) -> CreditOutcome | None:
        outcome = await PayoutReconciler(session, self.period).credit_if_due(
            investment_id, now
        )
        await session.commit()
        return outcome

    async def _credit_one(
        self,
        investment_id: int,
        now: datetime,
        semaphore: asyncio.Semaphore,
    ) -> CreditOutcome | _Failed | None:
        async with semaphore:
            async with self.session_maker() as session:
                try:
                    return await asyncio.wait_for(
                        self._credit_and_commit(session, investment_id, now),
                        timeout=self.store_timeout,
                    )
                except AlreadyProcessedError:
                    await session.rollback()
                    return None
                except TimeoutError:
                    await session.rollback()
                    logger.error(
                        f"Sweep timed out crediting investment {investment_id} "
                        f"after {self.store_timeout}s",
                        extra={"investment_id": investment_id},
                    )
                    return _Failed()
                except Exception as e:
                    await session.rollback()
                    logger.error(
                        f"Sweep failed to credit investment {investment_id}: {e}",
                        extra={"investment_id": investment_id},
                        exc_info=True,
                    )
                    return _Failed()

    async def run(self, now: datetime) -> SweepResult:
        """
        Credit every due investment record.

        Args:
            now: Server time of the sweep

        Returns:
            Sweep totals

        Raises:
            TimeoutError: Listing due records exceeded the store timeout
        """
        if settings.emergency_stop_payouts:
            logger.warning("Scheduled sweep skipped: emergency stop active")
            return SweepResult(message="Payouts are temporarily paused")

        async with self.session_maker() as session:
            due_ids = await asyncio.wait_for(
                InvestmentRepository(session).get_due_ids(now - self.period),
                timeout=self.store_timeout,
            )

        logger.info(
            "Scheduled sweep started",
            extra={"due_investments": len(due_ids), "now": now.isoformat()},
        )

        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes = await asyncio.gather(
            *(self._credit_one(inv_id, now, semaphore) for inv_id in due_ids)
        )

        result = SweepResult()
        paid_users: set[int] = set()
        for outcome in outcomes:
            if isinstance(outcome, _Failed):
                result.failures += 1
            elif outcome is None:
                result.skipped += 1
            else:
                result.investments_credited += 1
                result.total_distributed += outcome.amount
                paid_users.add(outcome.user_id)
        result.users_paid = len(paid_users)
        result.message = (
            f"Distributed {result.total_distributed} to "
            f"{result.users_paid} users"
        )

        logger.info(
            "Scheduled sweep finished",
            extra={
                "total_distributed": str(result.total_distributed),
                "users_paid": result.users_paid,
                "investments_credited": result.investments_credited,
                "skipped": result.skipped,
                "failures": result.failures,
            },
        )
        return result
