"""
Payout reconciler.

Period-due crediting of investment records. The investment row is advanced
with a conditional update on ``payout_count``; only the writer whose update
lands credits the user, so concurrent sweep and on-demand passes never
credit the same period twice.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.config.business_constants import PAYOUT_PERIOD
from happyinvest.models.enums import (
    BalancePool,
    InvestmentStatus,
    TransactionType,
)
from happyinvest.repositories.ban_repository import BanRepository
from happyinvest.repositories.investment_repository import (
    InvestmentRepository,
)
from happyinvest.repositories.user_repository import UserRepository
from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.services.investment.payout_calculator import (
    credit_pool,
    is_payout_due,
    next_period_state,
)
from happyinvest.utils.exceptions import AlreadyProcessedError, NotFoundError


@dataclass
class CreditOutcome:
    """One credited payout period."""

    investment_id: int
    user_id: int
    amount: Decimal
    pool: BalancePool
    completed: bool


@dataclass
class ReconcileSummary:
    """Credits produced for one user."""

    regular_income: Decimal = Decimal("0")
    locked_income: Decimal = Decimal("0")
    credits: list[CreditOutcome] = field(default_factory=list)

    @property
    def income_added(self) -> Decimal:
        return self.regular_income + self.locked_income

    def add(self, outcome: CreditOutcome) -> None:
        self.credits.append(outcome)
        if outcome.pool == BalancePool.LOCKED:
            self.locked_income += outcome.amount
        else:
            self.regular_income += outcome.amount


class PayoutReconciler:
    """Credits due payout periods. Never commits."""

    def __init__(
        self, session: AsyncSession, period: timedelta = PAYOUT_PERIOD
    ) -> None:
        """
        Initialize payout reconciler.

        Args:
            session: Database session
            period: Payout period length
        """
        self.session = session
        self.period = period
        self.investment_repo = InvestmentRepository(session)
        self.ban_repo = BanRepository(session)
        self.user_repo = UserRepository(session)
        self.balance_manager = BalanceManager(session)

    async def credit_if_due(
        self, investment_id: int, now: datetime
    ) -> CreditOutcome | None:
        """
        Credit one period of an investment if it is due.

        Args:
            investment_id: Investment ID
            now: Server time

        Returns:
            Credit outcome, or None if nothing was due (or the owner is
            banned)

        Raises:
            NotFoundError: Investment missing
            AlreadyProcessedError: Another writer credited this period first
        """
        investment = await self.investment_repo.get_by_id(
            investment_id, fresh=True
        )
        if investment is None:
            raise NotFoundError(f"Investment {investment_id} not found")

        if not investment.is_active or investment.days_remaining <= 0:
            return None
        if not is_payout_due(investment.last_payout_at, now, self.period):
            return None

        if await self.ban_repo.get_active(investment.user_id, now):
            logger.info(
                "Skipping payout for banned user",
                extra={
                    "investment_id": investment_id,
                    "user_id": investment.user_id,
                },
            )
            return None

        amount = investment.daily_income
        pool = credit_pool(investment)
        state = next_period_state(investment, now, self.period)

        # Lock order on every payout path: users row, then investments row
        await self.user_repo.lock_for_update(investment.user_id)

        advanced = await self.investment_repo.conditional_update(
            investment_id,
            {
                "payout_count": investment.payout_count,
                "status": InvestmentStatus.ACTIVE.value,
            },
            **state.as_values(),
        )
        if not advanced:
            raise AlreadyProcessedError(
                f"Payout period of investment {investment_id} already credited"
            )

        user = await self.balance_manager.apply(
            investment.user_id,
            BalanceChange.credit(amount, pool, lifetime_earnings=amount),
            now,
            enforce_ban=False,
        )
        await self.balance_manager.record(
            user,
            TransactionType.DAILY_INCOME.value,
            amount,
            pool=pool,
            at=now,
            investment_id=investment_id,
            plan_id=investment.plan_id,
            description=f"Daily income day {state.payout_count}/{investment.term_days}",
        )

        logger.info(
            "Payout credited",
            extra={
                "investment_id": investment_id,
                "user_id": investment.user_id,
                "amount": str(amount),
                "pool": pool.value,
                "payout_count": state.payout_count,
                "days_remaining": state.days_remaining,
            },
        )

        return CreditOutcome(
            investment_id=investment_id,
            user_id=investment.user_id,
            amount=amount,
            pool=pool,
            completed=state.days_remaining == 0,
        )

    async def reconcile_user(
        self, user_id: int, now: datetime
    ) -> ReconcileSummary:
        """
        Credit every due investment of one user.

        Periods credited concurrently by another writer are skipped.

        Args:
            user_id: User ID
            now: Server time

        Returns:
            Summary of credited income per pool
        """
        summary = ReconcileSummary()
        for investment in await self.investment_repo.get_active_by_user(
            user_id
        ):
            try:
                outcome = await self.credit_if_due(investment.id, now)
            except AlreadyProcessedError:
                logger.debug(
                    "Period already credited by another pass",
                    extra={"investment_id": investment.id},
                )
                continue
            if outcome is not None:
                summary.add(outcome)
        return summary
