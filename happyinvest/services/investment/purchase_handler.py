"""
Plan purchase handling module.

Debits the plan price and creates the investment record in one commit.
The first-ever purchase of a user also runs the referral commission cascade
inside the same transaction.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.config.business_constants import PAYOUT_PERIOD
from happyinvest.config.plans import PlanCatalog, default_catalog
from happyinvest.models.enums import (
    BalancePool,
    InvestmentStatus,
    TransactionType,
)
from happyinvest.repositories.investment_repository import (
    InvestmentRepository,
)
from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.services.base_service import OperationResult
from happyinvest.services.referral import ReferralCommissionCascade
from happyinvest.utils.db_decorators import with_rollback_on_error
from happyinvest.utils.exceptions import NotFoundError


@dataclass
class PurchaseResult(OperationResult):
    """Result of a plan purchase."""

    investment_id: int | None = None
    new_balance: Decimal | None = None


class PurchaseHandler:
    """Handles plan purchases."""

    def __init__(
        self,
        session: AsyncSession,
        catalog: PlanCatalog | None = None,
        referral_bonus: Decimal | None = None,
    ) -> None:
        """
        Initialize purchase handler.

        Args:
            session: Database session
            catalog: Plan catalog (defaults to the built-in catalog)
            referral_bonus: Fixed referral bonus override
        """
        self.session = session
        self.catalog = catalog if catalog is not None else default_catalog
        self.investment_repo = InvestmentRepository(session)
        self.balance_manager = BalanceManager(session)
        self.referral_cascade = ReferralCommissionCascade(
            session, bonus_amount=referral_bonus
        )

    @with_rollback_on_error
    async def purchase(
        self, user_id: int, plan_id: str, now: datetime
    ) -> PurchaseResult:
        """
        Buy a plan for a user.

        Args:
            user_id: User ID
            plan_id: Catalog plan identifier
            now: Server time of the purchase

        Returns:
            Purchase result with the new investment and spendable balance

        Raises:
            NotFoundError: Unknown plan or user
            UserBannedError: User is banned
            InsufficientBalanceError: Spendable balance below the price
        """
        plan = self.catalog.get(plan_id)
        if plan is None:
            raise NotFoundError(f"Plan {plan_id} not found")

        # May be stale under concurrent purchases; the commission itself is
        # guarded by the conditional update on the referral edge
        is_first = not await self.investment_repo.has_any(user_id)

        user = await self.balance_manager.apply(
            user_id, BalanceChange(spendable=-plan.price), now
        )

        investment = await self.investment_repo.create(
            user_id=user_id,
            plan_id=plan.plan_id,
            plan_name=plan.name,
            plan_category=plan.category,
            price=plan.price,
            daily_income=plan.daily_income,
            total_income=plan.total_income,
            term_days=plan.term_days,
            locked_balance=plan.locked_balance,
            status=InvestmentStatus.ACTIVE.value,
            days_remaining=plan.term_days,
            total_earned=Decimal("0"),
            payout_count=0,
            last_payout_at=now,
            next_payout_due_at=now + PAYOUT_PERIOD,
            created_at=now,
        )

        await self.balance_manager.record(
            user,
            TransactionType.INVESTMENT.value,
            plan.price,
            pool=BalancePool.SPENDABLE,
            signed_amount=-plan.price,
            at=now,
            investment_id=investment.id,
            plan_id=plan.plan_id,
            description=f"Purchased {plan.name}",
        )

        await self.referral_cascade.record_investment(
            user, investment, now, is_first=is_first
        )

        new_balance = user.spendable_balance
        await self.session.commit()

        logger.info(
            "Plan purchased",
            extra={
                "user_id": user_id,
                "investment_id": investment.id,
                "plan_id": plan.plan_id,
                "price": str(plan.price),
                "first_investment": is_first,
            },
        )

        return PurchaseResult(
            message="Investment successful",
            investment_id=investment.id,
            new_balance=new_balance,
        )
