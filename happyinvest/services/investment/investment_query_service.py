"""
Investment query service.

Read-only views of a user's investments.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from happyinvest.models.investment import Investment
from happyinvest.repositories.investment_repository import (
    InvestmentRepository,
)
from happyinvest.services.base_service import BaseService, OperationResult


@dataclass
class InvestmentView:
    """Investment as shown to the user."""

    id: int
    plan_id: str
    plan_name: str
    price: Decimal
    daily_income: Decimal
    total_income: Decimal
    term_days: int
    locked_balance: bool
    status: str
    days_remaining: int
    total_earned: Decimal
    payout_count: int
    last_payout_at: datetime
    next_payout_due_at: datetime
    created_at: datetime

    @classmethod
    def from_model(cls, investment: Investment) -> "InvestmentView":
        return cls(
            id=investment.id,
            plan_id=investment.plan_id,
            plan_name=investment.plan_name,
            price=investment.price,
            daily_income=investment.daily_income,
            total_income=investment.total_income,
            term_days=investment.term_days,
            locked_balance=investment.locked_balance,
            status=investment.status,
            days_remaining=investment.days_remaining,
            total_earned=investment.total_earned,
            payout_count=investment.payout_count,
            last_payout_at=investment.last_payout_at,
            next_payout_due_at=investment.next_payout_due_at,
            created_at=investment.created_at,
        )


@dataclass
class InvestmentListResult(OperationResult):
    """Investments of one user."""

    investments: list[InvestmentView] = field(default_factory=list)


class InvestmentQueryService(BaseService):
    """Queries over investment records."""

    async def get_user_investments(self, user_id: int) -> InvestmentListResult:
        """
        List all investments of a user, newest first.

        Args:
            user_id: User ID

        Returns:
            Investment list result
        """
        investments = await InvestmentRepository(self.session).get_by_user(
            user_id
        )
        return InvestmentListResult(
            investments=[InvestmentView.from_model(inv) for inv in investments]
        )
