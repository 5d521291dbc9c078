"""
Payout calculator.

Pure period-due arithmetic for investment records. No I/O; the reconciler
feeds it the stored anchor and the server clock.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from happyinvest.config.business_constants import PAYOUT_PERIOD
from happyinvest.models.enums import BalancePool, InvestmentStatus
from happyinvest.models.investment import Investment

SECONDS_PER_HOUR = 3600


@dataclass(frozen=True)
class PeriodState:
    """Investment columns after one credited period."""

    days_remaining: int
    total_earned: Decimal
    payout_count: int
    status: str
    last_payout_at: datetime
    next_payout_due_at: datetime
    completed_at: datetime | None

    def as_values(self) -> dict:
        """Column assignments for a conditional update."""
        return {
            "days_remaining": self.days_remaining,
            "total_earned": self.total_earned,
            "payout_count": self.payout_count,
            "status": self.status,
            "last_payout_at": self.last_payout_at,
            "next_payout_due_at": self.next_payout_due_at,
            "completed_at": self.completed_at,
        }


def hours_since_last_payout(last_payout_at: datetime, now: datetime) -> float:
    """
    Hours elapsed since the payout anchor.

    Args:
        last_payout_at: Anchor of the current period
        now: Server time

    Returns:
        Elapsed hours (negative if the anchor lies in the future)
    """
    return (now - last_payout_at).total_seconds() / SECONDS_PER_HOUR


def is_payout_due(
    last_payout_at: datetime,
    now: datetime,
    period: timedelta = PAYOUT_PERIOD,
) -> bool:
    """Whether a full payout period has elapsed since the anchor."""
    period_hours = period.total_seconds() / SECONDS_PER_HOUR
    return hours_since_last_payout(last_payout_at, now) >= period_hours


def credit_pool(investment: Investment) -> BalancePool:
    """Pool receiving the daily income of an investment."""
    return BalancePool.LOCKED if investment.locked_balance else BalancePool.SPENDABLE


def next_period_state(
    investment: Investment,
    now: datetime,
    period: timedelta = PAYOUT_PERIOD,
) -> PeriodState:
    """
    Compute the investment state after crediting one period at ``now``.

    The anchor moves to ``now`` and the record completes when the last
    remaining day is credited.

    Args:
        investment: Active investment with a due period
        now: Server time of the credit
        period: Payout period length

    Returns:
        New period state

    Raises:
        ValueError: If the investment has no remaining days
    """
    if investment.days_remaining <= 0:
        raise ValueError(
            f"Investment {investment.id} has no remaining payout days"
        )

    days_remaining = investment.days_remaining - 1
    completed = days_remaining == 0
    return PeriodState(
        days_remaining=days_remaining,
        total_earned=investment.total_earned + investment.daily_income,
        payout_count=investment.payout_count + 1,
        status=(
            InvestmentStatus.COMPLETED.value
            if completed
            else InvestmentStatus.ACTIVE.value
        ),
        last_payout_at=now,
        next_payout_due_at=now + period,
        completed_at=now if completed else None,
    )
