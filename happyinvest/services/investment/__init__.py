"""
Investment registry package.

- payout_calculator: pure period-due arithmetic
- purchase_handler: plan purchase with plan snapshot
- investment_query_service: investment listings
"""

from happyinvest.services.investment.investment_query_service import (
    InvestmentListResult,
    InvestmentQueryService,
    InvestmentView,
)
from happyinvest.services.investment.payout_calculator import (
    PeriodState,
    credit_pool,
    hours_since_last_payout,
    is_payout_due,
    next_period_state,
)
from happyinvest.services.investment.purchase_handler import (
    PurchaseHandler,
    PurchaseResult,
)

__all__ = [
    "InvestmentListResult",
    "InvestmentQueryService",
    "InvestmentView",
    "PeriodState",
    "PurchaseHandler",
    "PurchaseResult",
    "credit_pool",
    "hours_since_last_payout",
    "is_payout_due",
    "next_period_state",
]
