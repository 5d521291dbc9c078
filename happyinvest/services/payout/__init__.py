"""
Payout services package.

- payout_reconciler: period-due crediting of investment records
- on_demand_payout_service: user-triggered check behind the anti-cheat guard
- scheduled_sweep: daily pass over all due records
"""

from happyinvest.services.payout.on_demand_payout_service import (
    OnDemandPayoutService,
    PayoutCheckResult,
)
from happyinvest.services.payout.payout_reconciler import (
    CreditOutcome,
    PayoutReconciler,
    ReconcileSummary,
)
from happyinvest.services.payout.scheduled_sweep import (
    ScheduledSweep,
    SweepResult,
)

__all__ = [
    "CreditOutcome",
    "OnDemandPayoutService",
    "PayoutCheckResult",
    "PayoutReconciler",
    "ReconcileSummary",
    "ScheduledSweep",
    "SweepResult",
]
