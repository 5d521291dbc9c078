"""
Withdrawal query service.

Withdrawal history for users and the pending queue for operators.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from happyinvest.models.withdrawal import WithdrawalRequest
from happyinvest.repositories.withdrawal_repository import (
    WithdrawalRepository,
)
from happyinvest.services.base_service import BaseService, OperationResult


@dataclass
class WithdrawalView:
    """Withdrawal request as listed."""

    id: int
    user_id: int
    amount: Decimal
    status: str
    bank_details: dict[str, Any]
    transaction_ref: str | None
    utr_number: str | None
    created_at: datetime
    processed_at: datetime | None

    @classmethod
    def from_model(cls, withdrawal: WithdrawalRequest) -> "WithdrawalView":
        return cls(
            id=withdrawal.id,
            user_id=withdrawal.user_id,
            amount=withdrawal.amount,
            status=withdrawal.status,
            bank_details=withdrawal.bank_details,
            transaction_ref=withdrawal.transaction_ref,
            utr_number=withdrawal.utr_number,
            created_at=withdrawal.created_at,
            processed_at=withdrawal.processed_at,
        )


@dataclass
class WithdrawalListResult(OperationResult):
    """List of withdrawal requests."""

    withdrawals: list[WithdrawalView] = field(default_factory=list)


class WithdrawalQueryService(BaseService):
    """Queries over withdrawal requests."""

    async def get_history(
        self, user_id: int, limit: int | None = None
    ) -> WithdrawalListResult:
        """Withdrawal history of a user, newest first."""
        withdrawals = await WithdrawalRepository(self.session).get_by_user(
            user_id, limit=limit
        )
        return WithdrawalListResult(
            withdrawals=[WithdrawalView.from_model(w) for w in withdrawals]
        )

    async def get_pending(
        self, limit: int | None = None
    ) -> WithdrawalListResult:
        """Pending requests awaiting an operator, oldest first."""
        withdrawals = await WithdrawalRepository(self.session).get_pending(
            limit=limit
        )
        return WithdrawalListResult(
            withdrawals=[WithdrawalView.from_model(w) for w in withdrawals]
        )
