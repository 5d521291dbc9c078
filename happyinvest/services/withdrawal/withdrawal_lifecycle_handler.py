"""
Withdrawal lifecycle handling module.

Operator resolution of pending requests. The status transition is a
conditional update from ``pending``; rejection refunds the reserved amount.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.models.enums import (
    BalancePool,
    TransactionType,
    WithdrawalDecision,
    WithdrawalStatus,
)
from happyinvest.repositories.withdrawal_repository import (
    WithdrawalRepository,
)
from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.services.base_service import OperationResult
from happyinvest.utils.db_decorators import with_rollback_on_error
from happyinvest.utils.exceptions import (
    AlreadyProcessedError,
    InvalidRequestError,
    NotFoundError,
)


@dataclass
class WithdrawalResolveResult(OperationResult):
    """Result of an operator action on a withdrawal."""

    withdrawal_id: int | None = None
    status: str | None = None
    new_balance: Decimal | None = None


class WithdrawalLifecycleHandler:
    """Handles withdrawal lifecycle operations."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize withdrawal lifecycle handler.

        Args:
            session: Database session
        """
        self.session = session
        self.withdrawal_repo = WithdrawalRepository(session)
        self.balance_manager = BalanceManager(session)

    @with_rollback_on_error
    async def resolve_withdrawal(
        self,
        withdrawal_id: int,
        decision: WithdrawalDecision | str,
        now: datetime,
        transaction_ref: str | None = None,
        utr_number: str | None = None,
        processed_by: str | None = None,
        rejection_reason: str | None = None,
    ) -> WithdrawalResolveResult:
        """
        Complete or reject a pending withdrawal (operator only).

        Args:
            withdrawal_id: Withdrawal request ID
            decision: completed or rejected
            now: Server time
            transaction_ref: Operator transaction reference
            utr_number: Bank UTR number
            processed_by: Operator identifier
            rejection_reason: Reason shown to the user on rejection

        Returns:
            Resolve result

        Raises:
            InvalidRequestError: Unknown decision
            NotFoundError: Request missing
            AlreadyProcessedError: Request already resolved
        """
        try:
            decision = WithdrawalDecision(decision)
        except ValueError as e:
            raise InvalidRequestError(
                f"Unknown withdrawal decision: {decision}"
            ) from e

        withdrawal = await self.withdrawal_repo.get_by_id(
            withdrawal_id, fresh=True
        )
        if withdrawal is None:
            raise NotFoundError(f"Withdrawal {withdrawal_id} not found")
        if withdrawal.is_terminal:
            raise AlreadyProcessedError(
                f"Withdrawal already {withdrawal.status}"
            )

        resolved = await self.withdrawal_repo.conditional_update(
            withdrawal_id,
            {"status": WithdrawalStatus.PENDING.value},
            status=decision.value,
            processed_at=now,
            processed_by=processed_by,
            transaction_ref=transaction_ref,
            utr_number=utr_number,
            rejection_reason=(
                rejection_reason
                if decision == WithdrawalDecision.REJECTED
                else None
            ),
        )
        if not resolved:
            raise AlreadyProcessedError("Withdrawal was resolved concurrently")

        user = None
        if decision == WithdrawalDecision.REJECTED:
            user = await self.balance_manager.apply(
                withdrawal.user_id,
                BalanceChange(
                    spendable=withdrawal.amount,
                    withdrawn=-withdrawal.amount,
                ),
                now,
                enforce_ban=False,
            )
            await self.balance_manager.record(
                user,
                TransactionType.WITHDRAWAL_REFUND.value,
                withdrawal.amount,
                pool=BalancePool.SPENDABLE,
                at=now,
                withdrawal_id=withdrawal_id,
                description=rejection_reason or "Withdrawal rejected",
            )

        new_balance = user.spendable_balance if user is not None else None
        await self.session.commit()

        logger.info(
            "Withdrawal resolved",
            extra={
                "withdrawal_id": withdrawal_id,
                "user_id": withdrawal.user_id,
                "amount": str(withdrawal.amount),
                "decision": decision.value,
                "processed_by": processed_by,
            },
        )

        return WithdrawalResolveResult(
            message=f"Withdrawal {decision.value}",
            withdrawal_id=withdrawal_id,
            status=decision.value,
            new_balance=new_balance,
        )

    @with_rollback_on_error
    async def update_reference(
        self,
        withdrawal_id: int,
        transaction_ref: str | None = None,
        utr_number: str | None = None,
    ) -> WithdrawalResolveResult:
        """
        Correct operator reference numbers of a completed withdrawal.

        Args:
            withdrawal_id: Withdrawal request ID
            transaction_ref: Operator transaction reference
            utr_number: Bank UTR number

        Returns:
            Resolve result
        """
        withdrawal = await self.withdrawal_repo.get_by_id(
            withdrawal_id, fresh=True
        )
        if withdrawal is None:
            raise NotFoundError(f"Withdrawal {withdrawal_id} not found")
        if withdrawal.status == WithdrawalStatus.REJECTED.value:
            raise AlreadyProcessedError("Rejected withdrawals are immutable")
        if withdrawal.status != WithdrawalStatus.COMPLETED.value:
            raise InvalidRequestError(
                "Only completed withdrawals accept reference updates"
            )

        values = {}
        if transaction_ref is not None:
            values["transaction_ref"] = transaction_ref
        if utr_number is not None:
            values["utr_number"] = utr_number
        if not values:
            raise InvalidRequestError("Nothing to update")

        await self.withdrawal_repo.conditional_update(
            withdrawal_id,
            {"status": WithdrawalStatus.COMPLETED.value},
            **values,
        )
        await self.session.commit()

        logger.info(
            "Withdrawal reference updated",
            extra={"withdrawal_id": withdrawal_id, **values},
        )
        return WithdrawalResolveResult(
            message="Reference updated",
            withdrawal_id=withdrawal_id,
            status=withdrawal.status,
        )
