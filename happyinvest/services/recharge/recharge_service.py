"""
Recharge service.

User-submitted deposits that credit the spendable balance once an operator
approves them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.config.settings import settings
from happyinvest.models.enums import BalancePool, RechargeStatus, TransactionType
from happyinvest.models.recharge import RechargeRequest
from happyinvest.repositories.recharge_repository import RechargeRepository
from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.services.base_service import OperationResult
from happyinvest.utils.db_decorators import with_rollback_on_error
from happyinvest.utils.exceptions import (
    AlreadyProcessedError,
    InvalidAmountError,
    InvalidRequestError,
    NotFoundError,
)


@dataclass
class RechargeResult(OperationResult):
    """Result of a recharge action."""

    recharge_id: int | None = None
    status: str | None = None
    new_balance: Decimal | None = None


@dataclass
class RechargeListResult(OperationResult):
    """List of recharge requests."""

    recharges: list[RechargeRequest] = field(default_factory=list)


class RechargeService:
    """Handles recharge requests."""

    def __init__(
        self, session: AsyncSession, min_amount: Decimal | None = None
    ) -> None:
        """
        Initialize recharge service.

        Args:
            session: Database session
            min_amount: Minimum recharge (defaults to settings)
        """
        self.session = session
        self.min_amount = (
            min_amount if min_amount is not None else settings.min_recharge_amount
        )
        self.recharge_repo = RechargeRepository(session)
        self.balance_manager = BalanceManager(session)

    @with_rollback_on_error
    async def create_recharge(
        self,
        user_id: int,
        amount: Decimal | int | str,
        now: datetime,
        payment_method: str = "manual",
        payment_reference: str | None = None,
    ) -> RechargeResult:
        """
        Submit a recharge request for operator approval.

        Args:
            user_id: User ID
            amount: Deposited amount
            now: Server time
            payment_method: Payment channel label
            payment_reference: Client payment reference

        Returns:
            Recharge result with the pending request
        """
        try:
            value = Decimal(str(amount))
        except InvalidOperation as e:
            raise InvalidAmountError(f"Invalid amount: {amount}") from e
        if not value.is_finite() or value < self.min_amount:
            raise InvalidAmountError(
                f"Minimum recharge amount is {self.min_amount}"
            )

        await self.balance_manager.ensure_not_banned(user_id, now)
        await self.balance_manager.get_user(user_id)

        recharge = await self.recharge_repo.create(
            user_id=user_id,
            amount=value,
            payment_method=payment_method,
            payment_reference=payment_reference,
            status=RechargeStatus.PENDING.value,
            created_at=now,
        )
        await self.session.commit()

        logger.info(
            "Recharge request created",
            extra={
                "recharge_id": recharge.id,
                "user_id": user_id,
                "amount": str(value),
            },
        )
        return RechargeResult(
            message="Recharge request submitted",
            recharge_id=recharge.id,
            status=recharge.status,
        )

    @with_rollback_on_error
    async def resolve_recharge(
        self,
        recharge_id: int,
        decision: RechargeStatus | str,
        now: datetime,
        approved_by: str | None = None,
    ) -> RechargeResult:
        """
        Approve or reject a pending recharge (operator only).

        Args:
            recharge_id: Recharge request ID
            decision: approved or rejected
            now: Server time
            approved_by: Operator identifier

        Returns:
            Recharge result
        """
        try:
            decision = RechargeStatus(decision)
        except ValueError as e:
            raise InvalidRequestError(
                f"Unknown recharge decision: {decision}"
            ) from e
        if decision == RechargeStatus.PENDING:
            raise InvalidRequestError("Decision must be approved or rejected")

        recharge = await self.recharge_repo.get_by_id(recharge_id, fresh=True)
        if recharge is None:
            raise NotFoundError(f"Recharge {recharge_id} not found")
        if recharge.status != RechargeStatus.PENDING.value:
            raise AlreadyProcessedError(f"Recharge already {recharge.status}")

        resolved = await self.recharge_repo.conditional_update(
            recharge_id,
            {"status": RechargeStatus.PENDING.value},
            status=decision.value,
            approved_by=approved_by,
            resolved_at=now,
        )
        if not resolved:
            raise AlreadyProcessedError("Recharge was resolved concurrently")

        new_balance = None
        if decision == RechargeStatus.APPROVED:
            user = await self.balance_manager.apply(
                recharge.user_id,
                BalanceChange(spendable=recharge.amount, recharge=recharge.amount),
                now,
            )
            await self.balance_manager.record(
                user,
                TransactionType.RECHARGE.value,
                recharge.amount,
                pool=BalancePool.SPENDABLE,
                at=now,
                recharge_id=recharge_id,
                description="Recharge approved",
            )
            new_balance = user.spendable_balance

        await self.session.commit()

        logger.info(
            "Recharge resolved",
            extra={
                "recharge_id": recharge_id,
                "user_id": recharge.user_id,
                "amount": str(recharge.amount),
                "decision": decision.value,
            },
        )
        return RechargeResult(
            message=f"Recharge {decision.value}",
            recharge_id=recharge_id,
            status=decision.value,
            new_balance=new_balance,
        )

    async def get_pending(self) -> RechargeListResult:
        """Pending recharge requests, oldest first."""
        recharges = await self.recharge_repo.find_by(
            status=RechargeStatus.PENDING.value
        )
        return RechargeListResult(recharges=recharges)
