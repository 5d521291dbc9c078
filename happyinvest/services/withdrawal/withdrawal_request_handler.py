"""
Withdrawal request handling module.

Reserves the requested amount immediately: the spendable balance is debited
and ``withdrawn_total`` incremented in the same conditional update that
checks eligibility, then a pending request is created.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any
from zoneinfo import ZoneInfo

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.config.settings import settings
from happyinvest.models.enums import (
    BalancePool,
    TransactionType,
    WithdrawalStatus,
)
from happyinvest.models.user import User
from happyinvest.repositories.withdrawal_repository import (
    WithdrawalRepository,
)
from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.services.base_service import OperationResult
from happyinvest.services.withdrawal.bank_details import BankDetails
from happyinvest.services.withdrawal.withdrawal_validator import (
    WithdrawalValidator,
)
from happyinvest.utils.datetime_utils import business_date
from happyinvest.utils.db_decorators import with_rollback_on_error


@dataclass
class WithdrawalResult(OperationResult):
    """Result of a withdrawal request."""

    withdrawal_id: int | None = None
    new_balance: Decimal | None = None


class WithdrawalRequestHandler:
    """Handles withdrawal request creation."""

    def __init__(
        self,
        session: AsyncSession,
        validator: WithdrawalValidator | None = None,
        tz: ZoneInfo | None = None,
    ) -> None:
        """
        Initialize withdrawal request handler.

        Args:
            session: Database session
            validator: Withdrawal validator
            tz: Business timezone for the daily cap (defaults to settings)
        """
        self.session = session
        self.validator = validator or WithdrawalValidator()
        self.tz = tz or settings.tz
        self.withdrawal_repo = WithdrawalRepository(session)
        self.balance_manager = BalanceManager(session)

    @with_rollback_on_error
    async def request_withdrawal(
        self,
        user_id: int,
        amount: Decimal | int | str,
        bank_details: BankDetails | dict[str, Any] | None,
        now: datetime,
    ) -> WithdrawalResult:
        """
        Request a withdrawal with immediate balance reservation.

        Args:
            user_id: User ID
            amount: Requested amount
            bank_details: Inline bank details, or None to use saved ones
            now: Server time

        Returns:
            Withdrawal result with the pending request and new balance

        Raises:
            UserBannedError, InvalidAmountError, RateLimitedError,
            InvalidRequestError, InsufficientBalanceError, NotFoundError
        """
        await self.balance_manager.ensure_not_banned(user_id, now)
        self.validator.ensure_enabled()
        value = self.validator.validate_amount(amount)
        today = business_date(now, self.tz)

        user = await self.balance_manager.get_user(user_id)
        destination = self.validator.resolve_bank_details(user, bank_details)

        def reserve(current: User) -> BalanceChange:
            self.validator.check_reservation(current, value, today)
            return BalanceChange(
                spendable=-value,
                withdrawn=value,
                fields={"last_withdrawal_date": today},
            )

        user = await self.balance_manager.apply(
            user_id, reserve, now, enforce_ban=False
        )

        withdrawal = await self.withdrawal_repo.create(
            user_id=user_id,
            amount=value,
            bank_details=destination,
            status=WithdrawalStatus.PENDING.value,
            created_at=now,
        )
        await self.balance_manager.record(
            user,
            TransactionType.WITHDRAWAL_REQUEST.value,
            value,
            pool=BalancePool.SPENDABLE,
            signed_amount=-value,
            at=now,
            withdrawal_id=withdrawal.id,
            description="Withdrawal requested",
        )

        new_balance = user.spendable_balance
        await self.session.commit()

        logger.info(
            "Withdrawal request created",
            extra={
                "withdrawal_id": withdrawal.id,
                "user_id": user_id,
                "amount": str(value),
            },
        )

        return WithdrawalResult(
            message="Withdrawal request submitted",
            withdrawal_id=withdrawal.id,
            new_balance=new_balance,
        )
