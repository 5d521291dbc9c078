"""
Withdrawal validator.

Eligibility rules for a withdrawal request. Balance and daily cap checks
run against the freshly read user record inside the balance update, so they
hold under concurrent requests.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from happyinvest.config.settings import settings
from happyinvest.models.user import User
from happyinvest.services.withdrawal.bank_details import (
    BankDetails,
    parse_bank_details,
)
from happyinvest.utils.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidRequestError,
    RateLimitedError,
)


class WithdrawalValidator:
    """Validator for withdrawal requests."""

    def __init__(self, min_amount: Decimal | None = None) -> None:
        """
        Initialize withdrawal validator.

        Args:
            min_amount: Minimum withdrawal (defaults to settings)
        """
        self.min_amount = (
            min_amount
            if min_amount is not None
            else settings.min_withdrawal_amount
        )

    def ensure_enabled(self) -> None:
        """Refuse all withdrawals while the emergency stop is active."""
        if settings.emergency_stop_withdrawals:
            raise InvalidRequestError("Withdrawals are temporarily paused")

    def validate_amount(self, amount: Decimal | int | str) -> Decimal:
        """
        Parse and check the requested amount.

        Raises:
            InvalidAmountError: Non-numeric, non-positive or below minimum
        """
        try:
            value = Decimal(str(amount))
        except InvalidOperation as e:
            raise InvalidAmountError(f"Invalid amount: {amount}") from e

        if not value.is_finite() or value <= 0:
            raise InvalidAmountError("Amount must be positive")
        if value < self.min_amount:
            raise InvalidAmountError(
                f"Minimum withdrawal amount is {self.min_amount}"
            )
        return value

    def resolve_bank_details(
        self,
        user: User,
        bank_details: BankDetails | dict[str, Any] | None,
    ) -> dict[str, Any]:
        """
        Pick inline bank details, falling back to the saved ones.

        Raises:
            InvalidRequestError: No usable bank details
        """
        if bank_details:
            return parse_bank_details(bank_details).model_dump()
        if user.bank_details:
            return parse_bank_details(user.bank_details).model_dump()
        raise InvalidRequestError("Please add bank details first")

    def check_reservation(
        self, user: User, amount: Decimal, today: date
    ) -> None:
        """
        Check the daily cap and the spendable balance.

        Raises:
            RateLimitedError: A withdrawal was already requested today
            InsufficientBalanceError: Spendable balance below amount
        """
        if user.last_withdrawal_date == today:
            raise RateLimitedError("Only one withdrawal per day is allowed")
        if user.spendable_balance < amount:
            raise InsufficientBalanceError("Insufficient balance")
