"""
Bank details.

Payout destination captured by the client and snapshotted into each
withdrawal request.
"""

from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.services.balance import BalanceChange, BalanceManager
from happyinvest.services.base_service import OperationResult
from happyinvest.utils.datetime_utils import utc_now
from happyinvest.utils.db_decorators import with_rollback_on_error
from happyinvest.utils.exceptions import InvalidRequestError


class BankDetails(BaseModel):
    """Bank account used for withdrawals."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    account_holder: str = Field(..., min_length=1, max_length=255)
    account_number: str = Field(..., min_length=4, max_length=34)
    ifsc_code: str = Field(..., min_length=4, max_length=20)
    bank_name: str | None = Field(default=None, max_length=255)

    @field_validator("account_number")
    @classmethod
    def validate_account_number(cls, v: str) -> str:
        """Account numbers are digits only."""
        if not v.isdigit():
            raise ValueError("Account number must contain only digits")
        return v

    @field_validator("ifsc_code")
    @classmethod
    def normalize_ifsc(cls, v: str) -> str:
        """IFSC codes are stored upper-case."""
        return v.upper()


def parse_bank_details(data: BankDetails | dict[str, Any]) -> BankDetails:
    """
    Validate raw bank details.

    Raises:
        InvalidRequestError: If the details are malformed
    """
    if isinstance(data, BankDetails):
        return data
    try:
        return BankDetails.model_validate(data)
    except ValidationError as e:
        raise InvalidRequestError(
            f"Invalid bank details: {e.errors()[0]['msg']}"
        ) from e


class BankDetailsService:
    """Stores the saved bank details of a user."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize bank details service.

        Args:
            session: Database session
        """
        self.session = session
        self.balance_manager = BalanceManager(session)

    @with_rollback_on_error
    async def save_bank_details(
        self, user_id: int, bank_details: BankDetails | dict[str, Any]
    ) -> OperationResult:
        """
        Save bank details for later withdrawals.

        Args:
            user_id: User ID
            bank_details: Bank details

        Returns:
            Operation result
        """
        details = parse_bank_details(bank_details)
        await self.balance_manager.apply(
            user_id,
            BalanceChange(fields={"bank_details": details.model_dump()}),
            utc_now(),
            enforce_ban=False,
        )
        await self.session.commit()

        logger.info("Bank details saved", extra={"user_id": user_id})
        return OperationResult(message="Bank details saved")
