"""
Exception handling utilities.

Defines categorized ledger errors. Services raise them; the engine facade
converts them into structured results with the matching error code.
"""

from datetime import datetime
from enum import StrEnum

from sqlalchemy.exc import SQLAlchemyError


class ErrorCode(StrEnum):
    """Error kinds reported by ledger operations."""

    NOT_FOUND = "not_found"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INVALID_AMOUNT = "invalid_amount"
    ALREADY_PROCESSED = "already_processed"
    RATE_LIMITED = "rate_limited"
    TIME_DRIFT_DETECTED = "time_drift_detected"
    BANNED = "banned"
    STORE_UNAVAILABLE = "store_unavailable"
    INVALID_REQUEST = "invalid_request"


class LedgerError(Exception):
    """Base class for ledger errors."""

    code: ErrorCode = ErrorCode.INVALID_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(LedgerError):
    """User, plan, investment or request missing."""

    code = ErrorCode.NOT_FOUND
    default_message = "Not found"


class InsufficientBalanceError(LedgerError):
    """Balance pool would go negative."""

    code = ErrorCode.INSUFFICIENT_BALANCE
    default_message = "Insufficient balance"


class InvalidAmountError(LedgerError):
    """Amount is non-positive or below the configured minimum."""

    code = ErrorCode.INVALID_AMOUNT
    default_message = "Invalid amount"


class AlreadyProcessedError(LedgerError):
    """Terminal request, credited period or paid commission."""

    code = ErrorCode.ALREADY_PROCESSED
    default_message = "Already processed"


class RateLimitedError(LedgerError):
    """Cooldown, penalty window or daily cap in effect."""

    code = ErrorCode.RATE_LIMITED
    default_message = "Too many requests"

    def __init__(
        self,
        message: str | None = None,
        wait_minutes: int | None = None,
        retry_at: datetime | None = None,
    ) -> None:
        super().__init__(message)
        self.wait_minutes = wait_minutes
        self.retry_at = retry_at


class UserBannedError(LedgerError):
    """Balance-mutating operation refused for a banned user."""

    code = ErrorCode.BANNED
    default_message = "Account is banned"


class StoreUnavailableError(LedgerError):
    """Store failure or timeout; nothing was applied."""

    code = ErrorCode.STORE_UNAVAILABLE
    default_message = "Service temporarily unavailable, please retry"


class InvalidRequestError(LedgerError):
    """Malformed request (missing bank details, unknown decision)."""

    code = ErrorCode.INVALID_REQUEST


# Failures that leave the operation unapplied and are safe to retry
STORE_FAILURES = (
    SQLAlchemyError,
    TimeoutError,
    StoreUnavailableError,
)


def is_store_failure(exc: BaseException) -> bool:
    """
    Check if exception means the store could not complete the operation.

    Args:
        exc: Exception to check

    Returns:
        True if the operation must be reported as STORE_UNAVAILABLE
    """
    return isinstance(exc, STORE_FAILURES)
