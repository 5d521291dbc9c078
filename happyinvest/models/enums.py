"""
Enumerations shared by models and services.
"""

from enum import StrEnum


class UserStatus(StrEnum):
    """Account status."""

    ACTIVE = "active"
    BANNED = "banned"


class InvestmentStatus(StrEnum):
    """Investment record lifecycle."""

    ACTIVE = "active"
    COMPLETED = "completed"


class WithdrawalStatus(StrEnum):
    """Withdrawal request lifecycle."""

    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class WithdrawalDecision(StrEnum):
    """Operator decision on a pending withdrawal."""

    COMPLETED = "completed"
    REJECTED = "rejected"


class RechargeStatus(StrEnum):
    """Recharge request lifecycle."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BalancePool(StrEnum):
    """Balance pool credited or debited by a ledger entry."""

    SPENDABLE = "spendable"
    LOCKED = "locked"


class BanSource(StrEnum):
    """Who imposed a ban."""

    ANTI_CHEAT = "anti_cheat"
    OPERATOR = "operator"


class TransactionType(StrEnum):
    """Audit transaction kinds."""

    INVESTMENT = "investment"
    DAILY_INCOME = "daily_income"
    REFERRAL_COMMISSION = "referral_commission"
    WITHDRAWAL_REQUEST = "withdrawal_request"
    WITHDRAWAL_REFUND = "withdrawal_refund"
    RECHARGE = "recharge"
    CHECKIN = "checkin"


# Kinds that count as income in user-facing statistics
INCOME_TRANSACTION_TYPES = (
    TransactionType.DAILY_INCOME.value,
    TransactionType.REFERRAL_COMMISSION.value,
    TransactionType.CHECKIN.value,
)
