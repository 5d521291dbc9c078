"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from happyinvest.models.ban import BanRecord
from happyinvest.models.base import Base
from happyinvest.models.cheat_violation import CheatViolation
from happyinvest.models.enums import (
    BalancePool,
    BanSource,
    InvestmentStatus,
    RechargeStatus,
    TransactionType,
    UserStatus,
    WithdrawalDecision,
    WithdrawalStatus,
)
from happyinvest.models.investment import Investment
from happyinvest.models.recharge import RechargeRequest
from happyinvest.models.referral import Referral
from happyinvest.models.transaction import Transaction
from happyinvest.models.user import User
from happyinvest.models.withdrawal import WithdrawalRequest

__all__ = [
    # Base
    "Base",
    # Enums
    "BalancePool",
    "BanSource",
    "InvestmentStatus",
    "RechargeStatus",
    "TransactionType",
    "UserStatus",
    "WithdrawalDecision",
    "WithdrawalStatus",
    # Ledger models
    "User",
    "Investment",
    "Referral",
    "WithdrawalRequest",
    "RechargeRequest",
    "Transaction",
    # Security models
    "BanRecord",
    "CheatViolation",
]
