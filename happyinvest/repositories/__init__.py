"""
Repositories.

Data access layer, one repository per model.
"""

from happyinvest.repositories.ban_repository import BanRepository
from happyinvest.repositories.base import BaseRepository
from happyinvest.repositories.cheat_violation_repository import (
    CheatViolationRepository,
)
from happyinvest.repositories.investment_repository import (
    InvestmentRepository,
)
from happyinvest.repositories.recharge_repository import RechargeRepository
from happyinvest.repositories.referral_repository import ReferralRepository
from happyinvest.repositories.transaction_repository import (
    TransactionRepository,
)
from happyinvest.repositories.user_repository import UserRepository
from happyinvest.repositories.withdrawal_repository import (
    WithdrawalRepository,
)

__all__ = [
    "BaseRepository",
    "BanRepository",
    "CheatViolationRepository",
    "InvestmentRepository",
    "RechargeRepository",
    "ReferralRepository",
    "TransactionRepository",
    "UserRepository",
    "WithdrawalRepository",
]
