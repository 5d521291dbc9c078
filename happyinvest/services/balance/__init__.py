"""
Balance store package.

- balance_manager: optimistic-concurrency updates of user balance records
  and the matching audit entries
"""

from happyinvest.services.balance.balance_manager import (
    BalanceChange,
    BalanceManager,
)

__all__ = [
    "BalanceChange",
    "BalanceManager",
]
