"""
Withdrawal services package.

This package provides modular withdrawal management functionality:
- bank_details: bank detail validation and saved details
- withdrawal_validator: eligibility rules
- withdrawal_request_handler: request creation with balance reservation
- withdrawal_lifecycle_handler: completion, rejection and reference edits
- withdrawal_query_service: history and pending queue

All components are re-exported for easy importing.
"""

from happyinvest.services.withdrawal.bank_details import (
    BankDetails,
    BankDetailsService,
    parse_bank_details,
)
from happyinvest.services.withdrawal.withdrawal_lifecycle_handler import (
    WithdrawalLifecycleHandler,
    WithdrawalResolveResult,
)
from happyinvest.services.withdrawal.withdrawal_query_service import (
    WithdrawalListResult,
    WithdrawalQueryService,
    WithdrawalView,
)
from happyinvest.services.withdrawal.withdrawal_request_handler import (
    WithdrawalRequestHandler,
    WithdrawalResult,
)
from happyinvest.services.withdrawal.withdrawal_validator import (
    WithdrawalValidator,
)

__all__ = [
    "BankDetails",
    "BankDetailsService",
    "WithdrawalLifecycleHandler",
    "WithdrawalListResult",
    "WithdrawalQueryService",
    "WithdrawalRequestHandler",
    "WithdrawalResolveResult",
    "WithdrawalResult",
    "WithdrawalValidator",
    "WithdrawalView",
    "parse_bank_details",
]
