"""Income reporting package."""

from happyinvest.services.income.income_service import (
    INCOME_RECORD_FILTERS,
    IncomeRecord,
    IncomeRecordsResult,
    IncomeService,
    IncomeStatsResult,
)

__all__ = [
    "INCOME_RECORD_FILTERS",
    "IncomeRecord",
    "IncomeRecordsResult",
    "IncomeService",
    "IncomeStatsResult",
]
