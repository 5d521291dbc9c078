"""
Income reporting service.

Today and lifetime income figures, and filtered income records, computed
from the audit trail.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from happyinvest.config.settings import settings
from happyinvest.models.enums import INCOME_TRANSACTION_TYPES, TransactionType
from happyinvest.repositories.transaction_repository import (
    TransactionRepository,
)
from happyinvest.services.base_service import BaseService, OperationResult
from happyinvest.utils.datetime_utils import business_day_start
from happyinvest.utils.exceptions import InvalidRequestError

# Record filters offered to clients
INCOME_RECORD_FILTERS: dict[str, tuple[str, ...]] = {
    "daily": (TransactionType.DAILY_INCOME.value,),
    "commission": (TransactionType.REFERRAL_COMMISSION.value,),
    "gift": (TransactionType.CHECKIN.value,),
}


@dataclass
class IncomeRecord:
    """Single audit entry as shown in income history."""

    id: int
    type: str
    amount: Decimal
    pool: str | None
    created_at: datetime
    description: str | None
    investment_id: int | None = None
    related_user_id: int | None = None


@dataclass
class IncomeStatsResult(OperationResult):
    """Income totals of one user."""

    today_income: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    by_type: dict[str, Decimal] = field(default_factory=dict)


@dataclass
class IncomeRecordsResult(OperationResult):
    """Filtered income records, newest first."""

    records: list[IncomeRecord] = field(default_factory=list)


class IncomeService(BaseService):
    """Income statistics over the audit trail."""

    def __init__(self, session, tz: ZoneInfo | None = None) -> None:
        super().__init__(session)
        self.tz = tz or settings.tz
        self.transaction_repo = TransactionRepository(session)

    async def get_income_stats(
        self, user_id: int, now: datetime
    ) -> IncomeStatsResult:
        """
        Sum today's and lifetime income.

        Args:
            user_id: User ID
            now: Server time (decides which business day is today)

        Returns:
            Income statistics
        """
        totals = await self.transaction_repo.sum_by_type(
            user_id, INCOME_TRANSACTION_TYPES
        )
        today = await self.transaction_repo.sum_by_type(
            user_id,
            INCOME_TRANSACTION_TYPES,
            since=business_day_start(now, self.tz),
        )
        return IncomeStatsResult(
            today_income=sum(today.values(), Decimal("0")),
            total_income=sum(totals.values(), Decimal("0")),
            by_type=totals,
        )

    async def get_income_records(
        self,
        user_id: int,
        kind: str | None = None,
        limit: int | None = None,
    ) -> IncomeRecordsResult:
        """
        List audit entries, optionally filtered by income kind.

        Args:
            user_id: User ID
            kind: daily, commission, gift or None for every entry
            limit: Max number of records

        Returns:
            Records, newest first
        """
        if kind is not None and kind not in INCOME_RECORD_FILTERS:
            raise InvalidRequestError(f"Unknown income record type: {kind}")

        types = INCOME_RECORD_FILTERS.get(kind) if kind else None
        transactions = await self.transaction_repo.get_by_user(
            user_id, types=types, limit=limit
        )
        self.logger.debug(
            f"Loaded {len(transactions)} income records",
            extra={"user_id": user_id, "kind": kind},
        )
        return IncomeRecordsResult(
            records=[
                IncomeRecord(
                    id=tx.id,
                    type=tx.type,
                    amount=tx.amount,
                    pool=tx.pool,
                    created_at=tx.created_at,
                    description=tx.description,
                    investment_id=tx.investment_id,
                    related_user_id=tx.related_user_id,
                )
                for tx in transactions
            ]
        )
