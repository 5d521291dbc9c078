"""
Ledger engine.

Entry point for the HTTP/admin layer. Every operation runs in its own
session under a bounded store timeout and returns a structured result;
ledger errors become failed results and store failures become
STORE_UNAVAILABLE with nothing applied.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from decimal import Decimal
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from happyinvest.config.plans import PlanCatalog, default_catalog
from happyinvest.config.settings import settings
from happyinvest.models.enums import BanSource, RechargeStatus, WithdrawalDecision
from happyinvest.services.anticheat import BanResult, BanService
from happyinvest.services.base_service import OperationResult
from happyinvest.services.checkin import (
    CheckinResult,
    CheckinService,
    CheckinStatusResult,
)
from happyinvest.services.income import (
    IncomeRecordsResult,
    IncomeService,
    IncomeStatsResult,
)
from happyinvest.services.investment import (
    InvestmentListResult,
    InvestmentQueryService,
    PurchaseHandler,
    PurchaseResult,
)
from happyinvest.services.payout import (
    OnDemandPayoutService,
    PayoutCheckResult,
    ScheduledSweep,
    SweepResult,
)
from happyinvest.services.recharge import (
    RechargeListResult,
    RechargeResult,
    RechargeService,
)
from happyinvest.services.referral import (
    ReferralQueryService,
    TeamMembersResult,
    TeamStatsResult,
)
from happyinvest.services.withdrawal import (
    BankDetails,
    BankDetailsService,
    WithdrawalLifecycleHandler,
    WithdrawalListResult,
    WithdrawalQueryService,
    WithdrawalRequestHandler,
    WithdrawalResolveResult,
    WithdrawalResult,
)
from happyinvest.utils.datetime_utils import utc_now
from happyinvest.utils.exceptions import (
    ErrorCode,
    LedgerError,
    StoreUnavailableError,
)

R = TypeVar("R", bound=OperationResult)


class LedgerEngine:
    """Facade over the ledger services."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        catalog: PlanCatalog | None = None,
        store_timeout: float | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize ledger engine.

        Args:
            session_maker: Session factory (defaults to the configured one)
            catalog: Plan catalog (defaults to the built-in catalog)
            store_timeout: Seconds allowed per operation (defaults to settings)
            clock: Server clock
        """
        if session_maker is None:
            from happyinvest.config.database import async_session_maker

            session_maker = async_session_maker

        self.session_maker = session_maker
        self.catalog = catalog if catalog is not None else default_catalog
        self.store_timeout = store_timeout or settings.store_timeout_seconds
        self.clock = clock

    async def _run(
        self,
        operation: str,
        result_cls: type[R],
        call: Callable[[AsyncSession], Awaitable[R]],
        **context: Any,
    ) -> R:
        """
        Run one operation in a fresh session.

        Args:
            operation: Operation name for logs
            result_cls: Result type used for failures
            call: Coroutine factory receiving the session
            **context: Log context

        Returns:
            Operation result
        """
        async with self.session_maker() as session:
            try:
                return await asyncio.wait_for(
                    call(session), timeout=self.store_timeout
                )
            except LedgerError as e:
                log = logger.error if e.code == ErrorCode.STORE_UNAVAILABLE else logger.info
                log(
                    f"{operation} refused: {e.message}",
                    extra={"operation": operation, "error_code": e.code.value, **context},
                )
                return result_cls.failure(e)
            except (SQLAlchemyError, TimeoutError) as e:
                try:
                    await session.rollback()
                except SQLAlchemyError as rollback_error:
                    logger.error(
                        f"Rollback failed after {operation}: {rollback_error}"
                    )
                logger.error(
                    f"{operation} failed, store unavailable: {type(e).__name__}: {e}",
                    extra={"operation": operation, **context},
                    exc_info=True,
                )
                return result_cls.failure(StoreUnavailableError())

    # Investment registry

    async def purchase(self, user_id: int, plan_id: str) -> PurchaseResult:
        """Buy a plan: {investment_id, new_balance} or error."""
        now = self.clock()
        return await self._run(
            "purchase",
            PurchaseResult,
            lambda s: PurchaseHandler(s, self.catalog).purchase(
                user_id, plan_id, now
            ),
            user_id=user_id,
            plan_id=plan_id,
        )

    async def get_user_investments(self, user_id: int) -> InvestmentListResult:
        return await self._run(
            "get_user_investments",
            InvestmentListResult,
            lambda s: InvestmentQueryService(s).get_user_investments(user_id),
            user_id=user_id,
        )

    # Payout reconciler

    async def check_payout(
        self, user_id: int, client_timestamp: datetime
    ) -> PayoutCheckResult:
        """
        On-demand payout check.

        Returns income credited, a wait-time hint, or a banned result.
        """
        now = self.clock()
        result = await self._run(
            "check_payout",
            PayoutCheckResult,
            lambda s: OnDemandPayoutService(s).check_payout(
                user_id, client_timestamp, now
            ),
            user_id=user_id,
        )
        if result.error_code == ErrorCode.BANNED:
            result.banned = True
        return result

    async def run_scheduled_sweep(
        self, now: datetime | None = None
    ) -> SweepResult:
        """Credit all due investments: {total_distributed, users_paid}."""
        sweep = ScheduledSweep(
            self.session_maker, store_timeout=self.store_timeout
        )
        try:
            return await sweep.run(now or self.clock())
        except (SQLAlchemyError, TimeoutError) as e:
            logger.error(
                f"Scheduled sweep could not list due investments: {e}",
                exc_info=True,
            )
            return SweepResult.failure(StoreUnavailableError())

    # Withdrawal gate

    async def request_withdrawal(
        self,
        user_id: int,
        amount: Decimal | int | str,
        bank_details: BankDetails | dict[str, Any] | None = None,
    ) -> WithdrawalResult:
        """Request a withdrawal: {withdrawal_id, new_balance} or error."""
        now = self.clock()
        return await self._run(
            "request_withdrawal",
            WithdrawalResult,
            lambda s: WithdrawalRequestHandler(s).request_withdrawal(
                user_id, amount, bank_details, now
            ),
            user_id=user_id,
            amount=str(amount),
        )

    async def resolve_withdrawal(
        self,
        withdrawal_id: int,
        decision: WithdrawalDecision | str,
        transaction_ref: str | None = None,
        utr_number: str | None = None,
        processed_by: str | None = None,
        rejection_reason: str | None = None,
    ) -> WithdrawalResolveResult:
        """Operator decision on a pending withdrawal."""
        now = self.clock()
        return await self._run(
            "resolve_withdrawal",
            WithdrawalResolveResult,
            lambda s: WithdrawalLifecycleHandler(s).resolve_withdrawal(
                withdrawal_id,
                decision,
                now,
                transaction_ref=transaction_ref,
                utr_number=utr_number,
                processed_by=processed_by,
                rejection_reason=rejection_reason,
            ),
            withdrawal_id=withdrawal_id,
            decision=str(decision),
        )

    async def update_withdrawal_reference(
        self,
        withdrawal_id: int,
        transaction_ref: str | None = None,
        utr_number: str | None = None,
    ) -> WithdrawalResolveResult:
        return await self._run(
            "update_withdrawal_reference",
            WithdrawalResolveResult,
            lambda s: WithdrawalLifecycleHandler(s).update_reference(
                withdrawal_id, transaction_ref, utr_number
            ),
            withdrawal_id=withdrawal_id,
        )

    async def save_bank_details(
        self, user_id: int, bank_details: BankDetails | dict[str, Any]
    ) -> OperationResult:
        return await self._run(
            "save_bank_details",
            OperationResult,
            lambda s: BankDetailsService(s).save_bank_details(
                user_id, bank_details
            ),
            user_id=user_id,
        )

    async def get_withdrawal_history(
        self, user_id: int, limit: int | None = None
    ) -> WithdrawalListResult:
        return await self._run(
            "get_withdrawal_history",
            WithdrawalListResult,
            lambda s: WithdrawalQueryService(s).get_history(user_id, limit),
            user_id=user_id,
        )

    async def get_pending_withdrawals(
        self, limit: int | None = None
    ) -> WithdrawalListResult:
        return await self._run(
            "get_pending_withdrawals",
            WithdrawalListResult,
            lambda s: WithdrawalQueryService(s).get_pending(limit),
        )

    # Bans

    async def ban_user(
        self,
        user_id: int,
        reason: str,
        expires_at: datetime | None = None,
    ) -> BanResult:
        """Operator ban; ``expires_at`` None means permanent."""
        now = self.clock()
        return await self._run(
            "ban_user",
            BanResult,
            lambda s: BanService(s).ban_user(
                user_id, reason, now, expires_at, BanSource.OPERATOR
            ),
            user_id=user_id,
        )

    async def unban_user(
        self, user_id: int, reset_violations: bool = False
    ) -> BanResult:
        now = self.clock()
        return await self._run(
            "unban_user",
            BanResult,
            lambda s: BanService(s).unban_user(user_id, now, reset_violations),
            user_id=user_id,
        )

    # Recharge

    async def create_recharge(
        self,
        user_id: int,
        amount: Decimal | int | str,
        payment_method: str = "manual",
        payment_reference: str | None = None,
    ) -> RechargeResult:
        now = self.clock()
        return await self._run(
            "create_recharge",
            RechargeResult,
            lambda s: RechargeService(s).create_recharge(
                user_id, amount, now, payment_method, payment_reference
            ),
            user_id=user_id,
            amount=str(amount),
        )

    async def resolve_recharge(
        self,
        recharge_id: int,
        decision: RechargeStatus | str,
        approved_by: str | None = None,
    ) -> RechargeResult:
        now = self.clock()
        return await self._run(
            "resolve_recharge",
            RechargeResult,
            lambda s: RechargeService(s).resolve_recharge(
                recharge_id, decision, now, approved_by
            ),
            recharge_id=recharge_id,
        )

    async def get_pending_recharges(self) -> RechargeListResult:
        return await self._run(
            "get_pending_recharges",
            RechargeListResult,
            lambda s: RechargeService(s).get_pending(),
        )

    # Check-in

    async def daily_checkin(self, user_id: int) -> CheckinResult:
        now = self.clock()
        return await self._run(
            "daily_checkin",
            CheckinResult,
            lambda s: CheckinService(s).daily_checkin(user_id, now),
            user_id=user_id,
        )

    async def get_checkin_status(self, user_id: int) -> CheckinStatusResult:
        now = self.clock()
        return await self._run(
            "get_checkin_status",
            CheckinStatusResult,
            lambda s: CheckinService(s).get_checkin_status(user_id, now),
            user_id=user_id,
        )

    # Reporting

    async def get_income_stats(self, user_id: int) -> IncomeStatsResult:
        now = self.clock()
        return await self._run(
            "get_income_stats",
            IncomeStatsResult,
            lambda s: IncomeService(s).get_income_stats(user_id, now),
            user_id=user_id,
        )

    async def get_income_records(
        self, user_id: int, kind: str | None = None
    ) -> IncomeRecordsResult:
        return await self._run(
            "get_income_records",
            IncomeRecordsResult,
            lambda s: IncomeService(s).get_income_records(user_id, kind),
            user_id=user_id,
        )

    async def get_team_members(self, user_id: int) -> TeamMembersResult:
        return await self._run(
            "get_team_members",
            TeamMembersResult,
            lambda s: ReferralQueryService(s).get_team_members(user_id),
            user_id=user_id,
        )

    async def get_team_stats(self, user_id: int) -> TeamStatsResult:
        return await self._run(
            "get_team_stats",
            TeamStatsResult,
            lambda s: ReferralQueryService(s).get_team_stats(user_id),
            user_id=user_id,
        )
