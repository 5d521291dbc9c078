"""
Referral commission cascade.

Pays the fixed referral bonus to the referrer when a referred user makes
their first investment. The per-edge ``commission_paid`` flag is flipped
with a conditional update before the referrer is credited, so the bonus is
written at most once per referred user.
"""

from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from happyinvest.config.settings import settings
from happyinvest.models.enums import BalancePool, TransactionType
from happyinvest.models.investment import Investment
from happyinvest.models.referral import Referral
from happyinvest.models.user import User
from happyinvest.repositories.ban_repository import BanRepository
from happyinvest.repositories.referral_repository import ReferralRepository
from happyinvest.repositories.user_repository import UserRepository
from happyinvest.services.balance import BalanceChange, BalanceManager


class ReferralCommissionCascade:
    """One-time referral commission on first investment."""

    def __init__(
        self, session: AsyncSession, bonus_amount: Decimal | None = None
    ) -> None:
        """
        Initialize referral cascade.

        Args:
            session: Database session
            bonus_amount: Fixed bonus (defaults to settings)
        """
        self.session = session
        self.bonus_amount = (
            bonus_amount
            if bonus_amount is not None
            else settings.referral_bonus_amount
        )
        self.user_repo = UserRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.ban_repo = BanRepository(session)
        self.balance_manager = BalanceManager(session)

    async def resolve_referrer(self, user: User) -> User | None:
        """
        Find the user who issued the referral code of ``user``.

        Args:
            user: Referred user

        Returns:
            Referrer or None if the user was not referred
        """
        if not user.referred_by_code:
            return None

        referrer = await self.user_repo.get_by_referral_code(
            user.referred_by_code
        )
        if referrer is None or referrer.id == user.id:
            logger.warning(
                "Referral code does not resolve to another user",
                extra={
                    "user_id": user.id,
                    "referral_code": user.referred_by_code,
                },
            )
            return None
        return referrer

    async def get_or_create_edge(
        self, user: User, referrer: User
    ) -> Referral:
        """Get the referral edge of a referred user, creating it if needed."""
        edge = await self.referral_repo.get_by_referred(user.id)
        if edge is None:
            edge = await self.referral_repo.create(
                referrer_id=referrer.id,
                referred_id=user.id,
                level=1,
            )
        return edge

    async def record_investment(
        self,
        user: User,
        investment: Investment,
        now: datetime,
        is_first: bool,
    ) -> Decimal | None:
        """
        Update the referral edge for a new investment.

        Args:
            user: Investing user
            investment: New investment
            now: Server time
            is_first: Whether this is the user's first-ever investment

        Returns:
            Commission paid, or None
        """
        referrer = await self.resolve_referrer(user)
        if referrer is None:
            return None

        edge = await self.get_or_create_edge(user, referrer)
        await self.referral_repo.conditional_update(
            edge.id,
            {},
            has_invested=True,
            total_invested=Referral.total_invested + investment.price,
        )

        if not is_first:
            return None
        return await self.pay_first_investment_commission(
            user, investment, now, referrer=referrer, edge=edge
        )

    async def pay_first_investment_commission(
        self,
        user: User,
        investment: Investment,
        now: datetime,
        referrer: User | None = None,
        edge: Referral | None = None,
    ) -> Decimal | None:
        """
        Credit the fixed bonus to the referrer, at most once per edge.

        Args:
            user: Referred user
            investment: The user's first investment
            now: Server time
            referrer: Resolved referrer (looked up if omitted)
            edge: Referral edge (looked up if omitted)

        Returns:
            Bonus paid, or None if nothing was paid
        """
        if referrer is None:
            referrer = await self.resolve_referrer(user)
            if referrer is None:
                return None
        if edge is None:
            edge = await self.get_or_create_edge(user, referrer)

        if edge.commission_paid:
            logger.debug(
                "Referral commission already paid",
                extra={"referrer_id": referrer.id, "referred_id": user.id},
            )
            return None

        if await self.ban_repo.get_active(referrer.id, now):
            logger.warning(
                "Referrer is banned, commission not paid",
                extra={"referrer_id": referrer.id, "referred_id": user.id},
            )
            return None

        claimed = await self.referral_repo.conditional_update(
            edge.id,
            {"commission_paid": False},
            commission_paid=True,
            commission_earned=self.bonus_amount,
            commission_paid_at=now,
            first_investment_id=investment.id,
        )
        if not claimed:
            logger.info(
                "Referral commission claimed concurrently",
                extra={"referrer_id": referrer.id, "referred_id": user.id},
            )
            return None

        referrer = await self.balance_manager.apply(
            referrer.id,
            BalanceChange(
                spendable=self.bonus_amount,
                commission=self.bonus_amount,
                lifetime_earnings=self.bonus_amount,
            ),
            now,
            enforce_ban=False,
        )
        await self.balance_manager.record(
            referrer,
            TransactionType.REFERRAL_COMMISSION.value,
            self.bonus_amount,
            pool=BalancePool.SPENDABLE,
            at=now,
            investment_id=investment.id,
            related_user_id=user.id,
            description=f"Referral commission for user {user.id}",
        )

        logger.info(
            "Referral commission paid",
            extra={
                "referrer_id": referrer.id,
                "referred_id": user.id,
                "investment_id": investment.id,
                "amount": str(self.bonus_amount),
            },
        )
        return self.bonus_amount
