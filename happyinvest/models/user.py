"""
User model.

Per-user balance record. Balance pools are mutated only by the ledger
services, always through a conditional update on ``version``.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, CheckConstraint, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from happyinvest.models.base import Base, UTCDateTime, utc_default
from happyinvest.models.enums import UserStatus
from happyinvest.models.types import MoneyType

if TYPE_CHECKING:
    from happyinvest.models.investment import Investment


class User(Base):
    """User balance record."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            'spendable_balance >= 0', name='spendable_balance_non_negative'
        ),
        CheckConstraint(
            'locked_balance >= 0', name='locked_balance_non_negative'
        ),
        CheckConstraint(
            'withdrawn_total >= 0', name='withdrawn_total_non_negative'
        ),
        CheckConstraint(
            'cheat_violation_count >= 0',
            name='cheat_violation_count_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Identity (owned by the registration collaborator)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(
        String(20), nullable=True, unique=True
    )
    referral_code: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, index=True
    )
    referred_by_code: Mapped[str | None] = mapped_column(
        String(20), nullable=True, index=True
    )

    # Balance pools
    spendable_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    locked_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Reporting counters
    withdrawn_total: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    lifetime_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    commission_earned: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    recharge_total: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Anti-cheat
    cheat_violation_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=UserStatus.ACTIVE.value, nullable=False, index=True
    )

    # Pacing windows (per-entity, survive restarts)
    next_check_allowed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    penalty_until: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    last_withdrawal_date: Mapped[date | None] = mapped_column(
        Date, nullable=True
    )

    # Daily check-in
    last_checkin_date: Mapped[date | None] = mapped_column(
        Date, nullable=True
    )
    checkin_streak: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    # Saved payout destination
    bank_details: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True
    )

    # Optimistic concurrency token
    version: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_default, nullable=False
    )

    # Relationships
    investments: Mapped[list["Investment"]] = relationship(
        "Investment",
        back_populates="user",
        lazy="raise",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, spendable={self.spendable_balance}, "
            f"locked={self.locked_balance}, status={self.status})>"
        )

    @property
    def is_banned(self) -> bool:
        """Status flag mirror; ban records are authoritative."""
        return self.status == UserStatus.BANNED.value

    @property
    def total_balance(self) -> Decimal:
        """Spendable plus locked balance."""
        return self.spendable_balance + self.locked_balance
