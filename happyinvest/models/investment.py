"""
Investment model.

One record per purchased plan instance. Plan economics are copied at
purchase time so later catalog edits never affect in-flight investments.
``payout_count`` doubles as the optimistic concurrency token.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from happyinvest.models.base import Base, UTCDateTime, utc_default
from happyinvest.models.enums import InvestmentStatus
from happyinvest.models.types import MoneyType

if TYPE_CHECKING:
    from happyinvest.models.user import User


class Investment(Base):
    """Investment record."""

    __tablename__ = "investments"
    __table_args__ = (
        CheckConstraint(
            'days_remaining >= 0', name='days_remaining_non_negative'
        ),
        CheckConstraint('payout_count >= 0', name='payout_count_non_negative'),
        CheckConstraint('price > 0', name='price_positive'),
        Index('idx_investment_status_last_payout', 'status', 'last_payout_at'),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Owner
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Plan snapshot
    plan_id: Mapped[str] = mapped_column(String(50), nullable=False)
    plan_name: Mapped[str] = mapped_column(String(100), nullable=False)
    plan_category: Mapped[str] = mapped_column(String(20), nullable=False)
    price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    daily_income: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    total_income: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    term_days: Mapped[int] = mapped_column(Integer, nullable=False)
    locked_balance: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Progress
    status: Mapped[str] = mapped_column(
        String(20),
        default=InvestmentStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )
    days_remaining: Mapped[int] = mapped_column(Integer, nullable=False)
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    payout_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    last_payout_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False
    )
    next_payout_due_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_default, nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="investments",
        lazy="raise",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Investment(id={self.id}, user_id={self.user_id}, "
            f"plan={self.plan_id}, days_remaining={self.days_remaining}, "
            f"status={self.status})>"
        )

    @property
    def is_active(self) -> bool:
        """Whether the record still earns income."""
        return self.status == InvestmentStatus.ACTIVE.value
