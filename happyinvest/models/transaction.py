"""
Transaction model.

Audit trail of every balance-affecting event.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from happyinvest.models.base import Base, UTCDateTime, utc_default
from happyinvest.models.types import MoneyType


class Transaction(Base):
    """Audit transaction."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index('idx_transaction_user_type', 'user_id', 'type'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    # Pool credited or debited (spendable / locked)
    pool: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # References
    investment_id: Mapped[int | None] = mapped_column(
        ForeignKey("investments.id", ondelete="SET NULL"), nullable=True
    )
    withdrawal_id: Mapped[int | None] = mapped_column(
        ForeignKey("withdrawal_requests.id", ondelete="SET NULL"),
        nullable=True,
    )
    recharge_id: Mapped[int | None] = mapped_column(
        ForeignKey("recharge_requests.id", ondelete="SET NULL"),
        nullable=True,
    )
    related_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    plan_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    streak: Mapped[int | None] = mapped_column(Integer, nullable=True)

    balance_before: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )
    balance_after: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_default, nullable=False, index=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, amount={self.amount})>"
        )
