"""
Recharge request model.

User-submitted deposit awaiting operator approval.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from happyinvest.models.base import Base, UTCDateTime, utc_default
from happyinvest.models.enums import RechargeStatus
from happyinvest.models.types import MoneyType


class RechargeRequest(Base):
    """Recharge request."""

    __tablename__ = "recharge_requests"
    __table_args__ = (
        CheckConstraint('amount > 0', name='amount_positive'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    payment_method: Mapped[str] = mapped_column(
        String(50), default="manual", nullable=False
    )
    payment_reference: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=RechargeStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    approved_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_default, nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RechargeRequest(id={self.id}, user_id={self.user_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
