"""
Referral model.

Edge between a referring user and one referred user. The commission for the
edge is written at most once, guarded by ``commission_paid``.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from happyinvest.models.base import Base, UTCDateTime, utc_default
from happyinvest.models.types import MoneyType


class Referral(Base):
    """Referral edge."""

    __tablename__ = "referrals"
    __table_args__ = (
        UniqueConstraint('referred_id', name='uq_referrals_referred_id'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    referrer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    referred_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    has_invested: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    total_invested: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    commission_earned: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    commission_paid: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    commission_paid_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    first_investment_id: Mapped[int | None] = mapped_column(
        ForeignKey("investments.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_default, nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referral(referrer_id={self.referrer_id}, "
            f"referred_id={self.referred_id}, paid={self.commission_paid})>"
        )
