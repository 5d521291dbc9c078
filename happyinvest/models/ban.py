"""
Ban record model.

An active ban record is the single source of truth queried by every
balance-mutating operation.
"""

from datetime import datetime

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from happyinvest.models.base import Base, UTCDateTime, utc_default
from happyinvest.models.enums import BanSource


class BanRecord(Base):
    """Ban record, one per banned user."""

    __tablename__ = "ban_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    source: Mapped[str] = mapped_column(
        String(20), default=BanSource.OPERATOR.value, nullable=False
    )
    banned_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_default, nullable=False
    )
    # None means permanent
    expires_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<BanRecord(user_id={self.user_id}, source={self.source})>"

    def is_active_at(self, moment: datetime) -> bool:
        """Whether the ban applies at the given moment."""
        return self.expires_at is None or self.expires_at > moment
