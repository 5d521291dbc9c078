"""
Cheat violation model.

Append-only log of client clock drift detections.
"""

from datetime import datetime

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from happyinvest.models.base import Base, UTCDateTime, utc_default


class CheatViolation(Base):
    """Single clock drift violation."""

    __tablename__ = "cheat_violations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    server_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    client_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    drift_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    violation_number: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_default, nullable=False
    )
