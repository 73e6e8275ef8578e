# backend/offday/models/ledger.py
from datetime import datetime, date, timezone
from sqlalchemy import ForeignKey, Date, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from offday.db import Base

class Offday(Base):
    """One approved leave interval on a user's ledger."""
    __tablename__ = "offdays"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    # at most one ledger entry per accepted request
    request_id: Mapped[int] = mapped_column(
        ForeignKey("offday_requests.id"), unique=True, nullable=False
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date:   Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    user = relationship("User", back_populates="offdays")

# helpful index for availability lookups
Index("ix_offdays_user_range", Offday.user_id, Offday.start_date, Offday.end_date)
