# backend/offday/models/offday_request.py
import enum
from datetime import datetime, date, timezone
from sqlalchemy import String, Text, Integer, Date, DateTime, Enum, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from offday.db import Base


class RequestStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    accepted = "accepted"
    rejected = "rejected"


class OffdayRequest(Base):
    __tablename__ = "offday_requests"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="chk_offday_request_range"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date:   Mapped[date] = mapped_column(Date, nullable=False)
    days: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        default=RequestStatus.pending,
        index=True,
        nullable=False,
    )
    # only set while status == rejected
    rejection_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

# listing sorts on these
Index("ix_offday_requests_status_created", OffdayRequest.status, OffdayRequest.created_at)
