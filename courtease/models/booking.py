"""Booking model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from courtease.database import Base
from courtease.models.types import UTCDateTime, utc_now

if TYPE_CHECKING:
    from courtease.models.court import Court
    from courtease.models.profile import Profile


class Booking(Base):
    """Court reservation for a half-open time window [start_time, end_time).

    ``status`` and ``payment_status`` are written as a pair by the
    reconciliation service or by operator/requester actions, always through a
    conditional update on the previous pair.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_bookings_time_window"),
        Index("ix_bookings_status_pair_created", "status", "payment_status", "created_at"),
        Index("ix_bookings_court_window", "court_id", "start_time", "end_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    court_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("courts.id"), nullable=False, index=True
    )
    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id"), nullable=False, index=True
    )

    # Time window
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20), default="pending", nullable=False
    )  # pending, confirmed, checked_in, completed, cancelled
    payment_status: Mapped[str] = mapped_column(
        String(30), default="pending", nullable=False
    )  # pending, waiting_confirmation, paid, cancelled, refunded

    # Payment linkage
    payment_reference: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )  # BOOK-<epoch ms>-<n>, the Midtrans order_id
    payment_token: Mapped[str | None] = mapped_column(String(255))
    payment_redirect_url: Mapped[str | None] = mapped_column(Text)
    payment_expired_at: Mapped[datetime | None] = mapped_column(UTCDateTime, index=True)
    payment_completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    # Pricing (IDR, fixed at creation)
    price_total: Mapped[int] = mapped_column(Integer, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    checked_in_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False
    )

    # Relationships
    court: Mapped["Court"] = relationship("Court", back_populates="bookings")
    profile: Mapped["Profile"] = relationship("Profile", back_populates="bookings")
