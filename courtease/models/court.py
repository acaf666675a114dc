"""Venue and court models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from courtease.database import Base
from courtease.models.types import UTCDateTime, utc_now

if TYPE_CHECKING:
    from courtease.models.booking import Booking
    from courtease.models.profile import Profile


class Venue(Base):
    """A sports venue operated by a venue partner."""

    __tablename__ = "venues"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_profile_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id"), index=True
    )
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    city: Mapped[str | None] = mapped_column(String(100))
    address: Mapped[str | None] = mapped_column(Text)
    venue_status: Mapped[str] = mapped_column(
        String(20), default="active"
    )  # inactive, active, suspended
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, server_default=func.now()
    )

    # Relationships
    owner: Mapped["Profile | None"] = relationship("Profile", back_populates="venues")
    courts: Mapped[list["Court"]] = relationship("Court", back_populates="venue")


class Court(Base):
    """A bookable court with a flat hourly rate (IDR)."""

    __tablename__ = "courts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    venue_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sport: Mapped[str] = mapped_column(String(30), nullable=False)  # futsal, badminton, padel, ...
    price_per_hour: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, server_default=func.now()
    )

    # Relationships
    venue: Mapped["Venue"] = relationship("Venue", back_populates="courts")
    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="court")
