"""Profile model.

Profiles mirror the hosted auth provider's users; this service only reads
them to identify requesters and venue operators.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from courtease.database import Base
from courtease.models.types import UTCDateTime, utc_now

if TYPE_CHECKING:
    from courtease.models.booking import Booking
    from courtease.models.court import Venue


class Profile(Base):
    """Marketplace profile (player, venue partner or admin)."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name: Mapped[str | None] = mapped_column(String(200))
    email: Mapped[str | None] = mapped_column(String(255), index=True)
    phone: Mapped[str | None] = mapped_column(String(30))
    role: Mapped[str] = mapped_column(
        String(20), default="user", nullable=False
    )  # user, venue_partner, admin
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, server_default=func.now()
    )

    # Relationships
    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="profile")
    venues: Mapped[list["Venue"]] = relationship("Venue", back_populates="owner")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
