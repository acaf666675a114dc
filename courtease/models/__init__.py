"""Database models."""

from courtease.models.booking import Booking
from courtease.models.court import Court, Venue
from courtease.models.profile import Profile

__all__ = [
    # Profile
    "Profile",
    # Venue
    "Venue",
    "Court",
    # Booking
    "Booking",
]
