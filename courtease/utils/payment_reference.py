"""Payment reference generation."""

import random
import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


def build_payment_reference(now_ms: int | None = None) -> str:
    """Build a reference like 'BOOK-1714550710123-42'."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"BOOK-{now_ms}-{random.randint(0, 999)}"


async def generate_payment_reference(db: AsyncSession) -> str:
    """Generate a payment reference not yet owned by any booking.

    The reference doubles as the Midtrans ``order_id``.

    Args:
        db: Database session for uniqueness check

    Returns:
        str: Unique reference like 'BOOK-1714550710123-42'
    """
    from courtease.models.booking import Booking

    while True:
        reference = build_payment_reference()

        # Check uniqueness
        result = await db.execute(
            select(Booking.id).where(Booking.payment_reference == reference)
        )
        if not result.scalar_one_or_none():
            return reference
