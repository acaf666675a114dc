"""Expiry sweeps for bookings whose payment never arrived.

Both sweeps re-query Midtrans before touching a booking: a resolved ``paid``
status is applied, anything else (no record, unreachable provider,
unresolved or non-paid status) cancels the booking so it stops holding the
court. Each booking commits on its own; one failure never aborts the batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtease.config import settings
from courtease.core.exceptions import GatewayError
from courtease.domain.booking_state import BookingStatus, PaymentStatus
from courtease.gateways.base import PaymentGateway
from courtease.gateways.status_mapping import map_provider_status
from courtease.models.booking import Booking
from courtease.services.reconciliation_service import (
    ReconciliationOutcome,
    ReconciliationResult,
    reconciliation_service,
)

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    processed: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


async def find_stale_booking_ids(db: AsyncSession, now: datetime) -> list[UUID]:
    """Unpaid bookings older than the staleness threshold."""
    cutoff = now - timedelta(minutes=settings.stale_booking_minutes)
    result = await db.execute(
        select(Booking.id)
        .where(
            Booking.status == BookingStatus.PENDING.value,
            Booking.payment_status == PaymentStatus.PENDING.value,
            Booking.created_at < cutoff,
        )
        .order_by(Booking.created_at)
        .limit(settings.sweep_batch_limit)
    )
    return list(result.scalars().all())


async def find_overdue_payment_ids(db: AsyncSession, now: datetime) -> list[UUID]:
    """Bookings whose explicit payment deadline has passed."""
    result = await db.execute(
        select(Booking.id)
        .where(
            Booking.payment_status == PaymentStatus.PENDING.value,
            Booking.status != BookingStatus.CANCELLED.value,
            Booking.payment_expired_at.is_not(None),
            Booking.payment_expired_at < now,
            Booking.payment_reference.is_not(None),
            Booking.payment_reference != "",
        )
        .order_by(Booking.payment_expired_at)
        .limit(settings.sweep_batch_limit)
    )
    return list(result.scalars().all())


async def expire_booking(
    db: AsyncSession,
    booking: Booking,
    gateway: PaymentGateway,
    *,
    trigger: str,
    now: datetime,
) -> ReconciliationResult:
    """Confirm the booking if Midtrans says it was paid, otherwise cancel it."""
    try:
        provider_status = await gateway.get_transaction_status(booking.payment_reference)
    except GatewayError as e:
        logger.warning(
            f"Could not verify {booking.payment_reference} during {trigger}: {e.detail}"
        )
        provider_status = None

    mapping = map_provider_status(provider_status)
    if mapping is not None and mapping.is_paid:
        return await reconciliation_service.reconcile(
            db, booking, provider_status, trigger=trigger, now=now
        )

    return await reconciliation_service.cancel_unverified(
        db, booking, trigger=trigger, now=now
    )


async def _sweep(
    db: AsyncSession,
    booking_ids: list[UUID],
    gateway: PaymentGateway,
    *,
    trigger: str,
    now: datetime,
) -> SweepReport:
    report = SweepReport()

    for booking_id in booking_ids:
        report.processed += 1
        try:
            # Re-read: an earlier item's rollback expires everything in the session.
            result = await db.execute(
                select(Booking)
                .where(Booking.id == booking_id)
                .execution_options(populate_existing=True)
            )
            booking = result.scalar_one_or_none()
            if booking is None:
                continue

            outcome = await expire_booking(db, booking, gateway, trigger=trigger, now=now)
            await db.commit()

            if outcome.outcome is ReconciliationOutcome.UPDATED:
                report.updated += 1
        except Exception as e:
            await db.rollback()
            logger.exception(f"{trigger} failed for booking {booking_id}")
            report.failed += 1
            report.errors.append(f"{booking_id}: {e}")

    logger.info(
        f"{trigger} finished: processed={report.processed} "
        f"updated={report.updated} failed={report.failed}"
    )
    return report


async def sweep_stale_bookings(
    db: AsyncSession,
    gateway: PaymentGateway,
    now: datetime | None = None,
) -> SweepReport:
    """Expire ``pending/pending`` bookings older than the staleness threshold."""
    now = now or datetime.now(UTC)
    booking_ids = await find_stale_booking_ids(db, now)
    return await _sweep(db, booking_ids, gateway, trigger="stale_sweep", now=now)


async def sweep_overdue_payments(
    db: AsyncSession,
    gateway: PaymentGateway,
    now: datetime | None = None,
) -> SweepReport:
    """Expire bookings past ``payment_expired_at``."""
    now = now or datetime.now(UTC)
    booking_ids = await find_overdue_payment_ids(db, now)
    return await _sweep(db, booking_ids, gateway, trigger="overdue_sweep", now=now)
