"""Booking service.

Requester and operator actions on bookings. Status writes are delegated to
the reconciliation service so every actor goes through the same conditional
update.
"""

import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from courtease.config import settings
from courtease.core.exceptions import (
    AuthorizationError,
    BookingValidationError,
    CourtNotFound,
    ExternalServiceError,
    GatewayError,
    InvalidBookingStatus,
    NotFoundError,
    PersistenceError,
    SlotNotAvailable,
)
from courtease.domain.booking_policy import (
    assert_can_cancel,
    assert_can_check_in,
    assert_can_complete,
    calculate_price_total,
    validate_booking_window,
)
from courtease.domain.booking_state import (
    OPERATIONAL_STATUSES,
    BookingStatus,
    PaymentStatus,
    StatusPair,
)
from courtease.gateways.base import (
    LineItem,
    Payer,
    PaymentGateway,
    TransactionContext,
    TransactionSession,
)
from courtease.models.booking import Booking
from courtease.models.court import Court, Venue
from courtease.models.profile import Profile
from courtease.schemas.booking import BookingCreate
from courtease.services.reconciliation_service import (
    CANCELLED_PAIR,
    ReconciliationOutcome,
    ReconciliationResult,
    reconciliation_service,
)
from courtease.utils.payment_reference import generate_payment_reference

logger = logging.getLogger(__name__)

# Statuses that hold a court slot.
ACTIVE_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.CHECKED_IN.value,
)


def build_finish_redirect_url(booking_id: UUID) -> str:
    """Where Midtrans sends the payer after checkout."""
    return f"{settings.app_public_url.rstrip('/')}/dashboard/user/bookings/{booking_id}"


async def check_slot_available(
    db: AsyncSession,
    court_id: UUID,
    start_time: datetime,
    end_time: datetime,
) -> bool:
    """Check that no active booking overlaps [start_time, end_time)."""
    result = await db.execute(
        select(Booking.id)
        .where(
            Booking.court_id == court_id,
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.start_time < end_time,
            Booking.end_time > start_time,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is None


class BookingService:
    """Service for booking lifecycle actions."""

    async def get_booking(self, db: AsyncSession, booking_id: UUID) -> Booking:
        booking = await db.get(Booking, booking_id)
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def get_owned_booking(
        self, db: AsyncSession, booking_id: UUID, profile: Profile
    ) -> Booking:
        """Load a booking the requester owns (admins see every booking)."""
        booking = await self.get_booking(db, booking_id)
        if booking.profile_id != profile.id and not profile.is_admin:
            raise AuthorizationError("Anda tidak memiliki akses ke booking ini.")
        return booking

    async def get_operated_booking(
        self, db: AsyncSession, booking_id: UUID, profile: Profile
    ) -> Booking:
        """Load a booking on a court of a venue the profile operates."""
        booking = await self.get_booking(db, booking_id)
        if profile.is_admin:
            return booking

        result = await db.execute(
            select(Venue.owner_profile_id)
            .join(Court, Court.venue_id == Venue.id)
            .where(Court.id == booking.court_id)
        )
        if result.scalar_one_or_none() != profile.id:
            raise AuthorizationError("Booking ini bukan milik venue Anda.")
        return booking

    async def list_bookings(
        self,
        db: AsyncSession,
        profile: Profile,
        *,
        status: str | None = None,
        upcoming: bool = False,
        limit: int = 20,
        offset: int = 0,
        now: datetime | None = None,
    ) -> tuple[list[Booking], int]:
        """List the requester's bookings, newest start first."""
        query = select(Booking).where(Booking.profile_id == profile.id)

        if status:
            query = query.where(Booking.status == status)
        if upcoming:
            query = query.where(Booking.end_time >= (now or datetime.now(UTC)))

        count_result = await db.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar() or 0

        result = await db.execute(
            query.order_by(Booking.start_time.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def start_booking(
        self,
        db: AsyncSession,
        profile: Profile,
        data: BookingCreate,
        gateway: PaymentGateway,
        now: datetime | None = None,
    ) -> tuple[Booking, TransactionSession]:
        """Create a pending booking and open its Midtrans transaction.

        If the gateway fails, the booking is committed as cancelled before the
        GatewayError propagates, so it never holds the slot without a payment
        path.
        """
        now = now or datetime.now(UTC)

        validate_booking_window(data.start_time, data.end_time, now)

        court = await db.get(Court, data.court_id)
        if not court:
            raise CourtNotFound()
        if not court.is_active:
            raise BookingValidationError("Lapangan sedang tidak menerima booking.")

        price_total = calculate_price_total(court.price_per_hour, data.start_time, data.end_time)

        if not await check_slot_available(db, court.id, data.start_time, data.end_time):
            raise SlotNotAvailable()

        booking = Booking(
            court_id=court.id,
            profile_id=profile.id,
            start_time=data.start_time,
            end_time=data.end_time,
            status=BookingStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_reference=await generate_payment_reference(db),
            price_total=price_total,
            notes=data.notes,
        )
        db.add(booking)
        await db.flush()

        try:
            session = await gateway.create_transaction(
                booking.payment_reference,
                price_total,
                payer=Payer(name=profile.full_name, email=profile.email),
                context=TransactionContext(
                    court_name=court.name,
                    finish_redirect_url=build_finish_redirect_url(booking.id),
                    items=[LineItem(id=str(court.id), price=price_total, name=court.name)],
                ),
            )
        except GatewayError as e:
            logger.error(
                f"Payment initiation failed for booking {booking.id} "
                f"({booking.payment_reference}): {e.detail} {e.provider_detail!r}"
            )
            await reconciliation_service.cancel_unverified(
                db, booking, trigger="create", now=now
            )
            await db.commit()
            raise

        booking.payment_token = session.token
        booking.payment_redirect_url = session.redirect_url
        booking.payment_expired_at = now + timedelta(minutes=settings.payment_window_minutes)
        await db.flush()

        logger.info(
            f"Booking {booking.id} created on court {court.id} "
            f"({booking.payment_reference}, {price_total} IDR)"
        )
        return booking, session

    async def check_payment_status(
        self,
        db: AsyncSession,
        booking: Booking,
        gateway: PaymentGateway,
        now: datetime | None = None,
    ) -> tuple[ReconciliationResult, str | None]:
        """Query Midtrans for one booking and reconcile it.

        Returns:
            tuple: Reconciliation result and the raw provider transaction status
        """
        if not booking.payment_reference:
            return ReconciliationResult(ReconciliationOutcome.UNRESOLVED, booking), None

        try:
            provider_status = await gateway.get_transaction_status(booking.payment_reference)
        except GatewayError as e:
            logger.warning(f"Payment status check failed for booking {booking.id}: {e.detail}")
            raise ExternalServiceError("Midtrans", "Status pembayaran belum dapat diperiksa.")

        booking_id, reference = booking.id, booking.payment_reference
        try:
            result = await reconciliation_service.reconcile(
                db, booking, provider_status, trigger="poll", now=now
            )
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception(
                f"Failed to persist payment status for booking {booking_id} ({reference}), "
                f"provider status {provider_status.transaction_status if provider_status else None!r}"
            )
            raise PersistenceError()

        return result, provider_status.transaction_status if provider_status else None

    async def cancel_booking(
        self,
        db: AsyncSession,
        booking: Booking,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> Booking:
        """Requester/admin cancellation."""
        now = now or datetime.now(UTC)
        assert_can_cancel(booking.status, booking.start_time, now)

        result = await self._write(db, booking, CANCELLED_PAIR, trigger="cancel", now=now)
        if result.booking.status != BookingStatus.CANCELLED.value:
            raise InvalidBookingStatus("Status booking berubah. Muat ulang dan coba lagi.")

        if reason:
            logger.info(f"Booking {booking.id} cancelled by requester: {reason}")
        return result.booking

    async def check_in(
        self,
        db: AsyncSession,
        booking: Booking,
        now: datetime | None = None,
    ) -> Booking:
        """Operator check-in. Repeating it on a checked-in booking is a no-op."""
        now = now or datetime.now(UTC)
        if booking.status in OPERATIONAL_STATUSES:
            return booking

        assert_can_check_in(
            booking.status, booking.payment_status, booking.start_time, booking.end_time, now
        )

        result = await self._write(
            db,
            booking,
            StatusPair(BookingStatus.CHECKED_IN.value, booking.payment_status),
            trigger="check_in",
            now=now,
            extra_values={"checked_in_at": now},
        )
        if result.booking.status not in OPERATIONAL_STATUSES:
            raise InvalidBookingStatus("Status booking berubah. Muat ulang dan coba lagi.")
        return result.booking

    async def complete(
        self,
        db: AsyncSession,
        booking: Booking,
        now: datetime | None = None,
    ) -> Booking:
        """Operator completion. Repeating it on a completed booking is a no-op."""
        now = now or datetime.now(UTC)
        if booking.status == BookingStatus.COMPLETED.value:
            return booking

        assert_can_complete(booking.status, booking.payment_status, booking.checked_in_at)

        result = await self._write(
            db,
            booking,
            StatusPair(BookingStatus.COMPLETED.value, booking.payment_status),
            trigger="complete",
            now=now,
            extra_values={"completed_at": now},
        )
        if result.booking.status != BookingStatus.COMPLETED.value:
            raise InvalidBookingStatus("Status booking berubah. Muat ulang dan coba lagi.")
        return result.booking

    async def _write(
        self,
        db: AsyncSession,
        booking: Booking,
        target: StatusPair,
        *,
        trigger: str,
        now: datetime,
        extra_values: dict | None = None,
    ) -> ReconciliationResult:
        booking_id, known = booking.id, StatusPair(booking.status, booking.payment_status)
        try:
            result = await reconciliation_service.apply_status_change(
                db, booking, target, trigger=trigger, now=now, extra_values=extra_values
            )
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception(
                f"Failed to persist {trigger} for booking {booking_id}: {known} -> {target}"
            )
            raise PersistenceError()

        if result.outcome is ReconciliationOutcome.REJECTED:
            raise InvalidBookingStatus(
                f"Booking dengan status {known.status} tidak dapat diubah ke {target.status}."
            )
        return result


booking_service = BookingService()
