"""Booking/payment reconciliation.

Webhooks, client polls and expiry sweeps all land here. Every status write
is one conditional UPDATE keyed on the booking id and the pair the caller
last saw, so concurrent writers either apply a valid successor or lose the
race without touching the row.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import func, literal, update
from sqlalchemy.ext.asyncio import AsyncSession

from courtease.config import settings
from courtease.core.exceptions import InvalidTransition
from courtease.domain.booking_state import (
    BookingStatus,
    PaymentStatus,
    StatusPair,
    is_terminal,
    plan_status_change,
)
from courtease.gateways.base import ProviderStatus
from courtease.gateways.status_mapping import StatusMapping, map_provider_status
from courtease.models.booking import Booking
from courtease.models.types import UTCDateTime

logger = logging.getLogger(__name__)

CANCELLED_PAIR = StatusPair(BookingStatus.CANCELLED.value, PaymentStatus.CANCELLED.value)

TRANSACTION_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class ReconciliationOutcome(str, Enum):
    """What a reconciliation attempt did to the booking."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"  # already reflects the provider state
    UNRESOLVED = "unresolved"  # no status, or status outside the mapping table
    TERMINAL = "terminal"  # booking is cancelled
    REJECTED = "rejected"  # state machine refused the move
    SUPERSEDED = "superseded"  # another writer changed the row first


@dataclass
class ReconciliationResult:
    outcome: ReconciliationOutcome
    booking: Booking
    mapping: StatusMapping | None = None

    @property
    def status_updated(self) -> bool:
        return self.outcome is ReconciliationOutcome.UPDATED


def parse_transaction_time(value: str | None) -> datetime | None:
    """Parse a Midtrans ``transaction_time`` into an aware UTC datetime.

    Midtrans sends local time without an offset (``2024-05-01 13:45:10``);
    naive values are read in the configured provider timezone.
    """
    if not value or not value.strip():
        return None

    text = value.strip()
    try:
        parsed = datetime.strptime(text, TRANSACTION_TIME_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unparseable provider transaction_time: {value!r}")
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo(settings.midtrans_timezone))
    return parsed.astimezone(UTC)


def current_pair(booking: Booking) -> StatusPair:
    return StatusPair(booking.status, booking.payment_status)


class ReconciliationService:
    """Single writer of booking ``status``/``payment_status`` pairs."""

    async def reconcile(
        self,
        db: AsyncSession,
        booking: Booking,
        provider_status: ProviderStatus | None,
        *,
        trigger: str,
        now: datetime | None = None,
    ) -> ReconciliationResult:
        """Apply a provider-reported status to a booking.

        Args:
            db: Database session (the caller commits)
            booking: Booking loaded in ``db``
            provider_status: Pushed or queried provider status, None if unknown
            trigger: ``webhook``, ``poll`` or ``sweep``, for the logs
            now: Reconciliation time

        Returns:
            ReconciliationResult with the outcome and the refreshed booking
        """
        now = now or datetime.now(UTC)
        mapping = map_provider_status(provider_status)

        if mapping is None:
            if provider_status is not None:
                logger.warning(
                    f"Unresolved provider status for booking {booking.id} "
                    f"({booking.payment_reference}) via {trigger}: "
                    f"transaction_status={provider_status.transaction_status!r} "
                    f"fraud_status={provider_status.fraud_status!r}"
                )
            return ReconciliationResult(ReconciliationOutcome.UNRESOLVED, booking)

        paid_at = None
        if mapping.is_paid and provider_status is not None:
            paid_at = parse_transaction_time(provider_status.transaction_time)

        return await self.apply_status_change(
            db,
            booking,
            mapping.as_pair(),
            trigger=trigger,
            now=now,
            paid_at=paid_at,
            mapping=mapping,
        )

    async def cancel_unverified(
        self,
        db: AsyncSession,
        booking: Booking,
        *,
        trigger: str,
        now: datetime | None = None,
    ) -> ReconciliationResult:
        """Cancel a booking whose payment could not be verified."""
        return await self.apply_status_change(
            db, booking, CANCELLED_PAIR, trigger=trigger, now=now
        )

    async def apply_status_change(
        self,
        db: AsyncSession,
        booking: Booking,
        target: StatusPair,
        *,
        trigger: str,
        now: datetime | None = None,
        paid_at: datetime | None = None,
        extra_values: dict[str, Any] | None = None,
        mapping: StatusMapping | None = None,
    ) -> ReconciliationResult:
        """Plan and write a status pair with a conditional update.

        Also used by requester/operator actions, which pass their own
        timestamps through ``extra_values``.
        """
        now = now or datetime.now(UTC)
        current = current_pair(booking)

        if is_terminal(current.status):
            logger.info(
                f"Booking {booking.id} is cancelled; ignoring {target} via {trigger}"
            )
            return ReconciliationResult(ReconciliationOutcome.TERMINAL, booking, mapping)

        try:
            planned = plan_status_change(current, target)
        except InvalidTransition as e:
            logger.warning(
                f"Rejected status change for booking {booking.id} via {trigger}: {e.detail}"
            )
            return ReconciliationResult(ReconciliationOutcome.REJECTED, booking, mapping)

        if planned is None:
            return ReconciliationResult(ReconciliationOutcome.UNCHANGED, booking, mapping)

        values: dict[str, Any] = {
            "status": planned.status,
            "payment_status": planned.payment_status,
        }
        if (
            planned.payment_status == PaymentStatus.PAID.value
            and current.payment_status != PaymentStatus.PAID.value
        ):
            values["payment_completed_at"] = func.coalesce(
                Booking.payment_completed_at,
                literal(paid_at or now, UTCDateTime()),
            )
        if (
            current.payment_status == PaymentStatus.PENDING.value
            and planned.payment_status != PaymentStatus.PENDING.value
        ):
            values["payment_expired_at"] = None
        if planned.status == BookingStatus.CANCELLED.value:
            values["cancelled_at"] = now
        if extra_values:
            values.update(extra_values)

        result = await db.execute(
            update(Booking)
            .where(
                Booking.id == booking.id,
                Booking.status == current.status,
                Booking.payment_status == current.payment_status,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await db.refresh(booking)

        if result.rowcount == 0:
            logger.info(
                f"Booking {booking.id} changed concurrently; {current} -> {planned} "
                f"via {trigger} superseded by {current_pair(booking)}"
            )
            return ReconciliationResult(ReconciliationOutcome.SUPERSEDED, booking, mapping)

        logger.info(
            f"Booking {booking.id} ({booking.payment_reference}): "
            f"{current} -> {planned} via {trigger}"
        )
        return ReconciliationResult(ReconciliationOutcome.UPDATED, booking, mapping)


reconciliation_service = ReconciliationService()
