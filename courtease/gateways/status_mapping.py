"""Provider transaction status to booking state.

The single place where Midtrans vocabulary is interpreted. Webhooks,
client polls and expiry sweeps all go through ``map_provider_status``.
"""

from typing import NamedTuple

from courtease.domain.booking_state import BookingStatus, PaymentStatus, StatusPair
from courtease.gateways.base import ProviderStatus


class StatusMapping(NamedTuple):
    """Domain pair a provider status resolves to."""

    payment_status: PaymentStatus
    booking_status: BookingStatus

    def as_pair(self) -> StatusPair:
        return StatusPair(self.booking_status.value, self.payment_status.value)

    @property
    def is_paid(self) -> bool:
        return self.payment_status is PaymentStatus.PAID


PAID = StatusMapping(PaymentStatus.PAID, BookingStatus.CONFIRMED)
CHALLENGED = StatusMapping(PaymentStatus.WAITING_CONFIRMATION, BookingStatus.PENDING)
AWAITING = StatusMapping(PaymentStatus.PENDING, BookingStatus.PENDING)
CANCELLED = StatusMapping(PaymentStatus.CANCELLED, BookingStatus.CANCELLED)
REFUNDED = StatusMapping(PaymentStatus.REFUNDED, BookingStatus.CANCELLED)

TRANSACTION_STATUS_MAP: dict[str, StatusMapping] = {
    "settlement": PAID,
    "authorize": CHALLENGED,
    "pending": AWAITING,
    "expire": CANCELLED,
    "expired": CANCELLED,
    "deny": CANCELLED,
    "cancel": CANCELLED,
    "failure": CANCELLED,
    "refund": REFUNDED,
    "partial_refund": REFUNDED,
    "chargeback": REFUNDED,
    "partial_chargeback": REFUNDED,
}


def _normalize(value: object) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def map_transaction_status(
    transaction_status: str | None,
    fraud_status: str | None = None,
) -> StatusMapping | None:
    """Map a raw ``transaction_status``/``fraud_status`` pair.

    Returns None for blank or unrecognised statuses; callers must treat that
    as unresolved, never as a cancellation.
    """
    status = _normalize(transaction_status)
    if not status:
        return None

    if status == "capture":
        return CHALLENGED if _normalize(fraud_status) == "challenge" else PAID

    return TRANSACTION_STATUS_MAP.get(status)


def map_provider_status(provider_status: ProviderStatus | None) -> StatusMapping | None:
    if provider_status is None:
        return None
    return map_transaction_status(
        provider_status.transaction_status,
        provider_status.fraud_status,
    )
