"""Booking and payment state machines."""

from enum import Enum
from typing import NamedTuple

from courtease.core.exceptions import InvalidTransition


class BookingStatus(str, Enum):
    """Booking lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment status of a booking."""

    PENDING = "pending"
    WAITING_CONFIRMATION = "waiting_confirmation"
    PAID = "paid"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


BOOKING_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"checked_in", "cancelled"},
    "checked_in": {"completed"},
    "completed": set(),
    "cancelled": set(),
}

PAYMENT_TRANSITIONS = {
    "pending": {"waiting_confirmation", "paid", "cancelled"},
    "waiting_confirmation": {"paid", "cancelled"},
    "paid": {"refunded", "cancelled"},
    "cancelled": set(),
    "refunded": set(),
}

# Operational states reached only through court-side actions.
OPERATIONAL_STATUSES = frozenset({"checked_in", "completed"})

# Source states a requester/admin cancellation may never start from.
NON_CANCELLABLE_STATUSES = frozenset({"checked_in", "completed", "cancelled"})


class StatusPair(NamedTuple):
    """``(status, payment_status)`` as written together on a booking."""

    status: str
    payment_status: str

    def __str__(self) -> str:
        return f"{self.status}/{self.payment_status}"


def _value(state: "str | Enum") -> str:
    return state.value if isinstance(state, Enum) else state


def is_terminal(status: "str | BookingStatus") -> bool:
    return _value(status) == BookingStatus.CANCELLED.value


def assert_booking_transition(current: str, target: str) -> None:
    allowed = BOOKING_TRANSITIONS.get(_value(current), set())
    if _value(target) not in allowed:
        raise InvalidTransition("booking", _value(current), _value(target))


def assert_payment_transition(current: str, target: str) -> None:
    allowed = PAYMENT_TRANSITIONS.get(_value(current), set())
    if _value(target) not in allowed:
        raise InvalidTransition("payment", _value(current), _value(target))


def plan_status_change(current: StatusPair, target: StatusPair) -> StatusPair | None:
    """Decide which pair to write when moving ``current`` towards ``target``.

    Returns ``None`` when the booking already reflects ``target`` and nothing
    needs writing. Raises ``InvalidTransition`` when the move is illegal,
    including every move out of ``cancelled``.
    """
    current = StatusPair(_value(current.status), _value(current.payment_status))
    target = StatusPair(_value(target.status), _value(target.payment_status))

    if is_terminal(current.status):
        raise InvalidTransition("booking", current.status, target.status)

    if current == target:
        return None

    if current.status in OPERATIONAL_STATUSES and target.status not in OPERATIONAL_STATUSES:
        # A paid confirmation is already behind a checked-in/completed booking,
        # and a refund is recorded without rewinding what happened on court.
        if target.payment_status == current.payment_status:
            return None
        if target.payment_status == PaymentStatus.REFUNDED.value:
            assert_payment_transition(current.payment_status, target.payment_status)
            return StatusPair(current.status, target.payment_status)
        raise InvalidTransition("payment", current.payment_status, target.payment_status)

    if target.payment_status != current.payment_status:
        assert_payment_transition(current.payment_status, target.payment_status)
    if target.status != current.status:
        assert_booking_transition(current.status, target.status)

    return target
