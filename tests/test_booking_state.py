"""Booking/payment state machine."""

import pytest

from courtease.core.exceptions import InvalidTransition
from courtease.domain.booking_state import (
    BookingStatus,
    StatusPair,
    assert_booking_transition,
    assert_payment_transition,
    plan_status_change,
)


def pair(status: str, payment_status: str) -> StatusPair:
    return StatusPair(status, payment_status)


class TestPlanStatusChange:
    def test_settlement_confirms_pending_booking(self):
        assert plan_status_change(pair("pending", "pending"), pair("confirmed", "paid")) == (
            "confirmed",
            "paid",
        )

    def test_fraud_challenge_then_clear(self):
        challenged = plan_status_change(
            pair("pending", "pending"), pair("pending", "waiting_confirmation")
        )
        assert challenged == ("pending", "waiting_confirmation")
        assert plan_status_change(challenged, pair("confirmed", "paid")) == ("confirmed", "paid")

    def test_fraud_denied_cancels(self):
        assert plan_status_change(
            pair("pending", "waiting_confirmation"), pair("cancelled", "cancelled")
        ) == ("cancelled", "cancelled")

    def test_identical_pair_needs_no_write(self):
        assert plan_status_change(pair("confirmed", "paid"), pair("confirmed", "paid")) is None

    @pytest.mark.parametrize(
        "target",
        [pair("pending", "pending"), pair("confirmed", "paid"), pair("cancelled", "refunded")],
    )
    def test_cancelled_booking_never_moves(self, target):
        with pytest.raises(InvalidTransition):
            plan_status_change(pair("cancelled", "cancelled"), target)

    def test_waiting_confirmation_cannot_fall_back_to_pending(self):
        with pytest.raises(InvalidTransition):
            plan_status_change(pair("pending", "waiting_confirmation"), pair("pending", "pending"))

    def test_paid_booking_cannot_return_to_pending(self):
        with pytest.raises(InvalidTransition):
            plan_status_change(pair("confirmed", "paid"), pair("pending", "pending"))

    def test_refund_of_confirmed_booking_cancels_it(self):
        assert plan_status_change(pair("confirmed", "paid"), pair("cancelled", "refunded")) == (
            "cancelled",
            "refunded",
        )

    def test_paid_confirmation_of_checked_in_booking_is_a_no_op(self):
        assert plan_status_change(pair("checked_in", "paid"), pair("confirmed", "paid")) is None

    def test_refund_of_completed_booking_keeps_operational_status(self):
        assert plan_status_change(pair("completed", "paid"), pair("cancelled", "refunded")) == (
            "completed",
            "refunded",
        )

    def test_cancellation_of_checked_in_booking_is_rejected(self):
        with pytest.raises(InvalidTransition):
            plan_status_change(pair("checked_in", "paid"), pair("cancelled", "cancelled"))

    def test_operator_progression(self):
        assert plan_status_change(pair("confirmed", "paid"), pair("checked_in", "paid")) == (
            "checked_in",
            "paid",
        )
        assert plan_status_change(pair("checked_in", "paid"), pair("completed", "paid")) == (
            "completed",
            "paid",
        )

    def test_completed_cannot_go_back_to_checked_in(self):
        with pytest.raises(InvalidTransition):
            plan_status_change(pair("completed", "paid"), pair("checked_in", "paid"))

    def test_accepts_enum_members(self):
        planned = plan_status_change(
            StatusPair(BookingStatus.PENDING, "pending"),
            StatusPair(BookingStatus.CONFIRMED, "paid"),
        )
        assert planned == ("confirmed", "paid")


class TestAssertTransitions:
    def test_check_in_requires_confirmed(self):
        with pytest.raises(InvalidTransition) as exc_info:
            assert_booking_transition("pending", "checked_in")
        assert exc_info.value.kind == "booking"
        assert exc_info.value.status_code == 422

    def test_refunded_is_terminal_for_payment(self):
        with pytest.raises(InvalidTransition):
            assert_payment_transition("refunded", "paid")
