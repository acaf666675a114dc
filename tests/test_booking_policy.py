"""Scheduling, pricing, cancellation and check-in rules."""

from datetime import UTC, datetime, timedelta

import pytest

from courtease.core.exceptions import BookingValidationError, InvalidBookingStatus
from courtease.domain.booking_policy import (
    add_months,
    assert_can_cancel,
    assert_can_check_in,
    assert_can_complete,
    booking_horizon_deadline,
    calculate_price_total,
    validate_booking_window,
)

NOW = datetime(2026, 3, 10, 3, 0, tzinfo=UTC)  # 10:00 WIB


class TestPricing:
    def test_two_hours_at_100k(self):
        start = NOW + timedelta(days=1)
        assert calculate_price_total(100_000, start, start + timedelta(hours=2)) == 200_000

    def test_short_slot_is_billed_one_hour(self):
        start = NOW + timedelta(days=1)
        assert calculate_price_total(80_000, start, start + timedelta(minutes=30)) == 80_000

    def test_partial_hours_round_up(self):
        start = NOW + timedelta(days=1)
        assert calculate_price_total(100_001, start, start + timedelta(minutes=90)) == 150_002

    def test_missing_rate_is_rejected(self):
        start = NOW + timedelta(days=1)
        with pytest.raises(BookingValidationError) as exc_info:
            calculate_price_total(0, start, start + timedelta(hours=1))
        assert exc_info.value.detail == "Harga lapangan belum dikonfigurasi."


class TestBookingWindow:
    def test_valid_window(self):
        start = NOW + timedelta(days=2)
        validate_booking_window(start, start + timedelta(hours=2), NOW)

    def test_past_start_is_rejected(self):
        with pytest.raises(BookingValidationError) as exc_info:
            validate_booking_window(NOW - timedelta(minutes=1), NOW + timedelta(hours=1), NOW)
        assert exc_info.value.detail == "Tanggal booking sudah lewat. Pilih jadwal lain."

    def test_end_must_follow_start(self):
        start = NOW + timedelta(days=1)
        with pytest.raises(BookingValidationError) as exc_info:
            validate_booking_window(start, start, NOW)
        assert exc_info.value.detail == "Waktu selesai harus setelah waktu mulai."

    def test_start_beyond_horizon_is_rejected(self):
        start = NOW + timedelta(days=100)
        with pytest.raises(BookingValidationError) as exc_info:
            validate_booking_window(start, start + timedelta(hours=1), NOW)
        assert "3 bulan" in exc_info.value.detail

    def test_end_beyond_horizon_is_rejected(self):
        deadline = booking_horizon_deadline(NOW)
        start = deadline - timedelta(minutes=30)
        with pytest.raises(BookingValidationError) as exc_info:
            validate_booking_window(start, start + timedelta(hours=1), NOW)
        assert exc_info.value.detail == "Durasi booking melebihi batas jadwal yang diizinkan."

    def test_horizon_ends_at_local_end_of_day(self):
        deadline = booking_horizon_deadline(NOW)
        assert deadline.date().isoformat() == "2026-06-10"
        assert (deadline.hour, deadline.minute) == (23, 59)

    def test_add_months_clamps_day(self):
        assert add_months(datetime(2026, 11, 30), 3) == datetime(2027, 2, 28)


class TestCancellation:
    def test_ninety_minutes_before_start_is_rejected(self):
        with pytest.raises(InvalidBookingStatus):
            assert_can_cancel("confirmed", NOW + timedelta(minutes=90), NOW)

    def test_exactly_two_hours_before_start_is_allowed(self):
        assert_can_cancel("pending", NOW + timedelta(hours=2), NOW)

    @pytest.mark.parametrize("status", ["checked_in", "completed", "cancelled"])
    def test_operational_and_terminal_statuses_are_rejected(self, status):
        with pytest.raises(InvalidBookingStatus):
            assert_can_cancel(status, NOW + timedelta(days=3), NOW)


class TestCheckIn:
    start = NOW + timedelta(minutes=30)
    end = NOW + timedelta(hours=2, minutes=30)

    def test_within_window(self):
        assert_can_check_in("confirmed", "paid", self.start, self.end, NOW)

    def test_after_end_is_rejected_even_when_confirmed(self):
        end = NOW - timedelta(minutes=10)
        with pytest.raises(InvalidBookingStatus):
            assert_can_check_in("confirmed", "paid", end - timedelta(hours=2), end, NOW)

    def test_too_early_is_rejected(self):
        start = NOW + timedelta(minutes=61)
        with pytest.raises(InvalidBookingStatus):
            assert_can_check_in("confirmed", "paid", start, start + timedelta(hours=1), NOW)

    def test_requires_paid_payment(self):
        with pytest.raises(InvalidBookingStatus):
            assert_can_check_in("confirmed", "waiting_confirmation", self.start, self.end, NOW)

    def test_requires_confirmed_status(self):
        with pytest.raises(InvalidBookingStatus):
            assert_can_check_in("pending", "paid", self.start, self.end, NOW)


class TestComplete:
    def test_requires_prior_check_in(self):
        with pytest.raises(InvalidBookingStatus):
            assert_can_complete("confirmed", "paid", None)

    def test_checked_in_booking_can_complete(self):
        assert_can_complete("checked_in", "paid", NOW)

    @pytest.mark.parametrize("payment_status", ["refunded", "waiting_confirmation", "pending"])
    def test_requires_paid_payment(self, payment_status):
        with pytest.raises(InvalidBookingStatus) as exc_info:
            assert_can_complete("checked_in", payment_status, NOW)
        assert exc_info.value.detail == "Pembayaran harus lunas sebelum booking ditandai selesai."
