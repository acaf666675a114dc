"""Booking scheduling, pricing and operational-action rules.

Rules:
- A booking starts in the future, no later than the end of the day
  ``booking_horizon_months`` ahead (venue-local calendar), and ends after it
  starts and within the same horizon.
- Price is the court's flat hourly rate times the duration, with a one-hour
  minimum, rounded up to the rupiah.
- Requesters may cancel only while ``start_time`` is at least the lead time
  away and the booking has not reached check-in, completion or cancellation.
- Operators may check in from ``check_in_window_minutes`` before start until
  the end time, and complete only after a check-in.
"""

import calendar
import math
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

from courtease.config import settings
from courtease.core.exceptions import BookingValidationError, InvalidBookingStatus
from courtease.domain.booking_state import (
    NON_CANCELLABLE_STATUSES,
    BookingStatus,
    PaymentStatus,
)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift ``moment`` by whole calendar months, clamping the day."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def booking_horizon_deadline(now: datetime) -> datetime:
    """Last instant a booking may reach: end of the local day N months ahead."""
    local_now = now.astimezone(ZoneInfo(settings.midtrans_timezone))
    horizon = add_months(local_now, settings.booking_horizon_months)
    return datetime.combine(horizon.date(), time.max, tzinfo=horizon.tzinfo)


def validate_booking_window(start_time: datetime, end_time: datetime, now: datetime) -> None:
    """Reject a requested window that is past, inverted or beyond the horizon."""
    deadline = booking_horizon_deadline(now)

    if start_time < now:
        raise BookingValidationError("Tanggal booking sudah lewat. Pilih jadwal lain.")

    if start_time > deadline:
        raise BookingValidationError(
            f"Booking hanya dapat dijadwalkan maksimal {settings.booking_horizon_months} bulan ke depan."
        )

    if end_time <= start_time:
        raise BookingValidationError("Waktu selesai harus setelah waktu mulai.")

    if end_time > deadline:
        raise BookingValidationError("Durasi booking melebihi batas jadwal yang diizinkan.")


def calculate_price_total(price_per_hour: int, start_time: datetime, end_time: datetime) -> int:
    """Flat hourly price with a one-hour minimum.

    Args:
        price_per_hour: Court rate in IDR
        start_time: Window start
        end_time: Window end

    Returns:
        int: Total price in IDR

    Raises:
        BookingValidationError: If the court has no usable rate
    """
    duration_hours = max(1.0, (end_time - start_time).total_seconds() / 3600)
    total = math.ceil(price_per_hour * duration_hours)
    if total <= 0:
        raise BookingValidationError("Harga lapangan belum dikonfigurasi.")
    return total


def assert_can_cancel(status: str, start_time: datetime, now: datetime) -> None:
    """Requester/admin cancellation rule."""
    if status in NON_CANCELLABLE_STATUSES:
        raise InvalidBookingStatus(f"Booking dengan status {status} tidak dapat dibatalkan.")

    lead_time = timedelta(minutes=settings.cancellation_lead_minutes)
    if start_time - now < lead_time:
        hours = settings.cancellation_lead_minutes / 60
        raise InvalidBookingStatus(
            f"Booking hanya dapat dibatalkan paling lambat {hours:g} jam sebelum jadwal mulai."
        )


def assert_can_check_in(
    status: str,
    payment_status: str,
    start_time: datetime,
    end_time: datetime,
    now: datetime,
) -> None:
    """Operator check-in rule."""
    if status != BookingStatus.CONFIRMED.value:
        raise InvalidBookingStatus("Hanya booking yang sudah dikonfirmasi yang dapat check-in.")

    if payment_status != PaymentStatus.PAID.value:
        raise InvalidBookingStatus("Pembayaran harus lunas sebelum check-in.")

    if now > end_time:
        raise InvalidBookingStatus("Tidak dapat check-in setelah waktu booking berakhir.")

    window = timedelta(minutes=settings.check_in_window_minutes)
    if now < start_time - window:
        raise InvalidBookingStatus(
            f"Check-in hanya dapat dilakukan {settings.check_in_window_minutes} menit sebelum jadwal mulai."
        )


def assert_can_complete(status: str, payment_status: str, checked_in_at: datetime | None) -> None:
    """Operator completion rule."""
    if status != BookingStatus.CHECKED_IN.value or checked_in_at is None:
        raise InvalidBookingStatus(
            "Validasi kedatangan terlebih dahulu sebelum menandai selesai."
        )

    if payment_status != PaymentStatus.PAID.value:
        raise InvalidBookingStatus("Pembayaran harus lunas sebelum booking ditandai selesai.")
