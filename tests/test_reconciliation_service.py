"""Reconciliation of provider statuses into bookings."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import update

from courtease.gateways.base import ProviderStatus
from courtease.models import Booking
from courtease.services.reconciliation_service import (
    ReconciliationOutcome,
    parse_transaction_time,
    reconciliation_service,
)


def provider(status: str | None, fraud: str | None = None, transaction_time: str | None = None):
    return ProviderStatus(
        order_id="BOOK-1-1",
        transaction_status=status,
        fraud_status=fraud,
        transaction_time=transaction_time,
    )


@pytest.fixture
async def players(factory):
    owner = await factory.profile(role="venue_partner")
    player = await factory.profile()
    court = await factory.court(owner=owner)
    return court, player


async def load(db, booking_id) -> Booking:
    return await db.get(Booking, booking_id)


class TestReconcile:
    async def test_settlement_confirms_and_stamps_provider_time(self, db, factory, players):
        court, player = players
        created = await factory.booking(
            court, player, payment_expired_at=datetime.now(UTC) + timedelta(hours=3)
        )
        booking = await load(db, created.id)

        result = await reconciliation_service.reconcile(
            db, booking, provider("settlement", transaction_time="2026-05-01 13:45:10"), trigger="webhook"
        )
        await db.commit()

        assert result.outcome is ReconciliationOutcome.UPDATED
        assert result.status_updated
        assert (booking.status, booking.payment_status) == ("confirmed", "paid")
        # 13:45:10 WIB
        assert booking.payment_completed_at == datetime(2026, 5, 1, 6, 45, 10, tzinfo=UTC)
        assert booking.payment_expired_at is None

    async def test_paid_without_provider_time_uses_reconciliation_time(self, db, factory, players):
        court, player = players
        created = await factory.booking(court, player)
        booking = await load(db, created.id)
        now = datetime(2026, 5, 1, 8, 0, tzinfo=UTC)

        await reconciliation_service.reconcile(
            db, booking, provider("capture", "accept"), trigger="poll", now=now
        )

        assert booking.payment_completed_at == now

    async def test_same_status_twice_is_a_no_op(self, db, factory, players):
        court, player = players
        created = await factory.booking(court, player)
        booking = await load(db, created.id)

        first = await reconciliation_service.reconcile(
            db, booking, provider("settlement"), trigger="webhook"
        )
        await db.commit()
        snapshot = (booking.status, booking.payment_status, booking.payment_completed_at)

        second = await reconciliation_service.reconcile(
            db, booking, provider("settlement"), trigger="webhook"
        )
        await db.commit()

        assert first.outcome is ReconciliationOutcome.UPDATED
        assert second.outcome is ReconciliationOutcome.UNCHANGED
        assert (booking.status, booking.payment_status, booking.payment_completed_at) == snapshot

    @pytest.mark.parametrize("status", ["settlement", "pending", "refund", "capture"])
    async def test_cancelled_booking_is_never_resurrected(self, db, factory, players, status):
        court, player = players
        created = await factory.booking(
            court, player, status="cancelled", payment_status="cancelled"
        )
        booking = await load(db, created.id)

        result = await reconciliation_service.reconcile(
            db, booking, provider(status), trigger="webhook"
        )

        assert result.outcome is ReconciliationOutcome.TERMINAL
        assert (booking.status, booking.payment_status) == ("cancelled", "cancelled")

    async def test_unknown_status_is_unresolved(self, db, factory, players):
        court, player = players
        created = await factory.booking(court, player)
        booking = await load(db, created.id)

        result = await reconciliation_service.reconcile(
            db, booking, provider("mystery"), trigger="webhook"
        )

        assert result.outcome is ReconciliationOutcome.UNRESOLVED
        assert (booking.status, booking.payment_status) == ("pending", "pending")

    async def test_missing_status_is_unresolved(self, db, factory, players):
        court, player = players
        created = await factory.booking(court, player)
        booking = await load(db, created.id)

        result = await reconciliation_service.reconcile(db, booking, None, trigger="poll")

        assert result.outcome is ReconciliationOutcome.UNRESOLVED

    async def test_stale_pending_status_cannot_undo_payment(self, db, factory, players):
        court, player = players
        created = await factory.booking(court, player, status="confirmed", payment_status="paid")
        booking = await load(db, created.id)

        result = await reconciliation_service.reconcile(
            db, booking, provider("pending"), trigger="webhook"
        )

        assert result.outcome is ReconciliationOutcome.REJECTED
        assert (booking.status, booking.payment_status) == ("confirmed", "paid")

    async def test_refund_after_check_in_keeps_operational_status(self, db, factory, players):
        court, player = players
        created = await factory.booking(
            court,
            player,
            status="checked_in",
            payment_status="paid",
            checked_in_at=datetime.now(UTC),
        )
        booking = await load(db, created.id)

        result = await reconciliation_service.reconcile(
            db, booking, provider("refund"), trigger="webhook"
        )

        assert result.outcome is ReconciliationOutcome.UPDATED
        assert (booking.status, booking.payment_status) == ("checked_in", "refunded")

    async def test_expire_cancels_and_stamps_cancelled_at(self, db, factory, players):
        court, player = players
        created = await factory.booking(court, player)
        booking = await load(db, created.id)
        now = datetime(2026, 5, 1, 8, 0, tzinfo=UTC)

        await reconciliation_service.reconcile(
            db, booking, provider("expire"), trigger="sweep", now=now
        )

        assert (booking.status, booking.payment_status) == ("cancelled", "cancelled")
        assert booking.cancelled_at == now

    async def test_losing_a_race_reports_superseded(self, db, session_maker, factory, players):
        court, player = players
        created = await factory.booking(court, player)
        booking = await load(db, created.id)
        await db.commit()

        # Another writer cancels the booking after we loaded it.
        async with session_maker() as other:
            await other.execute(
                update(Booking)
                .where(Booking.id == created.id)
                .values(status="cancelled", payment_status="cancelled")
            )
            await other.commit()

        result = await reconciliation_service.reconcile(
            db, booking, provider("settlement"), trigger="webhook"
        )

        assert result.outcome is ReconciliationOutcome.SUPERSEDED
        assert (booking.status, booking.payment_status) == ("cancelled", "cancelled")


class TestCancelUnverified:
    async def test_cancels_pending_booking(self, db, factory, players):
        court, player = players
        created = await factory.booking(
            court, player, payment_expired_at=datetime.now(UTC) - timedelta(minutes=5)
        )
        booking = await load(db, created.id)

        result = await reconciliation_service.cancel_unverified(db, booking, trigger="sweep")

        assert result.outcome is ReconciliationOutcome.UPDATED
        assert (booking.status, booking.payment_status) == ("cancelled", "cancelled")
        assert booking.payment_expired_at is None

    async def test_already_cancelled_is_terminal(self, db, factory, players):
        court, player = players
        created = await factory.booking(court, player, status="cancelled", payment_status="cancelled")
        booking = await load(db, created.id)

        result = await reconciliation_service.cancel_unverified(db, booking, trigger="sweep")

        assert result.outcome is ReconciliationOutcome.TERMINAL


class TestParseTransactionTime:
    def test_local_wib_time(self):
        assert parse_transaction_time("2026-01-02 07:00:00") == datetime(2026, 1, 2, 0, 0, tzinfo=UTC)

    def test_offset_is_respected(self):
        assert parse_transaction_time("2026-01-02T07:00:00+00:00") == datetime(
            2026, 1, 2, 7, 0, tzinfo=UTC
        )

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_unusable_values(self, value):
        assert parse_transaction_time(value) is None
