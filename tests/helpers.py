"""Test doubles and data builders."""

import uuid
from datetime import UTC, datetime, timedelta

from courtease.core.exceptions import GatewayError
from courtease.core.security import create_access_token
from courtease.gateways.base import (
    Payer,
    PaymentGateway,
    ProviderStatus,
    TransactionContext,
    TransactionSession,
)
from courtease.gateways.midtrans import MidtransGateway
from courtease.models import Booking, Court, Profile, Venue

SERVER_KEY = "test-server-key"

class FakeGateway(PaymentGateway):
    """In-memory Midtrans stand-in.

    ``statuses`` maps a reference to the ProviderStatus to return, None for
    "no record", or an exception to raise.
    """

    def __init__(self, server_key: str | None = SERVER_KEY):
        self.server_key = server_key
        self.statuses: dict[str, ProviderStatus | Exception | None] = {}
        self.create_error: GatewayError | None = None
        self.created: list[dict] = []
        self.status_queries: list[str] = []

    @property
    def is_configured(self) -> bool:
        return bool(self.server_key)

    def set_status(
        self,
        reference: str,
        transaction_status: str,
        fraud_status: str | None = None,
        transaction_time: str | None = None,
    ) -> None:
        self.statuses[reference] = ProviderStatus(
            order_id=reference,
            transaction_status=transaction_status,
            fraud_status=fraud_status,
            transaction_time=transaction_time,
        )

    async def create_transaction(
        self,
        reference: str,
        amount: int,
        payer: Payer | None = None,
        context: TransactionContext | None = None,
    ) -> TransactionSession:
        self.created.append(
            {"reference": reference, "amount": amount, "payer": payer, "context": context}
        )
        if self.create_error:
            raise self.create_error
        return TransactionSession(
            token=f"snap-{reference}",
            redirect_url=f"https://app.sandbox.midtrans.com/snap/v2/vtweb/snap-{reference}",
        )

    async def get_transaction_status(self, reference: str) -> ProviderStatus | None:
        self.status_queries.append(reference)
        value = self.statuses.get(reference)
        if isinstance(value, Exception):
            raise value
        return value

    def compute_signature(self, order_id: str, status_code: str, gross_amount: str) -> str:
        return MidtransGateway(server_key=self.server_key or "").compute_signature(
            order_id, status_code, gross_amount
        )


class Factory:
    """Creates committed rows in their own sessions."""

    def __init__(self, session_maker):
        self.session_maker = session_maker

    async def _save(self, obj):
        async with self.session_maker() as session:
            session.add(obj)
            await session.commit()
        return obj

    async def profile(self, role: str = "user", **kwargs) -> Profile:
        suffix = uuid.uuid4().hex[:8]
        kwargs.setdefault("full_name", f"Pemain {suffix}")
        kwargs.setdefault("email", f"player-{suffix}@example.com")
        return await self._save(Profile(id=uuid.uuid4(), role=role, **kwargs))

    async def court(
        self,
        owner: Profile | None = None,
        price_per_hour: int = 100_000,
        is_active: bool = True,
    ) -> Court:
        suffix = uuid.uuid4().hex[:8]
        venue = await self._save(
            Venue(
                id=uuid.uuid4(),
                owner_profile_id=owner.id if owner else None,
                slug=f"venue-{suffix}",
                name=f"Arena {suffix}",
                city="Bandung",
            )
        )
        return await self._save(
            Court(
                id=uuid.uuid4(),
                venue_id=venue.id,
                slug=f"court-{suffix}",
                name=f"Lapangan Futsal {suffix}",
                sport="futsal",
                price_per_hour=price_per_hour,
                is_active=is_active,
            )
        )

    async def booking(
        self,
        court: Court,
        profile: Profile,
        *,
        start_time: datetime | None = None,
        duration_hours: float = 2,
        status: str = "pending",
        payment_status: str = "pending",
        created_at: datetime | None = None,
        payment_expired_at: datetime | None = None,
        payment_completed_at: datetime | None = None,
        checked_in_at: datetime | None = None,
        payment_reference: str | None = None,
    ) -> Booking:
        now = datetime.now(UTC)
        start_time = start_time or (now + timedelta(days=1))
        return await self._save(
            Booking(
                id=uuid.uuid4(),
                court_id=court.id,
                profile_id=profile.id,
                start_time=start_time,
                end_time=start_time + timedelta(hours=duration_hours),
                status=status,
                payment_status=payment_status,
                payment_reference=payment_reference or f"BOOK-{uuid.uuid4().int % 10**13}-1",
                price_total=int(court.price_per_hour * duration_hours),
                created_at=created_at or now,
                payment_expired_at=payment_expired_at,
                payment_completed_at=payment_completed_at,
                checked_in_at=checked_in_at,
            )
        )


def auth_headers(profile: Profile) -> dict[str, str]:
    token = create_access_token({"sub": str(profile.id)})
    return {"Authorization": f"Bearer {token}"}
