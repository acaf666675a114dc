"""Base payment gateway interface.

Adapters only talk to the provider. They never read or write bookings;
mapping provider vocabulary to booking state lives in ``status_mapping``.
"""

import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Payer:
    """Who is paying, as shown on the provider's checkout page."""

    name: str | None = None
    email: str | None = None


@dataclass
class LineItem:
    """A single line on the provider's checkout page (IDR)."""

    id: str
    price: int
    quantity: int = 1
    name: str | None = None


@dataclass
class TransactionContext:
    """Extra presentation data for a transaction."""

    court_name: str | None = None
    finish_redirect_url: str | None = None
    items: list[LineItem] = field(default_factory=list)


@dataclass
class TransactionSession:
    """Handle returned by the provider for a freshly opened transaction."""

    token: str
    redirect_url: str | None = None


@dataclass
class ProviderStatus:
    """Provider-reported transaction state, from a status query or a webhook."""

    order_id: str | None = None
    transaction_status: str | None = None
    fraud_status: str | None = None
    payment_type: str | None = None
    transaction_time: str | None = None
    status_message: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ProviderStatus":
        """Build from a provider JSON object, ignoring non-string values."""

        def text(key: str) -> str | None:
            value = payload.get(key)
            return value if isinstance(value, str) else None

        return cls(
            order_id=text("order_id"),
            transaction_status=text("transaction_status"),
            fraud_status=text("fraud_status"),
            payment_type=text("payment_type"),
            transaction_time=text("transaction_time"),
            status_message=text("status_message"),
            raw=payload,
        )


class PaymentGateway(ABC):
    """Abstract base class for payment gateways."""

    @property
    def is_configured(self) -> bool:
        """Whether credentials are present to call the provider."""
        return True

    @abstractmethod
    async def create_transaction(
        self,
        reference: str,
        amount: int,
        payer: Payer | None = None,
        context: TransactionContext | None = None,
    ) -> TransactionSession:
        """Open a pending transaction on the provider.

        Args:
            reference: Order reference, unique per attempt
            amount: Gross amount in IDR, must be positive
            payer: Customer details for the checkout page
            context: Court name, finish redirect and line items

        Returns:
            TransactionSession with the payment token and redirect URL

        Raises:
            GatewayError: On validation rejection or provider/network failure
        """

    @abstractmethod
    async def get_transaction_status(self, reference: str) -> ProviderStatus | None:
        """Query the provider for a transaction.

        Returns:
            ProviderStatus, or None when the provider has no usable record

        Raises:
            GatewayError: When the provider could not be reached in time
        """

    @abstractmethod
    def compute_signature(self, order_id: str, status_code: str, gross_amount: str) -> str:
        """Expected notification signature for the given fields."""

    def verify_signature(
        self,
        order_id: str,
        status_code: str,
        gross_amount: str,
        signature: str,
    ) -> bool:
        """Check a notification signature in constant time."""
        if not self.is_configured:
            return False
        expected = self.compute_signature(order_id, status_code, gross_amount)
        return hmac.compare_digest(expected, signature.strip().lower())
