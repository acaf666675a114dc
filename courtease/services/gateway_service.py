"""Payment gateway wiring.

One gateway per process; routes and tasks get it from here so tests can
override it.
"""

from functools import lru_cache

from courtease.gateways.base import PaymentGateway
from courtease.gateways.midtrans import MidtransGateway


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    """Get the configured gateway (FastAPI dependency)."""
    return MidtransGateway()
