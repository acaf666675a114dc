"""Midtrans payment gateway adapter.

Snap is used to open transactions and the Core API v2 to query them.
Documentation: https://docs.midtrans.com
"""

import hashlib
import logging
from typing import Any
from urllib.parse import quote

import httpx

from courtease.config import settings
from courtease.core.exceptions import GatewayError
from courtease.gateways.base import (
    LineItem,
    Payer,
    PaymentGateway,
    ProviderStatus,
    TransactionContext,
    TransactionSession,
)

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = "CourtEase User"
DEFAULT_CUSTOMER_EMAIL = "no-reply@courtease.id"
DEFAULT_ITEM_ID = "court-reservation"
DEFAULT_ITEM_NAME = "Booking Lapangan CourtEase"

INVALID_RESPONSE = "Midtrans mengembalikan respons tidak valid."


def _clean(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _response_detail(response: httpx.Response) -> Any:
    """Provider error body, JSON when possible."""
    try:
        return response.json()
    except ValueError:
        return response.text or None


class MidtransGateway(PaymentGateway):
    """Midtrans Snap / Core API implementation."""

    def __init__(
        self,
        server_key: str | None = None,
        snap_base_url: str | None = None,
        api_base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.server_key = server_key if server_key is not None else settings.midtrans_server_key
        self.snap_base_url = (snap_base_url or settings.midtrans_snap_base_url).rstrip("/")
        self.api_base_url = (api_base_url or settings.midtrans_api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.midtrans_timeout_seconds
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.server_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=(self.server_key or "", ""),
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _customer_details(payer: Payer | None) -> dict[str, str]:
        payer = payer or Payer()
        return {
            "first_name": _clean(payer.name) or DEFAULT_CUSTOMER_NAME,
            "email": _clean(payer.email) or DEFAULT_CUSTOMER_EMAIL,
        }

    @staticmethod
    def _item_details(context: TransactionContext, amount: int) -> list[dict[str, Any]]:
        fallback_name = _clean(context.court_name) or DEFAULT_ITEM_NAME
        items = [
            {
                "id": item.id.strip(),
                "price": item.price,
                "quantity": item.quantity,
                "name": item.name or fallback_name,
            }
            for item in context.items
            if _clean(item.id) and item.price > 0 and item.quantity > 0
        ]
        if items:
            return items

        default_item = LineItem(id=DEFAULT_ITEM_ID, price=amount, name=fallback_name)
        return [
            {
                "id": default_item.id,
                "price": default_item.price,
                "quantity": default_item.quantity,
                "name": default_item.name,
            }
        ]

    async def create_transaction(
        self,
        reference: str,
        amount: int,
        payer: Payer | None = None,
        context: TransactionContext | None = None,
    ) -> TransactionSession:
        """Open a Snap transaction and return its token."""
        if not self.is_configured:
            raise GatewayError(
                "Midtrans belum dikonfigurasi. Isi MIDTRANS_SERVER_KEY di environment server.",
                status_code=500,
            )

        order_id = _clean(reference)
        if not order_id:
            raise GatewayError("ID pesanan Midtrans tidak valid.", status_code=400)

        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise GatewayError("Jumlah pembayaran tidak valid.", status_code=400)

        context = context or TransactionContext()
        payload: dict[str, Any] = {
            "transaction_details": {"order_id": order_id, "gross_amount": amount},
            "customer_details": self._customer_details(payer),
            "item_details": self._item_details(context, amount),
            "credit_card": {"secure": True},
        }
        finish_url = _clean(context.finish_redirect_url)
        if finish_url:
            payload["callbacks"] = {"finish": finish_url}

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.snap_base_url}/snap/v1/transactions",
                    json=payload,
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException as e:
            logger.error(f"Midtrans transaction create timed out for {order_id}: {e}")
            raise GatewayError("Midtrans tidak merespons. Coba lagi nanti.", status_code=504)
        except httpx.HTTPError as e:
            logger.error(f"Midtrans transaction create failed for {order_id}: {e}")
            raise GatewayError("Gagal menghubungi Midtrans.", status_code=502)

        if not response.is_success:
            detail = _response_detail(response)
            logger.error(
                f"Midtrans rejected transaction {order_id}: "
                f"HTTP {response.status_code} {detail!r}"
            )
            raise GatewayError(
                "Gagal membuat transaksi Midtrans.",
                status_code=502,
                provider_detail=detail,
            )

        try:
            data = response.json()
        except ValueError:
            raise GatewayError(INVALID_RESPONSE, status_code=502, provider_detail=response.text)

        if not isinstance(data, dict):
            raise GatewayError(INVALID_RESPONSE, status_code=502, provider_detail=data)

        token = _clean(data.get("token")) or _clean(data.get("snap_token"))
        if not token:
            raise GatewayError(INVALID_RESPONSE, status_code=502, provider_detail=data)

        return TransactionSession(token=token, redirect_url=_clean(data.get("redirect_url")))

    async def get_transaction_status(self, reference: str) -> ProviderStatus | None:
        """Query Core API status. Returns None when there is no usable record."""
        if not self.is_configured:
            logger.warning("Midtrans server key is not configured; cannot verify transaction status")
            return None

        order_id = _clean(reference)
        if not order_id:
            return None

        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.api_base_url}/v2/{quote(order_id, safe='')}/status",
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise GatewayError(
                f"Midtrans status query timed out: {e}", status_code=504
            )
        except httpx.HTTPError as e:
            raise GatewayError(
                f"Midtrans status query failed: {e}", status_code=502
            )

        if not response.is_success:
            logger.error(
                f"Failed to fetch Midtrans status for {order_id}: "
                f"HTTP {response.status_code} {_response_detail(response)!r}"
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Invalid Midtrans status response for {order_id}")
            return None

        if not isinstance(data, dict):
            return None

        # Core API answers unknown orders with HTTP 200 and a 404 body.
        if str(data.get("status_code", "")) == "404":
            return None

        return ProviderStatus.from_payload(data)

    def compute_signature(self, order_id: str, status_code: str, gross_amount: str) -> str:
        """SHA-512 over order_id + status_code + gross_amount + server_key."""
        raw = f"{order_id}{status_code}{gross_amount}{self.server_key or ''}"
        return hashlib.sha512(raw.encode()).hexdigest()
