"""Midtrans notification endpoint.

Once a notification is authenticated it is always acknowledged with 200:
Midtrans retries anything else, and reconciliation is idempotent, so a
failed attempt converges on the next poll, sweep or retry.
"""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtease.api.deps import Gateway, get_db
from courtease.gateways.base import ProviderStatus
from courtease.models.booking import Booking
from courtease.schemas.payment import MidtransNotification, WebhookAck
from courtease.services.reconciliation_service import reconciliation_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/midtrans/webhook", response_model=WebhookAck, status_code=status.HTTP_200_OK)
async def midtrans_webhook(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Gateway,
    x_callback_signature: Annotated[str | None, Header()] = None,
) -> WebhookAck | JSONResponse:
    """Handle a Midtrans HTTP notification."""
    raw_body = await request.body()
    try:
        payload = json.loads(raw_body, parse_float=str)
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON payload")

    if not isinstance(payload, dict):
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON payload")

    try:
        notification = MidtransNotification.model_validate(payload)
    except PydanticValidationError:
        return _error(status.HTTP_400_BAD_REQUEST, "Malformed notification payload")

    signature = (x_callback_signature or notification.signature_key or "").strip()
    if not signature:
        return _error(status.HTTP_400_BAD_REQUEST, "Malformed notification payload")

    if not gateway.is_configured:
        logger.error("Midtrans notification received but the server key is not configured")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Payment gateway is not configured")

    order_id = notification.order_id
    if not gateway.verify_signature(
        order_id, notification.status_code, notification.gross_amount, signature
    ):
        expected = gateway.compute_signature(
            order_id, notification.status_code, notification.gross_amount
        )
        logger.error(
            f"Invalid Midtrans signature for {order_id}: "
            f"received={signature} expected={expected}"
        )
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid signature")

    try:
        result = await db.execute(select(Booking).where(Booking.payment_reference == order_id))
        booking = result.scalar_one_or_none()
        if not booking:
            logger.warning(f"Midtrans notification for unknown booking reference {order_id}")
            return WebhookAck(message="Booking not found")

        outcome = await reconciliation_service.reconcile(
            db,
            booking,
            ProviderStatus.from_payload(payload),
            trigger="webhook",
        )
        await db.commit()
        return WebhookAck(outcome=outcome.outcome.value)
    except Exception:
        await db.rollback()
        logger.exception(
            f"Failed to apply Midtrans notification for {order_id}: "
            f"transaction_status={notification.transaction_status!r} "
            f"fraud_status={notification.fraud_status!r}"
        )
        return WebhookAck(message="Notification received")
