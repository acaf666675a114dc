"""Pydantic schemas for request/response validation."""

from courtease.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStartResponse,
    BookingStatusActionRequest,
    PaymentSession,
    PaymentStatusCheckResponse,
    StatusMappingResponse,
)
from courtease.schemas.payment import MidtransNotification, SweepReportResponse, WebhookAck

__all__ = [
    # Booking
    "BookingCancelRequest",
    "BookingCreate",
    "BookingListResponse",
    "BookingResponse",
    "BookingStartResponse",
    "BookingStatusActionRequest",
    "PaymentSession",
    "PaymentStatusCheckResponse",
    "StatusMappingResponse",
    # Payment
    "MidtransNotification",
    "SweepReportResponse",
    "WebhookAck",
]
