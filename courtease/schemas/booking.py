"""Booking-related Pydantic schemas."""

from datetime import UTC, datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator

from courtease.config import settings


class BookingCreate(BaseModel):
    """Schema for starting a booking and its payment."""

    court_id: UUID
    start_time: datetime
    end_time: datetime
    notes: str | None = Field(None, max_length=1000)

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        # Clients without an offset mean venue-local time.
        if v.tzinfo is None:
            v = v.replace(tzinfo=ZoneInfo(settings.midtrans_timezone))
        return v.astimezone(UTC)


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    court_id: UUID
    profile_id: UUID

    # Window
    start_time: datetime
    end_time: datetime

    # Status
    status: str
    payment_status: str

    # Payment
    payment_reference: str
    payment_token: str | None
    payment_redirect_url: str | None
    payment_expired_at: datetime | None
    payment_completed_at: datetime | None
    price_total: int

    notes: str | None

    # Timestamps
    checked_in_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    created_at: datetime
    updated_at: datetime


class PaymentSession(BaseModel):
    """Provider checkout handle for a new booking."""

    token: str
    redirect_url: str | None = None
    expires_at: datetime | None = None


class BookingStartResponse(BaseModel):
    """Schema for a freshly created booking."""

    booking_id: UUID
    status: str
    payment_status: str
    price_total: int
    payment_reference: str
    payment: PaymentSession


class BookingListResponse(BaseModel):
    """Schema for paginated booking list."""

    bookings: list[BookingResponse]
    total: int
    limit: int
    offset: int


class BookingCancelRequest(BaseModel):
    """Schema for cancelling a booking."""

    reason: str | None = Field(None, max_length=1000)


class BookingStatusActionRequest(BaseModel):
    """Schema for operator actions on a booking."""

    action: str = Field(..., pattern="^(check_in|complete)$")


class StatusMappingResponse(BaseModel):
    payment_status: str
    booking_status: str


class PaymentStatusCheckResponse(BaseModel):
    """Schema for a client-initiated payment status check."""

    status_updated: bool
    outcome: str
    provider_status: str | None = None
    status_mapping: StatusMappingResponse | None = None
    booking: BookingResponse
