"""Booking endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from courtease.api.deps import Gateway, get_current_profile, get_db
from courtease.models.profile import Profile
from courtease.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStartResponse,
    PaymentSession,
    PaymentStatusCheckResponse,
    StatusMappingResponse,
)
from courtease.services.booking_service import booking_service

router = APIRouter()


@router.post("", response_model=BookingStartResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Gateway,
) -> BookingStartResponse:
    """Create a booking and open its Midtrans payment."""
    booking, session = await booking_service.start_booking(
        db, current_profile, booking_data, gateway
    )

    return BookingStartResponse(
        booking_id=booking.id,
        status=booking.status,
        payment_status=booking.payment_status,
        price_total=booking.price_total,
        payment_reference=booking.payment_reference,
        payment=PaymentSession(
            token=session.token,
            redirect_url=session.redirect_url,
            expires_at=booking.payment_expired_at,
        ),
    )


@router.get("", response_model=BookingListResponse)
async def list_my_bookings(
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status_filter: str | None = Query(None, alias="status"),
    upcoming: bool = False,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> BookingListResponse:
    """List the current profile's bookings."""
    bookings, total = await booking_service.list_bookings(
        db,
        current_profile,
        status=status_filter,
        upcoming=upcoming,
        limit=limit,
        offset=offset,
    )

    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BookingResponse:
    """Get booking details."""
    booking = await booking_service.get_owned_booking(db, booking_id, current_profile)
    return BookingResponse.model_validate(booking)


@router.get("/{booking_id}/payment-status", response_model=PaymentStatusCheckResponse)
async def check_payment_status(
    booking_id: UUID,
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db)],
    gateway: Gateway,
) -> PaymentStatusCheckResponse:
    """Ask Midtrans for the latest status and reconcile the booking."""
    booking = await booking_service.get_owned_booking(db, booking_id, current_profile)
    result, provider_status = await booking_service.check_payment_status(db, booking, gateway)

    mapping = None
    if result.mapping is not None:
        mapping = StatusMappingResponse(
            payment_status=result.mapping.payment_status.value,
            booking_status=result.mapping.booking_status.value,
        )

    return PaymentStatusCheckResponse(
        status_updated=result.status_updated,
        outcome=result.outcome.value,
        provider_status=provider_status,
        status_mapping=mapping,
        booking=BookingResponse.model_validate(result.booking),
    )


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db)],
    cancel_data: Annotated[BookingCancelRequest | None, Body()] = None,
) -> BookingResponse:
    """Cancel a booking at least two hours before it starts."""
    booking = await booking_service.get_owned_booking(db, booking_id, current_profile)
    booking = await booking_service.cancel_booking(
        db, booking, reason=cancel_data.reason if cancel_data else None
    )
    return BookingResponse.model_validate(booking)
