"""Venue operator endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from courtease.api.deps import get_current_venue_operator, get_db
from courtease.models.profile import Profile
from courtease.schemas.booking import BookingResponse, BookingStatusActionRequest
from courtease.services.booking_service import booking_service

router = APIRouter()


@router.patch("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: UUID,
    action_data: BookingStatusActionRequest,
    current_profile: Annotated[Profile, Depends(get_current_venue_operator)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BookingResponse:
    """Check in or complete a booking on one of the operator's courts."""
    booking = await booking_service.get_operated_booking(db, booking_id, current_profile)

    if action_data.action == "check_in":
        booking = await booking_service.check_in(db, booking)
    else:
        booking = await booking_service.complete(db, booking)

    return BookingResponse.model_validate(booking)
