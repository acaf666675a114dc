"""API dependencies for authentication and common operations."""

import hmac
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtease.config import settings
from courtease.core.exceptions import AuthenticationError, AuthorizationError
from courtease.core.security import verify_token
from courtease.database import get_db
from courtease.gateways.base import PaymentGateway
from courtease.models.profile import Profile
from courtease.services.gateway_service import get_payment_gateway

__all__ = [
    "get_db",
    "get_payment_gateway",
    "get_current_profile",
    "get_current_venue_operator",
    "require_job_trigger",
]

# Security scheme
security = HTTPBearer()

Gateway = Annotated[PaymentGateway, Depends(get_payment_gateway)]


async def get_current_profile(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Get the authenticated requester from the bearer token."""
    payload = verify_token(credentials.credentials, token_type="access")
    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Invalid token payload")

    try:
        profile_id = UUID(str(subject))
    except ValueError:
        raise AuthenticationError("Invalid token subject")

    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise AuthenticationError("Profile not found")

    return profile


async def get_current_venue_operator(
    current_profile: Annotated[Profile, Depends(get_current_profile)],
) -> Profile:
    """Get current profile and verify it operates venues."""
    if current_profile.role not in ("venue_partner", "admin"):
        raise AuthorizationError("Venue partner access required")
    return current_profile


async def require_job_trigger(
    x_cron_secret: Annotated[str | None, Header()] = None,
) -> None:
    """Guard job endpoints with the shared cron secret, when one is configured."""
    if not settings.cron_secret:
        return
    if not x_cron_secret or not hmac.compare_digest(x_cron_secret, settings.cron_secret):
        raise AuthenticationError("Invalid cron secret")
