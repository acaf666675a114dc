"""Core utilities and security modules."""

from courtease.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    BookingValidationError,
    CourtNotFound,
    ExternalServiceError,
    GatewayError,
    InvalidBookingStatus,
    InvalidTransition,
    NotFoundError,
    PersistenceError,
    SlotNotAvailable,
    ValidationError,
)
from courtease.core.security import create_access_token, verify_token

__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "BookingValidationError",
    "CourtNotFound",
    "ExternalServiceError",
    "GatewayError",
    "InvalidBookingStatus",
    "InvalidTransition",
    "NotFoundError",
    "PersistenceError",
    "SlotNotAvailable",
    "ValidationError",
    "create_access_token",
    "verify_token",
]
