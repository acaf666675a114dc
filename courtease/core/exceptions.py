"""Custom application exceptions."""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """Validation error exception."""

    def __init__(self, detail: str = "Validation failed") -> None:
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class BookingValidationError(AppException):
    """Booking request rejected by the scheduling rules."""

    def __init__(self, detail: str = "Jadwal booking tidak valid.") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidTransition(ValidationError):
    """A status change the booking state machine does not allow."""

    def __init__(self, kind: str, current: str, target: str) -> None:
        self.kind = kind
        self.current = current
        self.target = target
        super().__init__(f"Invalid {kind} transition: {current} → {target}")


class NotFoundError(AppException):
    """Resource not found exception."""

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class CourtNotFound(AppException):
    """Requested court does not exist."""

    def __init__(self, detail: str = "Lapangan tidak ditemukan.") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AuthenticationError(AppException):
    """Authentication failed exception."""

    def __init__(self, detail: str = "Authentication failed") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(AppException):
    """Authorization denied exception."""

    def __init__(self, detail: str = "You don't have permission to access this resource") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidBookingStatus(AppException):
    """Invalid booking status for operation."""

    def __init__(self, detail: str = "This operation is not allowed for the current booking status") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class SlotNotAvailable(AppException):
    """Requested court time window overlaps an active booking."""

    def __init__(self, detail: str = "Lapangan sudah dibooking pada jadwal tersebut.") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class GatewayError(AppException):
    """Payment gateway failure.

    ``status_code`` is HTTP-like: 4xx when the request was rejected before or by
    the provider, 5xx when the provider was unreachable or misbehaved.
    """

    def __init__(
        self,
        detail: str = "Tidak dapat menginisiasi pembayaran Midtrans.",
        status_code: int = status.HTTP_502_BAD_GATEWAY,
        provider_detail: Any = None,
    ) -> None:
        self.provider_detail = provider_detail
        super().__init__(status_code=status_code, detail=detail)


class ExternalServiceError(AppException):
    """External service error."""

    def __init__(self, service: str, detail: str | None = None) -> None:
        message = f"External service '{service}' is unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message)


class PersistenceError(AppException):
    """Database write failed; the caller may retry."""

    def __init__(self, detail: str = "Gagal menyimpan perubahan booking. Silakan coba lagi.") -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            headers={"Retry-After": "5"},
        )
