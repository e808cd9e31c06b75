"""Custom application exceptions.

The booking workflow raises only these types; raw database and gateway
exceptions are translated before they leave a service.
"""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    code: str = "error"

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.extra = extra or {}
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """Bad input; the user can correct it and retry."""

    code = "validation_error"

    def __init__(self, detail: str = "Validation failed", errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class NotFoundError(AppException):
    """Resource not found exception."""

    code = "not_found"

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AuthenticationError(AppException):
    """Authentication failed exception."""

    code = "authentication_failed"

    def __init__(self, detail: str = "Authentication failed") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(AppException):
    """Authorization denied exception."""

    code = "forbidden"

    def __init__(self, detail: str = "You don't have permission to access this resource") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ConflictError(AppException):
    """Requested dates overlap an existing booking."""

    code = "dates_unavailable"

    def __init__(self, detail: str = "dates unavailable") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class PaymentError(AppException):
    """Payment declined or failed; retry with another instrument."""

    code = "payment_failed"

    def __init__(
        self,
        detail: str = "Payment processing failed",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=detail, extra=extra)


class PaymentTimeoutError(PaymentError):
    """The processor did not answer in time and the outcome is unknown."""

    code = "payment_status_unknown"

    def __init__(
        self,
        detail: str = (
            "We could not confirm your payment. Please check your bookings "
            "before paying again."
        ),
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(detail=detail, extra=extra)


class PersistenceError(AppException):
    """Data-layer failure before any payment was taken; safe to retry."""

    code = "persistence_failed"

    def __init__(self, detail: str = "We could not complete your request. Please try again.") -> None:
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


class PersistenceAfterPaymentError(AppException):
    """Payment was captured but the booking could not be recorded.

    Not safe to retry from scratch: recovery must resume persistence with
    ``payment_reference`` instead of charging again.
    """

    code = "payment_captured_not_recorded"

    def __init__(
        self,
        payment_reference: str,
        detail: str = (
            "Your payment was received but we could not record your booking. "
            "Please contact support and do not pay again."
        ),
    ) -> None:
        self.payment_reference = payment_reference
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            extra={"payment_reference": payment_reference},
        )


class RateLimitExceeded(AppException):
    """Rate limit exceeded exception."""

    code = "rate_limited"

    def __init__(self, detail: str = "Too many requests. Please try again later.") -> None:
        super().__init__(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=detail)


class ExternalServiceError(AppException):
    """External service error."""

    code = "external_service_unavailable"

    def __init__(self, service: str, detail: str | None = None) -> None:
        message = f"External service '{service}' is unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message)
