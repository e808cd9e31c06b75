"""Core utilities: configuration-aware security, errors and middleware."""

from storeaway.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PaymentError,
    PaymentTimeoutError,
    PersistenceAfterPaymentError,
    PersistenceError,
    ValidationError,
)
from storeaway.core.security import Identity, identity_from_claims, verify_token

__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "NotFoundError",
    "PaymentError",
    "PaymentTimeoutError",
    "PersistenceAfterPaymentError",
    "PersistenceError",
    "ValidationError",
    "Identity",
    "identity_from_claims",
    "verify_token",
]
