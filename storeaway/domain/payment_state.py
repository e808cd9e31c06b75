"""Payment status as seen by the booking workflow."""

from enum import Enum


class PaymentStatus(str, Enum):
    """Outcome of an authorize-and-capture call."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REQUIRES_ACTION = "requires_action"


class BookingPaymentStatus(str, Enum):
    """Payment status stored on a booking row."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# Stripe PaymentIntent statuses mapped onto workflow outcomes
STRIPE_STATUS_MAP = {
    "succeeded": PaymentStatus.SUCCEEDED,
    "requires_action": PaymentStatus.REQUIRES_ACTION,
    "requires_confirmation": PaymentStatus.REQUIRES_ACTION,
    "processing": PaymentStatus.REQUIRES_ACTION,
    "requires_capture": PaymentStatus.REQUIRES_ACTION,
    "requires_payment_method": PaymentStatus.FAILED,
    "canceled": PaymentStatus.FAILED,
}


def map_processor_status(raw: str) -> PaymentStatus:
    return STRIPE_STATUS_MAP.get(raw, PaymentStatus.FAILED)
