"""Booking services: pricing, availability, payment and creation."""

from storeaway.services.availability import AvailabilityChecker, ranges_overlap
from storeaway.services.booking_creator import BookingCreator, BookingRequiresAction
from storeaway.services.payment_coordinator import PaymentCoordinator, PaymentOutcome
from storeaway.services.pricing import Quote, build_quote, compute_total, to_minor_units

__all__ = [
    "AvailabilityChecker",
    "BookingCreator",
    "BookingRequiresAction",
    "PaymentCoordinator",
    "PaymentOutcome",
    "Quote",
    "build_quote",
    "compute_total",
    "ranges_overlap",
    "to_minor_units",
]
