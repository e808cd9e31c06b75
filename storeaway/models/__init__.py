"""Database models."""

from storeaway.models.booking import Booking, BookingDayClaim
from storeaway.models.listing import Listing
from storeaway.models.review import Review
from storeaway.models.user import Profile

__all__ = [
    "Profile",
    "Listing",
    "Booking",
    "BookingDayClaim",
    "Review",
]
