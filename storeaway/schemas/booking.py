"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storeaway.services.pricing import Quote


class QuoteRequest(BaseModel):
    """Schema for pricing a date range."""

    listing_id: UUID
    start_date: date
    end_date: date


class QuoteResponse(BaseModel):
    """Price of a date range, as displayed and as charged."""

    listing_id: UUID
    start_date: date
    end_date: date
    days: int
    monthly_rate: Decimal
    total: Decimal
    amount_minor: int
    currency: str

    @classmethod
    def from_quote(cls, listing_id: UUID, quote: Quote) -> "QuoteResponse":
        return cls(
            listing_id=listing_id,
            start_date=quote.start_date,
            end_date=quote.end_date,
            days=quote.days,
            monthly_rate=quote.monthly_rate,
            total=quote.total,
            amount_minor=quote.amount_minor,
            currency=quote.currency,
        )


class BookingCreateRequest(QuoteRequest):
    """Schema for creating a booking.

    ``payment_method_id`` is the processor's token for a card tokenized in
    the browser (e.g. ``pm_...``); raw card data is never accepted.
    """

    payment_method_id: str = Field(..., min_length=1, max_length=255)


class BookingResumeRequest(QuoteRequest):
    """Schema for resuming a booking whose payment already exists."""

    payment_reference: str = Field(..., min_length=1, max_length=255)


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_number: str
    listing_id: UUID
    user_id: str
    start_date: date
    end_date: date
    total_price: Decimal
    currency: str
    payment_reference: str | None
    payment_status: str | None
    created_at: datetime


class BookingActionRequiredResponse(BaseModel):
    """Payment is waiting on the customer (e.g. a 3-D Secure challenge).

    Complete the challenge with ``resume_token`` client-side, then call
    ``POST /bookings/resume`` with ``payment_reference``.
    """

    status: str = "requires_action"
    payment_reference: str
    resume_token: str | None
    quote: QuoteResponse


class BookingListResponse(BaseModel):
    """Paginated booking results."""

    items: list[BookingResponse]
    total: int
    page: int
    page_size: int
