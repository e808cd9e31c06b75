"""Booking endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storeaway.api.deps import get_booking_creator, get_current_user, get_db
from storeaway.core.exceptions import AuthorizationError, NotFoundError
from storeaway.core.middleware import booking_limiter
from storeaway.models.booking import Booking
from storeaway.models.listing import Listing
from storeaway.models.user import Profile
from storeaway.schemas.booking import (
    BookingActionRequiredResponse,
    BookingCreateRequest,
    BookingListResponse,
    BookingResponse,
    BookingResumeRequest,
    QuoteRequest,
    QuoteResponse,
)
from storeaway.services.booking_creator import BookingCreator, BookingRequiresAction

router = APIRouter()

BookingOutcome = BookingResponse | BookingActionRequiredResponse


def _render(
    listing_id: UUID,
    result: Booking | BookingRequiresAction,
    response: Response,
) -> BookingOutcome:
    """201 with the booking, or 202 when the customer must act first."""
    if isinstance(result, BookingRequiresAction):
        response.status_code = status.HTTP_202_ACCEPTED
        return BookingActionRequiredResponse(
            payment_reference=result.payment_reference,
            resume_token=result.resume_token,
            quote=QuoteResponse.from_quote(listing_id, result.quote),
        )
    return BookingResponse.model_validate(result)


@router.post("/quote", response_model=QuoteResponse)
async def quote_booking(
    quote_request: QuoteRequest,
    creator: Annotated[BookingCreator, Depends(get_booking_creator)],
) -> QuoteResponse:
    """Price a date range; the booking charges exactly this amount."""
    quote = await creator.quote(
        quote_request.listing_id, quote_request.start_date, quote_request.end_date
    )
    return QuoteResponse.from_quote(quote_request.listing_id, quote)


@router.post(
    "/",
    response_model=BookingOutcome,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(booking_limiter)],
)
async def create_booking(
    booking_data: BookingCreateRequest,
    response: Response,
    current_user: Annotated[Profile, Depends(get_current_user)],
    creator: Annotated[BookingCreator, Depends(get_booking_creator)],
) -> BookingOutcome:
    """Book a listing and pay for it."""
    result = await creator.create(
        booking_data.listing_id,
        current_user.id,
        booking_data.start_date,
        booking_data.end_date,
        booking_data.payment_method_id,
    )
    return _render(booking_data.listing_id, result, response)


@router.post(
    "/resume",
    response_model=BookingOutcome,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(booking_limiter)],
)
async def resume_booking(
    resume_data: BookingResumeRequest,
    response: Response,
    current_user: Annotated[Profile, Depends(get_current_user)],
    creator: Annotated[BookingCreator, Depends(get_booking_creator)],
) -> BookingOutcome:
    """Finish a booking whose payment already exists.

    Used after a customer challenge, or after a payment was taken but the
    booking could not be recorded. Never charges again.
    """
    result = await creator.create(
        resume_data.listing_id,
        current_user.id,
        resume_data.start_date,
        resume_data.end_date,
        payment_reference=resume_data.payment_reference,
    )
    return _render(resume_data.listing_id, result, response)


@router.get("/", response_model=BookingListResponse)
async def get_my_bookings(
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    role: str = Query(default="client", pattern="^(client|host)$"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> BookingListResponse:
    """Bookings made by the caller, or of the caller's listings with ``role=host``."""
    if role == "client":
        query = select(Booking).where(Booking.user_id == current_user.id)
    else:
        if current_user.role != "host":
            raise AuthorizationError("Host access required")
        query = (
            select(Booking)
            .join(Listing, Listing.id == Booking.listing_id)
            .where(Listing.host_id == current_user.id)
        )

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    offset = (page - 1) * page_size
    result = await db.execute(
        query.order_by(Booking.created_at.desc()).offset(offset).limit(page_size)
    )
    return BookingListResponse(
        items=[BookingResponse.model_validate(b) for b in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Get a booking you made or one of your listings' bookings."""
    result = await db.execute(
        select(Booking)
        .join(Listing, Listing.id == Booking.listing_id)
        .where(
            Booking.id == booking_id,
            or_(Booking.user_id == current_user.id, Listing.host_id == current_user.id),
        )
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFoundError("Booking", str(booking_id))
    return booking
