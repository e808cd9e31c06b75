"""Listing endpoints."""

import logging
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeaway.api.deps import get_change_feed, get_current_host, get_db, get_storage
from storeaway.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from storeaway.models.booking import Booking
from storeaway.models.listing import Listing
from storeaway.models.user import Profile
from storeaway.schemas.listing import (
    ListingCreate,
    ListingListResponse,
    ListingResponse,
    ListingUpdate,
)
from storeaway.services.change_feed import ChangeFeed
from storeaway.services.storage_service import StorageService

logger = logging.getLogger(__name__)

router = APIRouter()

LISTING_HAS_BOOKINGS = "Listings with bookings cannot be deleted"


async def _has_bookings(db: AsyncSession, listing_id: UUID) -> bool:
    result = await db.execute(select(Booking.id).where(Booking.listing_id == listing_id).limit(1))
    return result.scalar_one_or_none() is not None


async def _get_owned_listing(db: AsyncSession, listing_id: UUID, host: Profile) -> Listing:
    listing = await db.get(Listing, listing_id)
    if listing is None:
        raise NotFoundError("Listing", str(listing_id))
    if listing.host_id != host.id:
        raise AuthorizationError("You can only manage your own listings")
    return listing


@router.get("/", response_model=ListingListResponse)
async def browse_listings(
    db: Annotated[AsyncSession, Depends(get_db)],
    available: bool | None = Query(None),
    location: str | None = Query(None, max_length=255),
    max_price: Decimal | None = Query(None, gt=0),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> ListingListResponse:
    """Browse listings, optionally filtered."""
    query = select(Listing)
    if available is not None:
        query = query.where(Listing.is_available.is_(available))
    if location:
        query = query.where(Listing.location.ilike(f"%{location}%"))
    if max_price is not None:
        query = query.where(Listing.monthly_price <= max_price)

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    offset = (page - 1) * page_size
    result = await db.execute(
        query.order_by(Listing.created_at.desc()).offset(offset).limit(page_size)
    )
    return ListingListResponse(
        items=[ListingResponse.model_validate(listing) for listing in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/mine", response_model=list[ListingResponse])
async def get_my_listings(
    current_user: Annotated[Profile, Depends(get_current_host)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[Listing]:
    """Get all listings for the current host."""
    result = await db.execute(
        select(Listing)
        .where(Listing.host_id == current_user.id)
        .order_by(Listing.created_at.desc())
    )
    return list(result.scalars().all())


@router.get("/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Listing:
    """Get a listing by ID."""
    listing = await db.get(Listing, listing_id)
    if listing is None:
        raise NotFoundError("Listing", str(listing_id))
    return listing


@router.post("/", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(
    listing_data: ListingCreate,
    current_user: Annotated[Profile, Depends(get_current_host)],
    db: Annotated[AsyncSession, Depends(get_db)],
    feed: Annotated[ChangeFeed, Depends(get_change_feed)],
) -> Listing:
    """Create a new listing."""
    listing = Listing(
        host_id=current_user.id,
        name=listing_data.name,
        location=listing_data.location,
        size=listing_data.size,
        monthly_price=listing_data.monthly_price,
        description=listing_data.description,
        images=listing_data.images,
        features=listing_data.features,
        is_available=True,
    )
    db.add(listing)
    await db.commit()

    logger.info(f"Host {current_user.id} created listing {listing.id}")
    await feed.publish("listings", "INSERT", listing.id)
    return listing


@router.patch("/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: UUID,
    listing_data: ListingUpdate,
    current_user: Annotated[Profile, Depends(get_current_host)],
    db: Annotated[AsyncSession, Depends(get_db)],
    feed: Annotated[ChangeFeed, Depends(get_change_feed)],
) -> Listing:
    """Update a listing you own."""
    listing = await _get_owned_listing(db, listing_id, current_user)

    for field, value in listing_data.model_dump(exclude_unset=True).items():
        if value is None:
            raise ValidationError(f"{field} cannot be null")
        setattr(listing, field, value)

    await db.commit()
    await feed.publish("listings", "UPDATE", listing.id)
    return listing


@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_listing(
    listing_id: UUID,
    current_user: Annotated[Profile, Depends(get_current_host)],
    db: Annotated[AsyncSession, Depends(get_db)],
    feed: Annotated[ChangeFeed, Depends(get_change_feed)],
    storage: Annotated[StorageService, Depends(get_storage)],
) -> None:
    """Delete a listing you own.

    Bookings are a permanent record, so a listing that has any cannot be
    deleted.
    """
    listing = await _get_owned_listing(db, listing_id, current_user)

    if await _has_bookings(db, listing.id):
        raise ValidationError(LISTING_HAS_BOOKINGS)

    had_images = bool(listing.images)
    await db.delete(listing)
    try:
        await db.commit()
    except IntegrityError as e:
        # A booking landed after the check above
        await db.rollback()
        raise ValidationError(LISTING_HAS_BOOKINGS) from e

    logger.info(f"Host {current_user.id} deleted listing {listing_id}")
    await feed.publish("listings", "DELETE", listing_id)
    if had_images:
        await storage.delete_listing_images(str(listing_id))


@router.post("/{listing_id}/images", response_model=ListingResponse)
async def upload_listing_image(
    listing_id: UUID,
    current_user: Annotated[Profile, Depends(get_current_host)],
    db: Annotated[AsyncSession, Depends(get_db)],
    feed: Annotated[ChangeFeed, Depends(get_change_feed)],
    storage: Annotated[StorageService, Depends(get_storage)],
    file: UploadFile = File(...),
) -> Listing:
    """Upload a photo and append it to the listing's images."""
    listing = await _get_owned_listing(db, listing_id, current_user)
    if len(listing.images or []) >= 20:
        raise ValidationError("A listing can have at most 20 images")

    url = await storage.upload_listing_image(file.file, str(listing.id))
    listing.images = [*(listing.images or []), url]
    await db.commit()

    await feed.publish("listings", "UPDATE", listing.id)
    return listing
