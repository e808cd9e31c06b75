"""Review endpoints."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storeaway.api.deps import get_current_user, get_db
from storeaway.core.exceptions import AppException, AuthorizationError, NotFoundError
from storeaway.models.listing import Listing
from storeaway.models.review import Review
from storeaway.models.user import Profile
from storeaway.schemas.review import ListingReviewsResponse, ReviewCreate, ReviewResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class AlreadyReviewed(AppException):
    """A user reviews a listing at most once."""

    code = "already_reviewed"

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="You have already reviewed this listing",
        )


def _to_response(review: Review, author: Profile | None) -> ReviewResponse:
    response = ReviewResponse.model_validate(review)
    response.author_name = author.display_name if author else None
    return response


@router.get("/listings/{listing_id}", response_model=ListingReviewsResponse)
async def get_listing_reviews(
    listing_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ListingReviewsResponse:
    """Get all reviews of a listing, newest first."""
    if await db.get(Listing, listing_id) is None:
        raise NotFoundError("Listing", str(listing_id))

    result = await db.execute(
        select(Review)
        .where(Review.listing_id == listing_id)
        .options(selectinload(Review.author))
        .order_by(Review.created_at.desc())
    )
    reviews = list(result.scalars().all())

    avg_result = await db.execute(
        select(func.avg(Review.rating)).where(Review.listing_id == listing_id)
    )
    average = avg_result.scalar()

    return ListingReviewsResponse(
        items=[_to_response(review, review.author) for review in reviews],
        total=len(reviews),
        average_rating=round(float(average), 2) if average is not None else None,
    )


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    review_data: ReviewCreate,
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ReviewResponse:
    """Review a listing."""
    if await db.get(Listing, review_data.listing_id) is None:
        raise NotFoundError("Listing", str(review_data.listing_id))

    existing = await db.execute(
        select(Review.id).where(
            Review.listing_id == review_data.listing_id,
            Review.user_id == current_user.id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise AlreadyReviewed()

    review = Review(
        listing_id=review_data.listing_id,
        user_id=current_user.id,
        rating=review_data.rating,
        comment=review_data.comment,
    )
    db.add(review)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise AlreadyReviewed() from e

    logger.info(f"User {current_user.id} reviewed listing {review.listing_id}")
    return _to_response(review, current_user)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    review_id: UUID,
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    """Delete your own review."""
    review = await db.get(Review, review_id)
    if review is None:
        raise NotFoundError("Review", str(review_id))
    if review.user_id != current_user.id:
        raise AuthorizationError("You can only delete your own reviews")

    await db.delete(review)
    await db.commit()
