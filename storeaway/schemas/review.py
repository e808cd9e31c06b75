"""Review schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreate(BaseModel):
    """Schema for creating a review."""

    listing_id: UUID
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=2000)


class ReviewResponse(BaseModel):
    """Schema for review response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    listing_id: UUID
    user_id: str
    author_name: str | None = None
    rating: int
    comment: str | None
    created_at: datetime


class ListingReviewsResponse(BaseModel):
    """Reviews of one listing with the average rating."""

    items: list[ReviewResponse]
    total: int
    average_rating: float | None
