"""Listing-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _unique_features(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    seen: list[str] = []
    for feature in (f.strip() for f in v):
        if feature and feature not in seen:
            seen.append(feature)
    return seen


class ListingBase(BaseModel):
    """Base listing schema."""

    name: str = Field(..., min_length=1, max_length=120)
    location: str = Field(..., min_length=1, max_length=255)
    size: int = Field(..., gt=0, le=1_000_000)  # square feet
    monthly_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: str = Field(default="", max_length=5000)
    images: list[str] = Field(default_factory=list, max_length=20)
    features: list[str] = Field(default_factory=list, max_length=30)

    @field_validator("features")
    @classmethod
    def dedupe_features(cls, v: list[str]) -> list[str]:
        return _unique_features(v)


class ListingCreate(ListingBase):
    """Schema for creating a listing."""


class ListingUpdate(BaseModel):
    """Schema for updating a listing.

    Availability is derived from bookings and cannot be set here.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=120)
    location: str | None = Field(None, min_length=1, max_length=255)
    size: int | None = Field(None, gt=0, le=1_000_000)
    monthly_price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    description: str | None = Field(None, max_length=5000)
    images: list[str] | None = Field(None, max_length=20)
    features: list[str] | None = Field(None, max_length=30)

    @field_validator("features")
    @classmethod
    def dedupe_features(cls, v: list[str] | None) -> list[str] | None:
        return _unique_features(v)


class ListingResponse(BaseModel):
    """Schema for listing response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    host_id: str
    name: str
    location: str
    size: int
    monthly_price: Decimal
    description: str
    images: list[str]
    features: list[str]
    is_available: bool
    created_at: datetime
    updated_at: datetime


class ListingListResponse(BaseModel):
    """Paginated listing results."""

    items: list[ListingResponse]
    total: int
    page: int
    page_size: int
