"""Profile schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from storeaway.schemas.listing import ListingResponse


class ProfileResponse(BaseModel):
    """Schema for the caller's own profile."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str | None
    display_name: str | None
    role: str
    bio: str | None
    avatar_url: str | None
    created_at: datetime


class ProfileUpdate(BaseModel):
    """Editable profile fields; role and email come from the identity provider."""

    model_config = ConfigDict(extra="forbid")

    display_name: str | None = Field(None, min_length=1, max_length=120)
    bio: str | None = Field(None, max_length=2000)
    avatar_url: str | None = Field(None, max_length=2048)


class PublicProfileResponse(BaseModel):
    """Public host page: profile plus their listings."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str | None
    role: str
    bio: str | None
    avatar_url: str | None
    listings: list[ListingResponse] = Field(default_factory=list)
