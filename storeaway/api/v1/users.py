"""Profile endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storeaway.api.deps import get_current_user, get_db
from storeaway.core.exceptions import NotFoundError
from storeaway.models.listing import Listing
from storeaway.models.user import Profile
from storeaway.schemas.listing import ListingResponse
from storeaway.schemas.user import ProfileResponse, ProfileUpdate, PublicProfileResponse

router = APIRouter()


@router.get("/me", response_model=ProfileResponse)
async def get_me(
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> Profile:
    """Get the caller's profile."""
    return current_user


@router.patch("/me", response_model=ProfileResponse)
async def update_me(
    profile_data: ProfileUpdate,
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Edit the caller's profile."""
    for field, value in profile_data.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    await db.commit()
    return current_user


@router.get("/{user_id}", response_model=PublicProfileResponse)
async def get_public_profile(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PublicProfileResponse:
    """Public profile with the user's listings."""
    profile = await db.get(Profile, user_id)
    if profile is None:
        raise NotFoundError("User", user_id)

    result = await db.execute(
        select(Listing).where(Listing.host_id == user_id).order_by(Listing.created_at.desc())
    )
    return PublicProfileResponse(
        id=profile.id,
        display_name=profile.display_name,
        role=profile.role,
        bio=profile.bio,
        avatar_url=profile.avatar_url,
        listings=[ListingResponse.model_validate(listing) for listing in result.scalars().all()],
    )
