"""API dependencies for authentication and common operations."""

import logging
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeaway.core.exceptions import AuthenticationError, AuthorizationError
from storeaway.core.security import Identity, identity_from_claims, verify_token
from storeaway.database import AsyncSessionLocal, get_db
from storeaway.models.user import Profile
from storeaway.services.booking_creator import BookingCreator
from storeaway.services.change_feed import ChangeFeed, change_feed
from storeaway.services.gateway_service import get_payment_gateway
from storeaway.services.payment_coordinator import PaymentCoordinator
from storeaway.services.storage_service import StorageService, storage_service

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)

__all__ = [
    "get_db",
    "get_current_identity",
    "get_current_user",
    "get_current_host",
    "get_booking_creator",
    "get_change_feed",
    "get_storage",
]


async def get_current_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Identity:
    """Verify the identity provider's bearer token."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    identity = identity_from_claims(verify_token(credentials.credentials))
    request.state.user_id = identity.user_id
    return identity


async def get_current_user(
    identity: Annotated[Identity, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Get the caller's profile, mirroring provider claims into it."""
    profile = await db.get(Profile, identity.user_id)
    if profile is None:
        profile = Profile(
            id=identity.user_id,
            email=identity.email,
            display_name=identity.display_name,
            role=identity.role,
        )
        db.add(profile)
        try:
            await db.commit()
        except IntegrityError:
            # Created by a concurrent request
            await db.rollback()
            profile = await db.get(Profile, identity.user_id)
            if profile is None:
                raise
        else:
            logger.info(f"Created profile for {identity.user_id} ({identity.role})")
        return profile

    if profile.role != identity.role or (identity.email and profile.email != identity.email):
        profile.role = identity.role
        profile.email = identity.email or profile.email
        await db.flush()
    if profile.display_name is None and identity.display_name:
        profile.display_name = identity.display_name
        await db.flush()
    return profile


async def get_current_host(
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> Profile:
    """Get current user and verify they are a host."""
    if current_user.role != "host":
        raise AuthorizationError("Host access required")
    return current_user


def get_change_feed() -> ChangeFeed:
    return change_feed


def get_storage() -> StorageService:
    return storage_service


def get_booking_creator(
    feed: Annotated[ChangeFeed, Depends(get_change_feed)],
) -> BookingCreator:
    """Booking workflow wired to the configured gateway.

    The creator opens its own sessions: its writes must commit independently
    of the request-scoped session.
    """
    return BookingCreator(
        session_factory=AsyncSessionLocal,
        payments=PaymentCoordinator(get_payment_gateway()),
        change_feed=feed,
    )
