"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from storeaway.api.v1 import bookings, changes, listings, reviews, users

api_router = APIRouter()

# Users
api_router.include_router(users.router, prefix="/users", tags=["Users"])

# Listings
api_router.include_router(listings.router, prefix="/listings", tags=["Listings"])

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Reviews
api_router.include_router(reviews.router, prefix="/reviews", tags=["Reviews"])

# Change feed
api_router.include_router(changes.router, tags=["Changes"])
