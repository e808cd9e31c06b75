"""Local mirror of identity-provider users."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from storeaway.database import Base

if TYPE_CHECKING:
    from storeaway.models.booking import Booking
    from storeaway.models.listing import Listing
    from storeaway.models.review import Review


class Profile(Base):
    """User profile keyed by the identity provider's user id."""

    __tablename__ = "profiles"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), index=True)
    display_name: Mapped[str | None] = mapped_column(String(120))
    role: Mapped[str] = mapped_column(
        String(10), nullable=False, default="client"
    )  # client, host

    bio: Mapped[str | None] = mapped_column(Text)
    avatar_url: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    listings: Mapped[list["Listing"]] = relationship("Listing", back_populates="host")
    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="user")
    reviews: Mapped[list["Review"]] = relationship("Review", back_populates="author")
