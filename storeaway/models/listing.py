"""Listing database model."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from storeaway.database import Base

if TYPE_CHECKING:
    from storeaway.models.booking import Booking
    from storeaway.models.review import Review
    from storeaway.models.user import Profile


class Listing(Base):
    """A rentable storage space."""

    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint("size > 0", name="ck_listings_size_positive"),
        CheckConstraint("monthly_price > 0", name="ck_listings_monthly_price_positive"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    host_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False)  # square feet
    monthly_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    images: Mapped[list[str]] = mapped_column(JSON, default=list)  # ordered URLs
    features: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Derived: false while any booking covers today or a future day
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    host: Mapped["Profile"] = relationship("Profile", back_populates="listings")
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking", back_populates="listing", passive_deletes="all"
    )
    reviews: Mapped[list["Review"]] = relationship(
        "Review", back_populates="listing", cascade="all, delete-orphan"
    )
