"""Booking-related database models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from storeaway.database import Base

if TYPE_CHECKING:
    from storeaway.models.listing import Listing
    from storeaway.models.user import Profile


class Booking(Base):
    """A confirmed reservation of a listing for a date range."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_bookings_end_after_start"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )  # SA-XXXXXX
    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("listings.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("profiles.id"), nullable=False, index=True
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="usd")

    payment_reference: Mapped[str | None] = mapped_column(String(255), unique=True)
    payment_status: Mapped[str | None] = mapped_column(
        String(20)
    )  # pending, succeeded, failed

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    listing: Mapped["Listing"] = relationship("Listing", back_populates="bookings")
    user: Mapped["Profile"] = relationship("Profile", back_populates="bookings")
    day_claims: Mapped[list["BookingDayClaim"]] = relationship(
        "BookingDayClaim", back_populates="booking", cascade="all, delete-orphan"
    )

    @property
    def days(self) -> int:
        """Length of the booking in days."""
        return (self.end_date - self.start_date).days


class BookingDayClaim(Base):
    """One calendar day of a listing held by a booking.

    A booking claims every day of its closed range [start_date, end_date].
    Two closed ranges overlap exactly when they share a day, so the unique
    (listing_id, day) constraint lets the database reject the second of two
    overlapping bookings.
    """

    __tablename__ = "booking_day_claims"
    __table_args__ = (
        UniqueConstraint("listing_id", "day", name="uq_booking_day_claims_listing_day"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("listings.id", ondelete="RESTRICT"), nullable=False
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)

    booking: Mapped["Booking"] = relationship("Booking", back_populates="day_claims")
