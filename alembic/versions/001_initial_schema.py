"""Initial database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates the StoreAway tables:
- Profiles (mirror of identity-provider users)
- Listings
- Bookings and booking day claims
- Reviews
"""

from typing import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all database tables."""

    # ==================== PROFILES ====================
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(255), index=True),
        sa.Column("display_name", sa.String(120)),
        sa.Column("role", sa.String(10), nullable=False, server_default="client"),
        sa.Column("bio", sa.Text),
        sa.Column("avatar_url", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== LISTINGS ====================
    op.create_table(
        "listings",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("host_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("location", sa.String(255), nullable=False, index=True),
        sa.Column("size", sa.Integer, nullable=False),
        sa.Column("monthly_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.Text, server_default=""),
        sa.Column("images", sa.JSON),
        sa.Column("features", sa.JSON),
        sa.Column("is_available", sa.Boolean, server_default=sa.true(), index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("size > 0", name="ck_listings_size_positive"),
        sa.CheckConstraint("monthly_price > 0", name="ck_listings_monthly_price_positive"),
    )

    # ==================== BOOKINGS ====================
    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("booking_number", sa.String(20), unique=True, nullable=False, index=True),
        sa.Column("listing_id", sa.Uuid, sa.ForeignKey("listings.id", ondelete="RESTRICT"), nullable=False, index=True),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("profiles.id"), nullable=False, index=True),
        sa.Column("start_date", sa.Date, nullable=False, index=True),
        sa.Column("end_date", sa.Date, nullable=False, index=True),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), server_default="usd"),
        sa.Column("payment_reference", sa.String(255), unique=True),
        sa.Column("payment_status", sa.String(20)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("end_date > start_date", name="ck_bookings_end_after_start"),
    )

    # One row per booked day; the unique pair rejects overlapping bookings
    op.create_table(
        "booking_day_claims",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("listing_id", sa.Uuid, sa.ForeignKey("listings.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("booking_id", sa.Uuid, sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("day", sa.Date, nullable=False),
        sa.UniqueConstraint("listing_id", "day", name="uq_booking_day_claims_listing_day"),
    )

    # ==================== REVIEWS ====================
    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("listing_id", sa.Uuid, sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("comment", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("listing_id", "user_id", name="uq_reviews_listing_user"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )


def downgrade() -> None:
    """Drop all database tables in reverse order."""
    op.drop_table("reviews")
    op.drop_table("booking_day_claims")
    op.drop_table("bookings")
    op.drop_table("listings")
    op.drop_table("profiles")
