"""Booking overlap checks and listing availability maintenance."""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storeaway.core.exceptions import PersistenceError
from storeaway.models.booking import Booking
from storeaway.models.listing import Listing

logger = logging.getLogger(__name__)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive overlap test: ranges sharing a boundary day overlap."""
    return a_start <= b_end and a_end >= b_start


class AvailabilityChecker:
    """Point-in-time conflict checks against stored bookings.

    No lock is taken; the persistence step re-checks inside its own
    transaction and the day-claim constraint rejects racing writers.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def conflicting_bookings(
        self,
        listing_id: UUID,
        start_date: date,
        end_date: date,
    ) -> list[Booking]:
        """Bookings of ``listing_id`` overlapping the proposed range.

        Database errors propagate unchanged.
        """
        result = await self.db.execute(
            select(Booking).where(
                Booking.listing_id == listing_id,
                Booking.start_date <= end_date,
                Booking.end_date >= start_date,
            )
        )
        return list(result.scalars().all())

    async def has_conflict(self, listing_id: UUID, start_date: date, end_date: date) -> bool:
        """Whether any stored booking overlaps the proposed range.

        Raises:
            PersistenceError: If the bookings could not be read. An unknown
                answer is never reported as "no conflict".
        """
        try:
            conflicts = await self.conflicting_bookings(listing_id, start_date, end_date)
        except SQLAlchemyError as e:
            logger.error(f"Availability check failed for listing {listing_id}: {e}")
            raise PersistenceError() from e
        return len(conflicts) > 0


async def sync_all_listings(db: AsyncSession, today: date) -> int:
    """Re-derive every listing's availability flag.

    Returns:
        Number of listings whose flag changed.
    """
    busy = select(Booking.listing_id).where(Booking.end_date >= today)

    freed = await db.execute(
        update(Listing)
        .where(Listing.is_available.is_(False), Listing.id.not_in(busy))
        .values(is_available=True)
        .execution_options(synchronize_session=False)
    )
    taken = await db.execute(
        update(Listing)
        .where(Listing.is_available.is_(True), Listing.id.in_(busy))
        .values(is_available=False)
        .execution_options(synchronize_session=False)
    )
    changed = (freed.rowcount or 0) + (taken.rowcount or 0)
    logger.info(
        f"Availability sync for {today.isoformat()}: "
        f"{freed.rowcount or 0} freed, {taken.rowcount or 0} marked booked"
    )
    return changed
