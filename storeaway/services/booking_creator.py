"""Transactional booking creation.

A booking attempt validates the request, checks the dates, takes payment and
only then writes anything. The write re-checks the dates inside its own
transaction; the (listing_id, day) unique constraint on day claims rejects
the loser of any race the re-check cannot see. A payment that was captured
but could not be turned into a booking is refunded, or reported with its
reference so persistence can be resumed without charging again.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storeaway.config import settings
from storeaway.core.exceptions import (
    AppException,
    ConflictError,
    NotFoundError,
    PaymentError,
    PersistenceAfterPaymentError,
    PersistenceError,
    ValidationError,
)
from storeaway.core.idempotency import generate_idempotency_key
from storeaway.domain.booking_state import AttemptState, TERMINAL_STATES, assert_attempt_transition
from storeaway.domain.payment_state import BookingPaymentStatus, PaymentStatus
from storeaway.models.booking import Booking, BookingDayClaim
from storeaway.models.listing import Listing
from storeaway.services.availability import AvailabilityChecker
from storeaway.services.change_feed import ChangeFeed
from storeaway.services.payment_coordinator import PaymentCoordinator, PaymentOutcome
from storeaway.services.pricing import Quote, build_quote
from storeaway.utils.booking_number import generate_booking_number

logger = logging.getLogger(__name__)

PAYMENT_MISMATCH = "This payment does not match the booking you requested."


@dataclass(frozen=True)
class BookingRequiresAction:
    """Payment needs an out-of-band customer step before the booking exists.

    Resume by calling ``BookingCreator.create`` again with the same dates and
    ``payment_reference``.
    """

    payment_reference: str
    resume_token: str | None
    quote: Quote


class BookingAttempt:
    """Tracks one attempt through the booking state machine."""

    def __init__(self, listing_id: UUID, user_id: str):
        self.listing_id = listing_id
        self.user_id = user_id
        self.state = AttemptState.VALIDATING

    def advance(self, target: AttemptState) -> None:
        assert_attempt_transition(self.state, target)
        logger.debug(
            f"Booking attempt {self.user_id}/{self.listing_id}: "
            f"{self.state.value} -> {target.value}"
        )
        self.state = target


def claimed_days(start_date: date, end_date: date) -> list[date]:
    """Every calendar day of the closed range ``[start_date, end_date]``."""
    return [start_date + timedelta(days=i) for i in range((end_date - start_date).days + 1)]


def payment_metadata(attempt: BookingAttempt, quote: Quote) -> dict[str, str]:
    """What a payment is for, stored with it at the processor."""
    return {
        "listing_id": str(attempt.listing_id),
        "user_id": attempt.user_id,
        "start_date": quote.start_date.isoformat(),
        "end_date": quote.end_date.isoformat(),
        "monthly_rate": str(quote.monthly_rate),
        "amount_minor": str(quote.amount_minor),
    }


def taken_for(
    outcome: PaymentOutcome,
    attempt: BookingAttempt,
    start_date: date,
    end_date: date,
) -> bool:
    """Whether ``outcome`` was charged for exactly this user, listing and dates."""
    recorded = outcome.metadata
    return (
        recorded.get("listing_id") == str(attempt.listing_id)
        and recorded.get("user_id") == attempt.user_id
        and recorded.get("start_date") == start_date.isoformat()
        and recorded.get("end_date") == end_date.isoformat()
        and "monthly_rate" in recorded
    )


class BookingCreator:
    """Creates bookings; see module docstring for the guarantees."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        payments: PaymentCoordinator,
        change_feed: ChangeFeed | None = None,
        currency: str | None = None,
    ):
        self.session_factory = session_factory
        self.payments = payments
        self.change_feed = change_feed
        self.currency = currency or settings.default_currency

    async def quote(self, listing_id: UUID, start_date: date, end_date: date) -> Quote:
        """Price a date range without booking it."""
        async with self.session_factory() as db:
            listing = await self._get_listing(db, listing_id)
        quote = build_quote(listing.monthly_price, start_date, end_date, self.currency)
        if not quote.is_valid:
            raise ValidationError("invalid date range")
        return quote

    async def create(
        self,
        listing_id: UUID,
        user_id: str,
        start_date: date,
        end_date: date,
        payment_instrument_ref: str | None = None,
        *,
        payment_reference: str | None = None,
    ) -> Booking | BookingRequiresAction:
        """Book ``listing_id`` for ``user_id`` over ``[start_date, end_date]``.

        Passing ``payment_reference`` resumes an earlier attempt whose payment
        already exists: nothing is charged again.

        Raises:
            NotFoundError: Listing does not exist.
            ValidationError: Bad dates, or the user owns the listing.
            ConflictError: Dates overlap an existing booking.
            PaymentError: Payment declined, failed or of unknown outcome.
            PersistenceError: Data-layer failure before any payment.
            PersistenceAfterPaymentError: Paid but not recorded.
        """
        attempt = BookingAttempt(listing_id, user_id)
        logger.info(
            f"Booking attempt by {user_id} for listing {listing_id} "
            f"{start_date.isoformat()}..{end_date.isoformat()}"
            + (f" (resuming {payment_reference})" if payment_reference else "")
        )

        try:
            if payment_reference:
                return await self._resume(attempt, start_date, end_date, payment_reference)
            return await self._create(attempt, start_date, end_date, payment_instrument_ref)
        except AppException as e:
            failed_at = attempt.state
            if attempt.state not in TERMINAL_STATES:
                attempt.advance(AttemptState.FAILED)
            if isinstance(e, PaymentError):
                e.extra.setdefault("start_date", start_date.isoformat())
                e.extra.setdefault("end_date", end_date.isoformat())
            logger.info(
                f"Booking attempt by {user_id} for listing {listing_id} failed "
                f"while {failed_at.value}: {e.code}"
            )
            raise

    async def _create(
        self,
        attempt: BookingAttempt,
        start_date: date,
        end_date: date,
        payment_instrument_ref: str | None,
    ) -> Booking | BookingRequiresAction:
        if not payment_instrument_ref:
            raise ValidationError("A payment method is required")

        async with self.session_factory() as db:
            listing, quote = await self._validate(db, attempt, start_date, end_date)

            attempt.advance(AttemptState.CHECKING_AVAILABILITY)
            if await AvailabilityChecker(db).has_conflict(listing.id, start_date, end_date):
                raise ConflictError()

        attempt.advance(AttemptState.AUTHORIZING_PAYMENT)
        idempotency_key = generate_idempotency_key(
            "booking_payment",
            listing.id,
            params={
                "user_id": attempt.user_id,
                "start_date": start_date,
                "end_date": end_date,
                "amount": quote.amount_minor,
                "instrument": payment_instrument_ref,
            },
        )
        outcome = await self.payments.authorize_and_capture(
            quote.amount_minor,
            quote.currency,
            payment_instrument_ref,
            idempotency_key,
            metadata=payment_metadata(attempt, quote),
        )
        return await self._after_payment(attempt, quote, outcome)

    async def _resume(
        self,
        attempt: BookingAttempt,
        start_date: date,
        end_date: date,
        payment_reference: str,
    ) -> Booking | BookingRequiresAction:
        async with self.session_factory() as db:
            await self._validate(db, attempt, start_date, end_date)

        attempt.advance(AttemptState.AUTHORIZING_PAYMENT)
        outcome = await self.payments.retrieve(payment_reference)
        if not taken_for(outcome, attempt, start_date, end_date):
            logger.warning(
                f"Payment {payment_reference} was not taken for {attempt.user_id} on listing "
                f"{attempt.listing_id} {start_date.isoformat()}..{end_date.isoformat()}"
            )
            raise PaymentError(PAYMENT_MISMATCH)
        if outcome.refunded:
            logger.warning(f"Refused to resume with refunded payment {payment_reference}")
            raise PaymentError("This payment has been refunded. Please book again.")

        # Priced at the rate the customer agreed to, even if the host changed it since
        quote = build_quote(
            Decimal(outcome.metadata["monthly_rate"]), start_date, end_date, self.currency
        )

        if outcome.succeeded:
            existing = await self._booking_for_payment(payment_reference)
            if existing is not None:
                attempt.advance(AttemptState.COMPLETED)
                logger.info(f"Payment {payment_reference} already recorded as {existing.booking_number}")
                return existing

            if outcome.amount_minor != quote.amount_minor:
                logger.error(
                    f"Payment {payment_reference} of {outcome.amount_minor} does not match "
                    f"quote of {quote.amount_minor} for listing {attempt.listing_id}"
                )
                await self._refund(
                    attempt, payment_reference, outcome.amount_minor, "amount did not match booking"
                )
                raise PaymentError("This payment did not match your booking and has been refunded.")

        return await self._after_payment(attempt, quote, outcome)

    async def _validate(
        self,
        db: AsyncSession,
        attempt: BookingAttempt,
        start_date: date,
        end_date: date,
    ) -> tuple[Listing, Quote]:
        listing = await self._get_listing(db, attempt.listing_id)
        if listing.host_id == attempt.user_id:
            raise ValidationError("You cannot book your own listing")

        quote = build_quote(listing.monthly_price, start_date, end_date, self.currency)
        if not quote.is_valid:
            raise ValidationError("invalid date range")
        return listing, quote

    async def _get_listing(self, db: AsyncSession, listing_id: UUID) -> Listing:
        try:
            result = await db.execute(select(Listing).where(Listing.id == listing_id))
        except SQLAlchemyError as e:
            logger.error(f"Could not load listing {listing_id}: {e}")
            raise PersistenceError() from e
        listing = result.scalar_one_or_none()
        if listing is None:
            raise NotFoundError("Listing", str(listing_id))
        return listing

    async def _after_payment(
        self,
        attempt: BookingAttempt,
        quote: Quote,
        outcome: PaymentOutcome,
    ) -> Booking | BookingRequiresAction:
        if outcome.status == PaymentStatus.FAILED:
            logger.warning(
                f"Payment declined for listing {attempt.listing_id}: {outcome.failure_reason}"
            )
            raise PaymentError(outcome.failure_reason or "Payment processing failed")

        if outcome.status == PaymentStatus.REQUIRES_ACTION:
            attempt.advance(AttemptState.REQUIRES_ACTION)
            logger.info(f"Payment {outcome.reference_id} requires customer action")
            return BookingRequiresAction(
                payment_reference=outcome.reference_id,
                resume_token=outcome.resume_token,
                quote=quote,
            )

        attempt.advance(AttemptState.PERSISTING)
        booking = await self._persist(attempt, quote, outcome.reference_id)
        attempt.advance(AttemptState.COMPLETED)

        logger.info(
            f"Booking {booking.booking_number} confirmed for listing {booking.listing_id} "
            f"({quote.total} {quote.currency})"
        )
        await self._announce(booking)
        return booking

    async def _persist(self, attempt: BookingAttempt, quote: Quote, payment_reference: str) -> Booking:
        """Write the booking for a captured payment.

        Never returns without either a committed booking or an exception that
        says what happened to the money.
        """
        try:
            async with self.session_factory() as db:
                booking = await self._write_booking(db, attempt, quote, payment_reference)
        except IntegrityError as e:
            existing = await self._booking_for_payment(payment_reference)
            if existing is not None:
                return existing
            if not await self._dates_taken(attempt, quote, payment_reference):
                logger.critical(
                    f"Booking insert rejected for captured payment {payment_reference}: {e}"
                )
                raise PersistenceAfterPaymentError(payment_reference) from e
            booking = None
        except SQLAlchemyError as e:
            logger.critical(
                f"Could not record booking for captured payment {payment_reference} "
                f"(listing {attempt.listing_id}): {e}"
            )
            raise PersistenceAfterPaymentError(payment_reference) from e

        if booking is None:
            logger.warning(
                f"Dates for listing {attempt.listing_id} were taken after payment "
                f"{payment_reference} was captured"
            )
            await self._refund(
                attempt, payment_reference, quote.amount_minor, "dates no longer available"
            )
            raise ConflictError()
        return booking

    async def _write_booking(
        self,
        db: AsyncSession,
        attempt: BookingAttempt,
        quote: Quote,
        payment_reference: str,
    ) -> Booking | None:
        # Writing the listing row first serializes writers for the same listing
        await db.execute(
            update(Listing)
            .where(Listing.id == attempt.listing_id)
            .values(is_available=False)
            .execution_options(synchronize_session=False)
        )

        checker = AvailabilityChecker(db)
        if await checker.conflicting_bookings(attempt.listing_id, quote.start_date, quote.end_date):
            await db.rollback()
            return None

        booking = Booking(
            booking_number=await generate_booking_number(db),
            listing_id=attempt.listing_id,
            user_id=attempt.user_id,
            start_date=quote.start_date,
            end_date=quote.end_date,
            total_price=quote.total,
            currency=quote.currency,
            payment_reference=payment_reference,
            payment_status=BookingPaymentStatus.SUCCEEDED.value,
        )
        booking.day_claims = [
            BookingDayClaim(listing_id=attempt.listing_id, day=day)
            for day in claimed_days(quote.start_date, quote.end_date)
        ]
        db.add(booking)
        await db.commit()
        return booking

    async def _booking_for_payment(self, payment_reference: str) -> Booking | None:
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(Booking).where(Booking.payment_reference == payment_reference)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.critical(f"Could not look up booking for payment {payment_reference}: {e}")
            raise PersistenceAfterPaymentError(payment_reference) from e

    async def _dates_taken(
        self,
        attempt: BookingAttempt,
        quote: Quote,
        payment_reference: str,
    ) -> bool:
        try:
            async with self.session_factory() as db:
                return await AvailabilityChecker(db).has_conflict(
                    attempt.listing_id, quote.start_date, quote.end_date
                )
        except PersistenceError as e:
            raise PersistenceAfterPaymentError(payment_reference) from e

    async def _refund(
        self,
        attempt: BookingAttempt,
        payment_reference: str,
        amount_minor: int,
        reason: str,
    ) -> None:
        """Give back a captured payment that cannot become a booking.

        Raises:
            PersistenceAfterPaymentError: If the processor refused the refund.
        """
        logger.warning(f"Refunding payment {payment_reference}: {reason}")
        if not await self.payments.refund(payment_reference, amount_minor, reason):
            logger.critical(
                f"Refund failed for payment {payment_reference} ({reason}) "
                f"on listing {attempt.listing_id}"
            )
            raise PersistenceAfterPaymentError(payment_reference)

    async def _announce(self, booking: Booking) -> None:
        if self.change_feed is None:
            return
        await self.change_feed.publish(
            "bookings", "INSERT", booking.id, listing_id=booking.listing_id
        )
        await self.change_feed.publish(
            "listings", "UPDATE", booking.listing_id, is_available=False
        )
