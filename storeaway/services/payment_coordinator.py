"""Authorize-and-capture coordination with the payment processor.

Card data never reaches this service: the client tokenizes the card and
sends only a payment method reference. Every processor call is bounded by a
timeout. A timed-out capture is never retried blindly; the processor is
first asked whether the earlier attempt landed.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from storeaway.config import settings
from storeaway.core.exceptions import PaymentError, PaymentTimeoutError, ValidationError
from storeaway.domain.payment_state import PaymentStatus, map_processor_status
from storeaway.gateways.base import GatewayError, GatewayPayment, PaymentGateway

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Your payment could not be processed. Please try another payment method."


@dataclass(frozen=True)
class PaymentOutcome:
    """Result of authorize-and-capture as the booking workflow sees it."""

    reference_id: str | None
    status: PaymentStatus
    amount_minor: int | None = None
    failure_reason: str | None = None
    resume_token: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    amount_refunded: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentStatus.SUCCEEDED

    @property
    def refunded(self) -> bool:
        return self.amount_refunded > 0


def _outcome(payment: GatewayPayment) -> PaymentOutcome:
    status = map_processor_status(payment.status)
    return PaymentOutcome(
        reference_id=payment.reference_id,
        status=status,
        amount_minor=payment.amount,
        failure_reason=(payment.failure_message or GENERIC_FAILURE)
        if status == PaymentStatus.FAILED
        else None,
        resume_token=payment.client_secret if status == PaymentStatus.REQUIRES_ACTION else None,
        metadata=dict(payment.metadata or {}),
        amount_refunded=payment.amount_refunded or 0,
    )


class PaymentCoordinator:
    """Drives a ``PaymentGateway`` for the booking workflow."""

    def __init__(self, gateway: PaymentGateway, timeout: float | None = None):
        self.gateway = gateway
        self.timeout = timeout if timeout is not None else settings.payment_timeout_seconds

    async def authorize_and_capture(
        self,
        amount_minor: int,
        currency: str,
        payment_instrument_ref: str,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
    ) -> PaymentOutcome:
        """Charge ``amount_minor`` against a tokenized instrument.

        ``metadata`` is stored with the payment, so a later ``retrieve`` can
        tell which booking it was taken for.

        Raises:
            ValidationError: If the amount is not a positive integer.
            PaymentTimeoutError: If the outcome cannot be determined.
            PaymentError: If the processor cannot be reached.
        """
        if not isinstance(amount_minor, int) or amount_minor <= 0:
            raise ValidationError("Payment amount must be a positive number of cents")
        if not payment_instrument_ref:
            raise ValidationError("A payment method is required")

        try:
            payment = await self._confirm(
                amount_minor, currency, payment_instrument_ref, idempotency_key, metadata
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Payment confirmation timed out after {self.timeout}s "
                f"(key {idempotency_key[:12]}); checking for a prior attempt"
            )
            payment = await self._recover_after_timeout(
                amount_minor, currency, payment_instrument_ref, idempotency_key, metadata
            )
        except GatewayError as e:
            logger.error(f"Payment gateway error: {e}")
            raise PaymentError(GENERIC_FAILURE) from e

        outcome = _outcome(payment)
        logger.info(
            f"Payment {outcome.reference_id} for {amount_minor} {currency}: {outcome.status.value}"
        )
        return outcome

    async def retrieve(self, reference_id: str) -> PaymentOutcome:
        """Re-read a payment's current status."""
        try:
            payment = await asyncio.wait_for(
                self.gateway.retrieve_payment(reference_id), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise PaymentTimeoutError() from e
        except GatewayError as e:
            logger.error(f"Could not retrieve payment {reference_id}: {e}")
            raise PaymentError("We could not find that payment.") from e
        return _outcome(payment)

    async def refund(self, reference_id: str, amount_minor: int, reason: str) -> bool:
        """Refund a captured payment; returns whether the refund was accepted."""
        try:
            result = await asyncio.wait_for(
                self.gateway.process_refund(reference_id, amount_minor, reason),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, GatewayError) as e:
            logger.error(f"Refund of {reference_id} failed: {e!r}")
            return False

        if not result.success:
            logger.error(f"Refund of {reference_id} rejected: {result.error_message}")
        return result.success

    async def _confirm(
        self,
        amount_minor: int,
        currency: str,
        payment_instrument_ref: str,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
    ) -> GatewayPayment:
        return await asyncio.wait_for(
            self.gateway.confirm_payment(
                amount=amount_minor,
                currency=currency,
                payment_method=payment_instrument_ref,
                idempotency_key=idempotency_key,
                metadata=metadata,
            ),
            timeout=self.timeout,
        )

    async def _recover_after_timeout(
        self,
        amount_minor: int,
        currency: str,
        payment_instrument_ref: str,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
    ) -> GatewayPayment:
        try:
            prior = await asyncio.wait_for(
                self.gateway.find_payment(idempotency_key), timeout=self.timeout
            )
        except (asyncio.TimeoutError, GatewayError) as e:
            logger.error(f"Could not determine outcome of timed-out payment: {e!r}")
            raise PaymentTimeoutError() from e

        if prior is not None:
            logger.info(f"Found prior payment {prior.reference_id} ({prior.status}) after timeout")
            return prior

        # No trace of the first attempt; the same key cannot double-charge
        try:
            return await self._confirm(
                amount_minor, currency, payment_instrument_ref, idempotency_key, metadata
            )
        except (asyncio.TimeoutError, GatewayError) as e:
            logger.error(f"Payment retry after timeout failed: {e!r}")
            raise PaymentTimeoutError() from e
