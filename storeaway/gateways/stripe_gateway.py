"""Stripe payment gateway adapter."""

import asyncio
import logging

import stripe

from storeaway.config import settings
from storeaway.gateways.base import (
    GatewayError,
    GatewayPayment,
    GatewayType,
    PaymentGateway,
    RefundResult,
)

logger = logging.getLogger(__name__)


def _to_gateway_payment(intent) -> GatewayPayment:
    last_error = intent.get("last_payment_error") or {}
    # Refunds live on the charge; only an expanded charge carries them
    charge = intent.get("latest_charge")
    amount_refunded = 0 if not charge or isinstance(charge, str) else charge.get("amount_refunded", 0)
    return GatewayPayment(
        reference_id=intent["id"],
        status=intent["status"],
        amount=intent.get("amount"),
        currency=intent.get("currency"),
        client_secret=intent.get("client_secret"),
        failure_message=last_error.get("message"),
        metadata=dict(intent.get("metadata") or {}),
        amount_refunded=amount_refunded or 0,
        raw_response={"id": intent["id"], "status": intent["status"]},
    )


class StripeGateway(PaymentGateway):
    """Stripe PaymentIntent implementation.

    The Stripe SDK is synchronous; calls run in a worker thread so the
    coordinator's timeout can interrupt the wait.
    """

    def __init__(self, secret_key: str | None = None):
        self.secret_key = secret_key or settings.stripe_secret_key

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.STRIPE

    def _configure(self) -> None:
        if not self.secret_key:
            raise GatewayError("Stripe not configured")
        stripe.api_key = self.secret_key

    async def confirm_payment(
        self,
        amount: int,
        currency: str,
        payment_method: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> GatewayPayment:
        """Create and confirm a PaymentIntent in one call."""
        self._configure()
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=amount,
                currency=currency.lower(),
                payment_method=payment_method,
                confirm=True,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
                metadata={"idempotency_key": idempotency_key, **(metadata or {})},
                expand=["latest_charge"],
                idempotency_key=idempotency_key,
            )
        except stripe.CardError as e:
            # Declines still create an intent; keep its id for support
            intent_data = getattr(e.error, "payment_intent", None) or {}
            return GatewayPayment(
                reference_id=intent_data.get("id"),
                status="requires_payment_method",
                amount=amount,
                currency=currency,
                failure_message=e.user_message or "Your card was declined.",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe confirm failed: {e}")
            raise GatewayError(str(e)) from e

        return _to_gateway_payment(intent)

    async def retrieve_payment(self, reference_id: str) -> GatewayPayment:
        """Read a PaymentIntent."""
        self._configure()
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.retrieve, reference_id, expand=["latest_charge"]
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe retrieve failed for {reference_id}: {e}")
            raise GatewayError(str(e)) from e
        return _to_gateway_payment(intent)

    async def find_payment(self, idempotency_key: str) -> GatewayPayment | None:
        """Search PaymentIntents by the idempotency key stored in metadata."""
        self._configure()
        try:
            result = await asyncio.to_thread(
                stripe.PaymentIntent.search,
                query=f"metadata['idempotency_key']:'{idempotency_key}'",
                limit=1,
                expand=["data.latest_charge"],
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe search failed: {e}")
            raise GatewayError(str(e)) from e

        if not result.data:
            return None
        return _to_gateway_payment(result.data[0])

    async def process_refund(
        self,
        reference_id: str,
        amount: int,
        reason: str,
    ) -> RefundResult:
        """Process Stripe refund."""
        self._configure()
        try:
            refund = await asyncio.to_thread(
                stripe.Refund.create,
                payment_intent=reference_id,
                amount=amount,
                reason="requested_by_customer",
                metadata={"reason": reason[:500]},
                idempotency_key=f"refund-{reference_id}",
            )
        except stripe.StripeError as e:
            return RefundResult(success=False, error_message=str(e))

        return RefundResult(
            success=refund.status in ("succeeded", "pending"),
            refund_id=refund.id,
            raw_response={"status": refund.status, "id": refund.id},
        )
