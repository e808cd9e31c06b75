"""Sandbox payment gateway for development.

Outcomes are decided by the payment method reference, mirroring Stripe's
test payment methods, so the booking flow can be exercised end to end
without a processor account. State lives in this process only.
"""

import uuid

from storeaway.gateways.base import (
    GatewayError,
    GatewayPayment,
    GatewayType,
    PaymentGateway,
    RefundResult,
)

DECLINED_METHODS = {
    "pm_card_chargeDeclined": "Your card was declined.",
    "pm_card_chargeDeclinedInsufficientFunds": "Your card has insufficient funds.",
    "pm_card_chargeDeclinedExpiredCard": "Your card has expired.",
}
ACTION_REQUIRED_METHODS = {"pm_card_threeDSecure2Required", "pm_card_authenticationRequired"}


class SandboxGateway(PaymentGateway):
    """In-process gateway with deterministic outcomes."""

    def __init__(self) -> None:
        self._payments: dict[str, GatewayPayment] = {}
        self._by_key: dict[str, str] = {}

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.SANDBOX

    async def confirm_payment(
        self,
        amount: int,
        currency: str,
        payment_method: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> GatewayPayment:
        """Create a sandbox payment (repeat keys return the first result)."""
        if idempotency_key in self._by_key:
            return self._payments[self._by_key[idempotency_key]]

        reference_id = f"pi_sandbox_{uuid.uuid4().hex[:16]}"
        payment = GatewayPayment(
            reference_id=reference_id,
            status="succeeded",
            amount=amount,
            currency=currency,
            metadata={"idempotency_key": idempotency_key, **(metadata or {})},
        )
        if payment_method in DECLINED_METHODS:
            payment.status = "requires_payment_method"
            payment.failure_message = DECLINED_METHODS[payment_method]
        elif payment_method in ACTION_REQUIRED_METHODS:
            payment.status = "requires_action"
            payment.client_secret = f"{reference_id}_secret"

        self._payments[reference_id] = payment
        self._by_key[idempotency_key] = reference_id
        return payment

    def complete_action(self, reference_id: str) -> None:
        """Simulate the customer passing an out-of-band challenge."""
        payment = self._payments[reference_id]
        if payment.status == "requires_action":
            payment.status = "succeeded"
            payment.client_secret = None

    async def retrieve_payment(self, reference_id: str) -> GatewayPayment:
        payment = self._payments.get(reference_id)
        if payment is None:
            raise GatewayError(f"No such payment: {reference_id}")
        return payment

    async def find_payment(self, idempotency_key: str) -> GatewayPayment | None:
        reference_id = self._by_key.get(idempotency_key)
        return self._payments.get(reference_id) if reference_id else None

    async def process_refund(
        self,
        reference_id: str,
        amount: int,
        reason: str,
    ) -> RefundResult:
        payment = self._payments.get(reference_id)
        if payment is None:
            return RefundResult(success=False, error_message=f"No such payment: {reference_id}")
        if payment.status != "succeeded":
            return RefundResult(success=False, error_message=f"Payment {reference_id} was not captured")
        if payment.amount_refunded + amount > (payment.amount or 0):
            return RefundResult(success=False, error_message="Refund exceeds captured amount")
        payment.amount_refunded += amount
        return RefundResult(
            success=True,
            refund_id=f"re_{reference_id}",
            raw_response={"amount": amount, "reason": reason},
        )
