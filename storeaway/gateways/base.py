"""Base payment gateway interface.

All gateway adapters must implement this interface.
Business logic should NOT live in adapters - only gateway communication.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class GatewayType(str, Enum):
    """Supported payment gateways."""

    STRIPE = "stripe"
    SANDBOX = "sandbox"


class GatewayError(Exception):
    """Transport or configuration failure talking to a gateway.

    Card declines are not errors; they come back as a ``GatewayPayment``
    with a ``failed`` status.
    """


@dataclass
class GatewayPayment:
    """A payment as reported by the processor."""

    reference_id: str | None
    status: str  # raw processor status, e.g. "succeeded", "requires_action"
    amount: int | None = None
    currency: str | None = None
    client_secret: str | None = None
    failure_message: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    amount_refunded: int = 0
    raw_response: dict | None = None


@dataclass
class RefundResult:
    """Result of a refund operation."""

    success: bool
    refund_id: str | None = None
    error_message: str | None = None
    raw_response: dict | None = None


class PaymentGateway(ABC):
    """Abstract base class for payment gateways."""

    @property
    @abstractmethod
    def gateway_type(self) -> GatewayType:
        """Return the gateway type."""
        pass

    @abstractmethod
    async def confirm_payment(
        self,
        amount: int,
        currency: str,
        payment_method: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> GatewayPayment:
        """Create and confirm a payment against a tokenized instrument.

        Args:
            amount: Amount in smallest currency unit (cents)
            currency: ISO currency code
            payment_method: Client-tokenized payment method reference
            idempotency_key: Key that makes repeated calls return the
                original payment instead of charging twice
            metadata: String key/values stored with the payment and
                returned by ``retrieve_payment``

        Returns:
            GatewayPayment with the processor's status
        """
        pass

    @abstractmethod
    async def retrieve_payment(self, reference_id: str) -> GatewayPayment:
        """Read the current state of a payment."""
        pass

    @abstractmethod
    async def find_payment(self, idempotency_key: str) -> GatewayPayment | None:
        """Look up a payment created with ``idempotency_key``, if any."""
        pass

    @abstractmethod
    async def process_refund(
        self,
        reference_id: str,
        amount: int,
        reason: str,
    ) -> RefundResult:
        """Refund a captured payment.

        Args:
            reference_id: Original payment reference
            amount: Refund amount in smallest currency unit
            reason: Refund reason
        """
        pass
