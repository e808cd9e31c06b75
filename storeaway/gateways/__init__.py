"""Payment gateway adapters."""

from storeaway.gateways.base import GatewayError, GatewayPayment, GatewayType, PaymentGateway, RefundResult

__all__ = [
    "GatewayError",
    "GatewayPayment",
    "GatewayType",
    "PaymentGateway",
    "RefundResult",
]
