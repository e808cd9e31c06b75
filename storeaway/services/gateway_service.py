"""Payment gateway selection.

Routes the configured gateway name to an adapter instance.
No business logic here - only gateway coordination.
"""

from storeaway.config import settings
from storeaway.gateways.base import GatewayType, PaymentGateway
from storeaway.gateways.sandbox import SandboxGateway
from storeaway.gateways.stripe_gateway import StripeGateway

_gateways: dict[GatewayType, PaymentGateway] = {}


def _is_production() -> bool:
    """Check if running in production environment."""
    return settings.environment == "production"


def _assert_safe_gateway(gateway_type: GatewayType) -> None:
    """Keep live keys out of non-production and sandbox out of production.

    Raises:
        RuntimeError: If the combination would charge real cards by mistake
            or accept fake payments in production.
    """
    if gateway_type == GatewayType.SANDBOX and _is_production():
        raise RuntimeError("The sandbox payment gateway cannot be used in production")
    if gateway_type == GatewayType.STRIPE and not _is_production():
        if (settings.stripe_secret_key or "").startswith("sk_live_"):
            raise RuntimeError(
                f"Refusing to use a live Stripe key in {settings.environment} environment. "
                "Use a test key (sk_test_...) or set ENVIRONMENT=production."
            )


def get_payment_gateway(gateway_type: str | GatewayType | None = None) -> PaymentGateway:
    """Get or create the gateway adapter for ``gateway_type``."""
    gateway_type = GatewayType(gateway_type or settings.payment_gateway)
    _assert_safe_gateway(gateway_type)

    if gateway_type not in _gateways:
        if gateway_type == GatewayType.STRIPE:
            _gateways[gateway_type] = StripeGateway()
        else:
            _gateways[gateway_type] = SandboxGateway()

    return _gateways[gateway_type]
