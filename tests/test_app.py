import pytest

from storeaway.config import settings
from storeaway.gateways.base import GatewayType
from storeaway.gateways.sandbox import SandboxGateway
from storeaway.services.gateway_service import get_payment_gateway


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Request-ID" in response.headers


async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_sandbox_gateway_outside_production():
    assert isinstance(get_payment_gateway("sandbox"), SandboxGateway)


def test_sandbox_gateway_refused_in_production(monkeypatch):
    monkeypatch.setattr(settings, "environment", "production")

    with pytest.raises(RuntimeError):
        get_payment_gateway(GatewayType.SANDBOX)


def test_live_stripe_key_refused_outside_production(monkeypatch):
    monkeypatch.setattr(settings, "stripe_secret_key", "sk_live_abc")

    with pytest.raises(RuntimeError):
        get_payment_gateway(GatewayType.STRIPE)
