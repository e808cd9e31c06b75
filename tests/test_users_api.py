from datetime import timedelta

import pytest

from storeaway.core.exceptions import AuthenticationError
from storeaway.core.security import (
    create_access_token,
    identity_from_claims,
    normalize_role,
    verify_token,
)

from tests.conftest import HOST_ID, auth_headers


@pytest.mark.parametrize(
    "raw, expected",
    [("buyer", "client"), ("seller", "host"), ("HOST", "host"), ("client", "client"), (None, "client"), ("admin", "client")],
)
def test_normalize_role(raw, expected):
    assert normalize_role(raw) == expected


def test_token_round_trip():
    token = create_access_token("user-9", "nine@example.com", "Nine", role="seller")

    identity = identity_from_claims(verify_token(token))

    assert identity.user_id == "user-9"
    assert identity.email == "nine@example.com"
    assert identity.display_name == "Nine"
    assert identity.is_host


def test_expired_token_is_rejected():
    token = create_access_token("user-9", "nine@example.com", "Nine", expires_delta=timedelta(minutes=-5))

    with pytest.raises(AuthenticationError):
        verify_token(token)


def test_claims_without_subject_are_rejected():
    with pytest.raises(AuthenticationError):
        identity_from_claims({"email": "nobody@example.com"})


async def test_first_request_creates_profile(client):
    headers = auth_headers("new-user", role="seller", name="Pat Host")

    response = await client.get("/api/v1/users/me", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "new-user"
    assert body["role"] == "host"
    assert body["display_name"] == "Pat Host"


async def test_invalid_token(client):
    response = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["code"] == "authentication_failed"


async def test_update_profile(client):
    headers = auth_headers("client-9", name="Before")

    response = await client.patch("/api/v1/users/me", json={"bio": "Storing a piano."}, headers=headers)

    assert response.status_code == 200
    assert response.json()["bio"] == "Storing a piano."
    assert (await client.get("/api/v1/users/me", headers=headers)).json()["bio"] == "Storing a piano."


async def test_role_cannot_be_edited(client):
    response = await client.patch(
        "/api/v1/users/me", json={"role": "host"}, headers=auth_headers("client-9")
    )

    assert response.status_code == 422


async def test_public_profile_lists_host_listings(client, make_listing):
    await make_listing(name="Collector's Vault")

    response = await client.get(f"/api/v1/users/{HOST_ID}")

    assert response.status_code == 200
    body = response.json()
    assert body["display_name"] == "Jane Smith"
    assert "email" not in body
    assert [listing["name"] for listing in body["listings"]] == ["Collector's Vault"]


async def test_unknown_public_profile(client, users):
    response = await client.get("/api/v1/users/nobody")

    assert response.status_code == 404
