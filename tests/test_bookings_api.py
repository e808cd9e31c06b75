from datetime import date

from tests.conftest import CLIENT_ID, HOST_ID, OTHER_CLIENT_ID, auth_headers

CLIENT = auth_headers(CLIENT_ID, role="client", name="Alex Doe")
OTHER_CLIENT = auth_headers(OTHER_CLIENT_ID, role="client", name="Sam")
HOST = auth_headers(HOST_ID, role="host", name="Jane Smith")


def booking_request(listing_id, start="2024-07-01", end="2024-07-31", **extra) -> dict:
    return {"listing_id": str(listing_id), "start_date": start, "end_date": end, **extra}


async def test_quote(client, make_listing):
    listing = await make_listing("300.00")

    response = await client.post("/api/v1/bookings/quote", json=booking_request(listing.id))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == "295.66"
    assert body["amount_minor"] == 29566
    assert body["days"] == 30


async def test_quote_invalid_range(client, make_listing):
    listing = await make_listing()

    response = await client.post(
        "/api/v1/bookings/quote", json=booking_request(listing.id, start="2024-07-31", end="2024-07-01")
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "invalid date range"


async def test_create_booking(client, make_listing, gateway):
    listing = await make_listing("300.00")

    response = await client.post(
        "/api/v1/bookings/",
        json=booking_request(listing.id, payment_method_id="pm_card_visa"),
        headers=CLIENT,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["total_price"] == "295.66"
    assert body["user_id"] == CLIENT_ID
    assert body["booking_number"].startswith("SA-")
    assert gateway.confirm_calls[0]["amount"] == 29566

    listing_response = await client.get(f"/api/v1/listings/{listing.id}")
    assert listing_response.json()["is_available"] is False


async def test_create_booking_conflict(client, make_listing, make_booking):
    listing = await make_listing()
    await make_booking(listing, date(2024, 8, 1), date(2024, 9, 1))

    response = await client.post(
        "/api/v1/bookings/",
        json=booking_request(listing.id, "2024-08-15", "2024-08-20", payment_method_id="pm_card_visa"),
        headers=CLIENT,
    )

    assert response.status_code == 409
    assert response.json() == {"detail": "dates unavailable", "code": "dates_unavailable"}


async def test_declined_payment_echoes_dates(client, make_listing):
    listing = await make_listing("450.00")

    response = await client.post(
        "/api/v1/bookings/",
        json=booking_request(listing.id, "2024-08-01", "2024-09-01", payment_method_id="pm_card_chargeDeclined"),
        headers=CLIENT,
    )

    assert response.status_code == 402
    body = response.json()
    assert body["code"] == "payment_failed"
    assert body["start_date"] == "2024-08-01"
    assert body["end_date"] == "2024-09-01"


async def test_action_required_then_resume(client, make_listing, gateway):
    listing = await make_listing()

    pending = await client.post(
        "/api/v1/bookings/",
        json=booking_request(listing.id, payment_method_id="pm_card_threeDSecure2Required"),
        headers=CLIENT,
    )
    assert pending.status_code == 202
    body = pending.json()
    assert body["status"] == "requires_action"
    assert body["resume_token"]
    assert body["quote"]["amount_minor"] == gateway.confirm_calls[0]["amount"]

    gateway.complete_action(body["payment_reference"])

    resumed = await client.post(
        "/api/v1/bookings/resume",
        json=booking_request(listing.id, payment_reference=body["payment_reference"]),
        headers=CLIENT,
    )
    assert resumed.status_code == 201
    assert resumed.json()["payment_reference"] == body["payment_reference"]
    assert len(gateway.confirm_calls) == 1


async def test_my_bookings_and_visibility(client, make_listing):
    listing = await make_listing()
    created = await client.post(
        "/api/v1/bookings/",
        json=booking_request(listing.id, payment_method_id="pm_card_visa"),
        headers=CLIENT,
    )
    booking_id = created.json()["id"]

    mine = await client.get("/api/v1/bookings/", headers=CLIENT)
    assert mine.json()["total"] == 1

    hosted = await client.get("/api/v1/bookings/", params={"role": "host"}, headers=HOST)
    assert [item["id"] for item in hosted.json()["items"]] == [booking_id]

    assert (await client.get(f"/api/v1/bookings/{booking_id}", headers=CLIENT)).status_code == 200
    assert (await client.get(f"/api/v1/bookings/{booking_id}", headers=HOST)).status_code == 200
    assert (await client.get(f"/api/v1/bookings/{booking_id}", headers=OTHER_CLIENT)).status_code == 404


async def test_client_cannot_list_host_bookings(client, users):
    response = await client.get("/api/v1/bookings/", params={"role": "host"}, headers=CLIENT)
    assert response.status_code == 403


async def test_raw_card_numbers_are_not_accepted(client, make_listing):
    listing = await make_listing()

    response = await client.post(
        "/api/v1/bookings/",
        json=booking_request(listing.id, card_number="4242424242424242"),
        headers=CLIENT,
    )

    assert response.status_code == 422
