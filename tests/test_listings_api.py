from datetime import date

from tests.conftest import CLIENT_ID, HOST_ID, auth_headers

HOST = auth_headers(HOST_ID, role="host", name="Jane Smith")
CLIENT = auth_headers(CLIENT_ID, role="client", name="Alex Doe")

NEW_LISTING = {
    "name": "Walk-in Closet Size",
    "location": "Downtown, Metropolis",
    "size": 50,
    "monthly_price": "95.00",
    "description": "Great for seasonal clothing.",
    "features": ["24/7 Access", "CCTV Security", "24/7 Access"],
}


async def test_host_creates_listing(client, feed):
    response = await client.post("/api/v1/listings/", json=NEW_LISTING, headers=HOST)

    assert response.status_code == 201
    body = response.json()
    assert body["host_id"] == HOST_ID
    assert body["is_available"] is True
    assert body["features"] == ["24/7 Access", "CCTV Security"]
    assert feed.events[-1]["topic"] == "listings"
    assert feed.events[-1]["event"] == "INSERT"


async def test_client_cannot_create_listing(client):
    response = await client.post("/api/v1/listings/", json=NEW_LISTING, headers=CLIENT)
    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"


async def test_listing_requires_positive_size_and_price(client):
    response = await client.post(
        "/api/v1/listings/", json={**NEW_LISTING, "size": 0, "monthly_price": "-1"}, headers=HOST
    )
    assert response.status_code == 422


async def test_unauthenticated_create(client):
    response = await client.post("/api/v1/listings/", json=NEW_LISTING)
    assert response.status_code == 401


async def test_browse_filters(client, make_listing):
    await make_listing("50.00", name="Compact City Locker", location="Downtown, Metropolis")
    await make_listing("1500.00", name="Large Warehouse Space", location="Industrial Park, Metropolis")
    await make_listing("450.00", name="Medium Business Storage", location="Industrial Park, Metropolis", is_available=False)

    everything = await client.get("/api/v1/listings/")
    assert everything.json()["total"] == 3

    industrial = await client.get("/api/v1/listings/", params={"location": "industrial"})
    assert {item["name"] for item in industrial.json()["items"]} == {
        "Large Warehouse Space",
        "Medium Business Storage",
    }

    cheap_available = await client.get("/api/v1/listings/", params={"available": "true", "max_price": "500"})
    assert [item["name"] for item in cheap_available.json()["items"]] == ["Compact City Locker"]


async def test_get_listing_not_found(client, users):
    response = await client.get("/api/v1/listings/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


async def test_owner_updates_listing(client, make_listing):
    listing = await make_listing()

    response = await client.patch(
        f"/api/v1/listings/{listing.id}", json={"monthly_price": "320.00"}, headers=HOST
    )

    assert response.status_code == 200
    assert response.json()["monthly_price"] == "320.00"


async def test_availability_flag_is_not_writable(client, make_listing):
    listing = await make_listing()

    response = await client.patch(
        f"/api/v1/listings/{listing.id}", json={"is_available": False}, headers=HOST
    )

    assert response.status_code == 422


async def test_other_host_cannot_update(client, make_listing):
    listing = await make_listing()
    other_host = auth_headers("host-2", role="host")

    response = await client.patch(
        f"/api/v1/listings/{listing.id}", json={"name": "Mine now"}, headers=other_host
    )

    assert response.status_code == 403


async def test_my_listings(client, make_listing):
    await make_listing(name="One")
    await make_listing(name="Two")

    response = await client.get("/api/v1/listings/mine", headers=HOST)

    assert response.status_code == 200
    assert {item["name"] for item in response.json()} == {"One", "Two"}


async def test_delete_listing_without_bookings(client, make_listing, storage, feed):
    listing = await make_listing(images=["https://cdn.test/a.jpg"])

    response = await client.delete(f"/api/v1/listings/{listing.id}", headers=HOST)

    assert response.status_code == 204
    assert (await client.get(f"/api/v1/listings/{listing.id}")).status_code == 404
    assert storage.deleted == [str(listing.id)]
    assert feed.events[-1]["event"] == "DELETE"


async def test_listing_with_bookings_cannot_be_deleted(client, make_listing, make_booking):
    listing = await make_listing()
    await make_booking(listing, date(2024, 1, 1), date(2024, 2, 1))

    response = await client.delete(f"/api/v1/listings/{listing.id}", headers=HOST)

    assert response.status_code == 422
    assert (await client.get(f"/api/v1/listings/{listing.id}")).status_code == 200


async def test_upload_image_appends_url(client, make_listing, storage):
    listing = await make_listing()

    response = await client.post(
        f"/api/v1/listings/{listing.id}/images",
        files={"file": ("unit.png", b"not-inspected-by-fake-storage", "image/png")},
        headers=HOST,
    )

    assert response.status_code == 200
    assert response.json()["images"] == storage.uploads


async def test_booking_racing_a_delete_keeps_listing(client, make_listing, make_booking, monkeypatch):
    listing = await make_listing()
    await make_booking(listing, date(2024, 1, 1), date(2024, 2, 1))

    async def booking_not_seen_yet(db, listing_id):
        return False

    monkeypatch.setattr("storeaway.api.v1.listings._has_bookings", booking_not_seen_yet)

    response = await client.delete(f"/api/v1/listings/{listing.id}", headers=HOST)

    assert response.status_code == 422
    assert response.json()["detail"] == "Listings with bookings cannot be deleted"
    assert (await client.get(f"/api/v1/listings/{listing.id}")).status_code == 200
