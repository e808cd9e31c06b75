from tests.conftest import CLIENT_ID, OTHER_CLIENT_ID, auth_headers

CLIENT = auth_headers(CLIENT_ID, role="client", name="Alex Doe")
OTHER_CLIENT = auth_headers(OTHER_CLIENT_ID, role="client", name="Sam")


async def test_review_listing(client, make_listing):
    listing = await make_listing()

    response = await client.post(
        "/api/v1/reviews/",
        json={"listing_id": str(listing.id), "rating": 5, "comment": "Dry and secure."},
        headers=CLIENT,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["rating"] == 5
    assert body["author_name"] == "Alex Doe"


async def test_second_review_is_rejected(client, make_listing):
    listing = await make_listing()
    payload = {"listing_id": str(listing.id), "rating": 4}

    await client.post("/api/v1/reviews/", json=payload, headers=CLIENT)
    response = await client.post("/api/v1/reviews/", json=payload, headers=CLIENT)

    assert response.status_code == 409
    assert response.json()["code"] == "already_reviewed"


async def test_rating_out_of_range(client, make_listing):
    listing = await make_listing()

    response = await client.post(
        "/api/v1/reviews/", json={"listing_id": str(listing.id), "rating": 6}, headers=CLIENT
    )

    assert response.status_code == 422


async def test_listing_reviews_with_average(client, make_listing):
    listing = await make_listing()
    await client.post("/api/v1/reviews/", json={"listing_id": str(listing.id), "rating": 5}, headers=CLIENT)
    await client.post("/api/v1/reviews/", json={"listing_id": str(listing.id), "rating": 2}, headers=OTHER_CLIENT)

    response = await client.get(f"/api/v1/reviews/listings/{listing.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["average_rating"] == 3.5


async def test_listing_without_reviews(client, make_listing):
    listing = await make_listing()

    body = (await client.get(f"/api/v1/reviews/listings/{listing.id}")).json()

    assert body == {"items": [], "total": 0, "average_rating": None}


async def test_only_author_deletes_review(client, make_listing):
    listing = await make_listing()
    created = await client.post(
        "/api/v1/reviews/", json={"listing_id": str(listing.id), "rating": 3}, headers=CLIENT
    )
    review_id = created.json()["id"]

    forbidden = await client.delete(f"/api/v1/reviews/{review_id}", headers=OTHER_CLIENT)
    assert forbidden.status_code == 403

    deleted = await client.delete(f"/api/v1/reviews/{review_id}", headers=CLIENT)
    assert deleted.status_code == 204

    remaining = (await client.get(f"/api/v1/reviews/listings/{listing.id}")).json()
    assert remaining["total"] == 0
