"""Integration tests for API endpoints."""

from uuid import uuid4

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def api_catalog(test_client, sample_package_data, departure_dates):
    """Package, departure and customer created through the API."""
    response = await test_client.post("/v1/package/create", json=sample_package_data)
    assert response.status_code == 200
    package = response.json()

    starts, returns = departure_dates
    response = await test_client.post(
        "/v1/departure/create",
        json={
            "package_id": package["id"],
            "departure_date": starts.isoformat(),
            "return_date": returns.isoformat(),
            "capacity_total": 8,
        },
    )
    assert response.status_code == 200
    departure = response.json()

    response = await test_client.post("/v1/customer/create", json={"full_name": "Ahmad Fauzi", "gender": "M"})
    assert response.status_code == 200
    customer = response.json()

    return {"package": package, "departure": departure, "customer": customer}


def _booking_body(catalog, pax=2):
    return {
        "customer_id": catalog["customer"]["id"],
        "package_id": catalog["package"]["id"],
        "departure_id": catalog["departure"]["id"],
        "room_type": "DOUBLE",
        "pax": pax,
    }


@pytest.mark.asyncio
async def test_create_package_endpoint(test_client, sample_package_data):
    """Test the package creation endpoint; an identical repeat returns the same package."""
    first = await test_client.post("/v1/package/create", json=sample_package_data)
    second = await test_client.post("/v1/package/create", json=sample_package_data)

    assert first.status_code == 200
    assert first.json()["code"] == sample_package_data["code"]
    assert second.json()["id"] == first.json()["id"]


@pytest.mark.asyncio
async def test_create_package_invalid_data(test_client, sample_package_data):
    """Test package creation with invalid data."""
    invalid_data = {**sample_package_data, "name": "", "price_quad": -1}

    response = await test_client.post("/v1/package/create", json=invalid_data)

    assert response.status_code == 422
    data = response.json()
    assert data["status"] == 422
    assert data["code"] == "VALIDATION_ERROR"
    assert {violation["path"] for violation in data["violations"]} >= {"body.name", "body.price_quad"}


@pytest.mark.asyncio
async def test_departure_search_endpoint(test_client, api_catalog):
    """Test the departure search endpoint."""
    response = await test_client.post(
        "/v1/departure/search",
        json={"package_id": api_catalog["package"]["id"], "available_only": True, "limit": 10},
    )

    assert response.status_code == 200
    data = response.json()
    assert [item["id"] for item in data["items"]] == [api_catalog["departure"]["id"]]
    assert data["items"][0]["status"] == "OPEN"


@pytest.mark.asyncio
async def test_create_booking_requires_idempotency_key(test_client, api_catalog):
    response = await test_client.post("/v1/booking/create", json=_booking_body(api_catalog))

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_booking_replay(test_client, api_catalog):
    """A retried create returns the stored booking and reserves seats only once."""
    headers = {"Idempotency-Key": "booking-001"}
    body = _booking_body(api_catalog)

    first = await test_client.post("/v1/booking/create", json=body, headers=headers)
    replay = await test_client.post("/v1/booking/create", json=body, headers=headers)

    assert first.status_code == 200
    booking = first.json()
    assert booking["status"] == "PENDING"
    assert booking["payment_status"] == "UNPAID"
    assert booking["total_price"] == 2 * 21_000_000

    assert replay.status_code == 200
    assert replay.json() == booking
    assert replay.headers["Idempotent-Replayed"] == "true"

    response = await test_client.post("/v1/departure/get", json={"departure_id": api_catalog["departure"]["id"]})
    assert response.json()["capacity_available"] == 6


@pytest.mark.asyncio
async def test_create_booking_key_reuse_with_other_body(test_client, api_catalog):
    headers = {"Idempotency-Key": "booking-002"}

    await test_client.post("/v1/booking/create", json=_booking_body(api_catalog, pax=1), headers=headers)
    response = await test_client.post("/v1/booking/create", json=_booking_body(api_catalog, pax=3), headers=headers)

    assert response.status_code == 422
    assert response.json()["code"] == "IDEMPOTENCY_KEY_MISMATCH"


@pytest.mark.asyncio
async def test_create_booking_over_capacity(test_client, api_catalog):
    response = await test_client.post(
        "/v1/booking/create",
        json=_booking_body(api_catalog, pax=9),
        headers={"Idempotency-Key": "booking-003"},
    )

    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "INSUFFICIENT_CAPACITY"
    assert data["retryable"] is False


@pytest.mark.asyncio
async def test_get_booking_not_found(test_client):
    response = await test_client.post("/v1/booking/get", json={"booking_id": str(uuid4())})

    assert response.status_code == 404
    assert response.json()["resource_type"] == "booking"


@pytest.mark.asyncio
async def test_booking_lifecycle(test_client, api_catalog):
    """Pay, confirm, move to READY, room the customer and complete."""
    response = await test_client.post(
        "/v1/booking/create", json=_booking_body(api_catalog, pax=1), headers={"Idempotency-Key": "life-1"}
    )
    booking = response.json()

    # Transfer stays pending until verified
    response = await test_client.post(
        "/v1/payment/record",
        json={"booking_id": booking["id"], "amount": booking["total_price"], "method": "TRANSFER"},
        headers={"Idempotency-Key": "pay-1"},
    )
    assert response.status_code == 200
    payment = response.json()["payment"]
    assert payment["status"] == "PENDING"

    response = await test_client.post("/v1/payment/verify", json={"payment_id": payment["id"]})
    assert response.status_code == 200
    data = response.json()
    assert data["total_paid"] == booking["total_price"]
    assert data["result"]["booking"]["status"] == "CONFIRMED"
    assert data["result"]["booking"]["payment_status"] == "PAID"
    assert data["result"]["effects"] == ["ENSURE_INVOICE", "RECOMPUTE_CUSTOMER_TIER"]
    assert data["result"]["invoice"]["balance"] == 0

    response = await test_client.post(
        "/v1/booking/transition", json={"booking_id": booking["id"], "target_status": "READY"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["effects"] == ["ADD_TO_ROSTER"]
    roster_id = data["roster_entry"]["roster_id"]
    assert data["roster_entry"]["order_no"] == 1

    response = await test_client.post("/v1/rooming/roster", json={"departure_id": api_catalog["departure"]["id"]})
    assert response.status_code == 200
    assert [entry["order_no"] for entry in response.json()["entries"]] == [1]

    hotel_id = str(uuid4())
    response = await test_client.post(
        "/v1/rooming/auto-assign", json={"roster_id": roster_id, "hotel_id": hotel_id, "start_room_number": 301}
    )
    assert response.status_code == 200
    assert response.json()["assigned_count"] == 1

    response = await test_client.post(
        "/v1/rooming/assign",
        json={
            "roster_id": roster_id,
            "hotel_id": hotel_id,
            "customer_id": api_catalog["customer"]["id"],
            "room_number": "302",
            "room_type": "SINGLE",
        },
    )
    assert response.status_code == 409
    assert response.json()["code"] == "ROOM_ALREADY_ASSIGNED"

    response = await test_client.post("/v1/rooming/list", json={"roster_id": roster_id})
    rooms = response.json()["rooms"]
    assert [room["room_number"] for room in rooms] == ["301"]
    assert rooms[0]["guests"][0]["full_name"] == "Ahmad Fauzi"

    response = await test_client.post(
        "/v1/booking/transition", json={"booking_id": booking["id"], "target_status": "COMPLETED"}
    )
    data = response.json()
    assert data["booking"]["status"] == "COMPLETED"
    assert data["effects"] == ["ENSURE_COMMISSION", "ENSURE_LOYALTY_AWARD"]
    assert data["commission"] is None
    assert data["loyalty_award"]["points"] == booking["total_price"] // 100_000


@pytest.mark.asyncio
async def test_invalid_transition_endpoint(test_client, api_catalog):
    response = await test_client.post(
        "/v1/booking/create", json=_booking_body(api_catalog, pax=1), headers={"Idempotency-Key": "cancel-1"}
    )
    booking = response.json()

    response = await test_client.post(
        "/v1/booking/transition",
        json={"booking_id": booking["id"], "target_status": "CANCELLED", "reason": "Changed plans"},
    )
    assert response.status_code == 200
    assert response.json()["capacity_available"] == 8

    response = await test_client.post(
        "/v1/booking/transition", json={"booking_id": booking["id"], "target_status": "CONFIRMED"}
    )
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_payment_exceeding_balance(test_client, api_catalog):
    response = await test_client.post(
        "/v1/booking/create", json=_booking_body(api_catalog, pax=1), headers={"Idempotency-Key": "over-1"}
    )
    booking = response.json()

    response = await test_client.post(
        "/v1/payment/record",
        json={"booking_id": booking["id"], "amount": booking["total_price"] + 1, "method": "CASH"},
        headers={"Idempotency-Key": "over-pay-1"},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "PAYMENT_EXCEEDS_BALANCE"


@pytest.mark.asyncio
async def test_metrics_endpoint(test_client):
    """Test the Prometheus metrics endpoint."""
    response = await test_client.get("/metrics")

    assert response.status_code == 200
    assert "bookings_created_total" in response.text
    assert "booking_transitions_total" in response.text
    assert "departure_capacity_utilization" in response.text
    assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.asyncio
async def test_openapi_documents_problem_responses(test_client):
    response = await test_client.get("/openapi.json")

    assert response.status_code == 200
    schema = response.json()
    transition = schema["paths"]["/v1/booking/transition"]["post"]["responses"]
    assert {"404", "409", "422", "500"} <= set(transition)
    assert "Problem" in schema["components"]["schemas"]
