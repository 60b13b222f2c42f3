"""
End-to-end tests through the HTTP API.
Tests the complete booking flow: book → confirm → cancel → delete.
"""

import re

import pytest

REFERENCE = re.compile(r"^[A-Z]+-\d{6}-[A-Z0-9]{3}$")


async def _calendar_day(client, headers, day):
    response = await client.get(
        "/api/calendar", params={"startDate": day, "endDate": day}, headers=headers
    )
    assert response.status == 200
    rows = (await response.json())["calendar"]
    return rows[0] if rows else None


@pytest.mark.asyncio
async def test_create_booking_holds_date(api_client, admin_headers, booking_payload):
    """A new booking is PENDING and its date disappears from the calendar."""
    response = await api_client.post("/api/bookings", json=booking_payload())

    assert response.status == 201
    body = await response.json()
    assert body["success"] is True
    booking = body["booking"]
    assert REFERENCE.match(booking["bookingReference"])
    assert booking["status"] == "PENDING"
    assert booking["paymentStatus"] == "UNPAID"
    assert booking["services"] == ["dj", "photography"]

    row = await _calendar_day(api_client, admin_headers, "2025-12-25")
    assert row["isAvailable"] is False
    assert row["bookingId"] == booking["id"]
    assert row["blockedReason"] == "Booked Event"
    assert row["booking"]["clientName"] == "John Doe"


@pytest.mark.asyncio
async def test_second_booking_same_date_conflicts(api_client, admin_headers, booking_payload):
    first = await (await api_client.post("/api/bookings", json=booking_payload())).json()

    response = await api_client.post(
        "/api/bookings", json=booking_payload(clientName="Someone Else")
    )

    assert response.status == 409
    body = await response.json()
    assert body["success"] is False
    assert "2025-12-25" in body["error"]

    listing = await api_client.get("/api/bookings", headers=admin_headers)
    bookings = (await listing.json())["bookings"]
    assert [b["id"] for b in bookings] == [first["booking"]["id"]]

    row = await _calendar_day(api_client, admin_headers, "2025-12-25")
    assert row["bookingId"] == first["booking"]["id"]


@pytest.mark.asyncio
async def test_invalid_transition_keeps_status(api_client, admin_headers, booking_payload):
    booking = (await (await api_client.post("/api/bookings", json=booking_payload())).json())[
        "booking"
    ]

    response = await api_client.put(
        f"/api/bookings/{booking['id']}", json={"status": "COMPLETED"}, headers=admin_headers
    )

    assert response.status == 400
    assert "Invalid status transition" in (await response.json())["error"]

    current = await api_client.get(f"/api/bookings/{booking['id']}", headers=admin_headers)
    assert (await current.json())["booking"]["status"] == "PENDING"


@pytest.mark.asyncio
async def test_confirm_cancel_delete_flow(api_client, admin_headers, booking_payload):
    booking = (await (await api_client.post("/api/bookings", json=booking_payload())).json())[
        "booking"
    ]
    url = f"/api/bookings/{booking['id']}"

    confirmed = await api_client.put(url, json={"status": "confirmed"}, headers=admin_headers)
    assert confirmed.status == 200
    assert (await confirmed.json())["booking"]["status"] == "CONFIRMED"

    rejected = await api_client.delete(url, headers=admin_headers)
    assert rejected.status == 400
    assert (await rejected.json())["error"] == (
        "Cannot delete confirmed booking. Cancel the booking first."
    )

    cancelled = await api_client.put(url, json={"status": "CANCELLED"}, headers=admin_headers)
    assert (await cancelled.json())["booking"]["status"] == "CANCELLED"

    # Cancelling alone keeps the date held
    row = await _calendar_day(api_client, admin_headers, "2025-12-25")
    assert row["isAvailable"] is False

    deleted = await api_client.delete(url, headers=admin_headers)
    assert deleted.status == 200
    assert (await deleted.json())["message"] == "Booking deleted successfully"

    row = await _calendar_day(api_client, admin_headers, "2025-12-25")
    assert row["isAvailable"] is True
    assert row["bookingId"] is None
    assert row["booking"] is None

    missing = await api_client.get(url, headers=admin_headers)
    assert missing.status == 404


@pytest.mark.asyncio
async def test_booking_lookup_by_reference(api_client, admin_headers, booking_payload):
    booking = (await (await api_client.post("/api/bookings", json=booking_payload())).json())[
        "booking"
    ]

    response = await api_client.get(
        f"/api/bookings/{booking['bookingReference']}", headers=admin_headers
    )

    assert response.status == 200
    assert (await response.json())["booking"]["id"] == booking["id"]


@pytest.mark.asyncio
async def test_admin_block_hides_date_from_public_calendar(api_client, admin_headers):
    for day in ("2025-07-04", "2025-07-05"):
        response = await api_client.put(
            "/api/calendar/availability",
            json={"date": day, "available": True},
            headers=admin_headers,
        )
        assert response.status == 200

    await api_client.put(
        "/api/calendar/availability",
        json={"date": "2025-07-05", "available": False, "blockedReason": "Private event"},
        headers=admin_headers,
    )

    response = await api_client.get(
        "/api/bookings/availability", params={"month": "7", "year": "2025"}
    )

    assert response.status == 200
    body = await response.json()
    assert body["availableDates"] == ["2025-07-04"]
    assert body["totalAvailable"] == 1
    assert body["month"] == 7


@pytest.mark.asyncio
async def test_contact_form_to_admin_inbox(api_client, admin_headers, contact_payload):
    response = await api_client.post("/api/contact", json=contact_payload)
    assert response.status == 201
    submission = (await response.json())["submission"]

    inbox = await api_client.get("/api/contact", params={"isRead": "false"}, headers=admin_headers)
    assert [c["id"] for c in (await inbox.json())["submissions"]] == [submission["id"]]

    marked = await api_client.put(
        f"/api/contact/{submission['id']}", json={"isRead": True}, headers=admin_headers
    )
    assert (await marked.json())["submission"]["isRead"] is True

    dashboard = await api_client.get("/api/admin/dashboard", headers=admin_headers)
    assert (await dashboard.json())["dashboard"]["stats"]["unreadContacts"] == 0


@pytest.mark.asyncio
async def test_invalid_email_creates_nothing(api_client, admin_headers, booking_payload):
    response = await api_client.post(
        "/api/bookings", json=booking_payload(clientEmail="not-an-email")
    )

    assert response.status == 400
    assert (await response.json())["error"].startswith("validation error: ")

    listing = await api_client.get("/api/bookings", headers=admin_headers)
    assert (await listing.json())["count"] == 0
    assert await _calendar_day(api_client, admin_headers, "2025-12-25") is None


@pytest.mark.asyncio
async def test_client_supplied_status_is_ignored(api_client, booking_payload):
    response = await api_client.post("/api/bookings", json=booking_payload(status="COMPLETED"))

    assert (await response.json())["booking"]["status"] == "PENDING"
