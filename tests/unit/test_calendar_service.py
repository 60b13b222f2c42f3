"""
Unit tests for administrative calendar operations.
"""

from datetime import date

import pytest

from utils.exceptions import ErrorKind


@pytest.mark.asyncio
async def test_block_and_unblock(calendar_service, store):
    blocked = await calendar_service.block_date("2025-07-04", "  Holiday ")

    assert blocked.success is True
    assert blocked.data.is_available is False
    assert blocked.data.blocked_reason == "Holiday"

    unblocked = await calendar_service.unblock_date("2025-07-04")
    assert unblocked.data.is_available is True
    assert unblocked.data.blocked_reason is None


@pytest.mark.asyncio
async def test_default_and_maintenance_reasons(calendar_service):
    default = await calendar_service.block_date("2025-07-04")
    maintenance = await calendar_service.set_maintenance_block("2025-07-05")

    assert default.data.blocked_reason == "Unavailable"
    assert maintenance.data.blocked_reason == "Maintenance"


@pytest.mark.asyncio
async def test_invalid_date(calendar_service):
    result = await calendar_service.block_date("July 4th")

    assert result.error_kind == ErrorKind.VALIDATION
    assert result.error == "validation error: Date is invalid"


@pytest.mark.asyncio
async def test_booking_held_date_cannot_be_changed(calendar_service, manager, booking_payload):
    await manager.create(booking_payload())

    result = await calendar_service.update_availability("2025-12-25", True)

    assert result.success is False
    assert result.error_kind == ErrorKind.POLICY


@pytest.mark.asyncio
async def test_bulk_update_is_all_or_nothing(calendar_service, manager, store, booking_payload):
    await manager.create(booking_payload())

    result = await calendar_service.apply_updates(
        {
            "updates": [
                {"date": "2025-12-24", "available": False, "blockedReason": "Setup"},
                {"date": "2025-12-25", "available": True},
            ]
        }
    )

    assert result.error_kind == ErrorKind.POLICY
    assert await store.get_calendar_day(date(2025, 12, 24)) is None


@pytest.mark.asyncio
async def test_bulk_update(calendar_service):
    result = await calendar_service.apply_updates(
        {
            "updates": [
                {"date": "2025-07-04", "available": False},
                {"date": "2025-07-05", "available": True, "blockedReason": "ignored"},
            ]
        }
    )

    assert result.success is True
    assert [(d.date.day, d.is_available, d.blocked_reason) for d in result.data] == [
        (4, False, "Unavailable"),
        (5, True, None),
    ]


@pytest.mark.asyncio
async def test_block_range_skips_booked_days(calendar_service, manager, store, booking_payload):
    booking = (await manager.create(booking_payload())).data

    result = await calendar_service.block_range("2025-12-24", "2025-12-26", "Holidays")

    assert result.success is True
    assert result.data["summary"] == {"blocked": 2, "skipped": 1, "total": 3}
    assert result.data["results"]["2025-12-25"] == {
        "success": False,
        "error": "Date is held by a booking",
    }
    assert (await store.get_calendar_day(date(2025, 12, 25))).booking_id == booking.id
    assert (await store.get_calendar_day(date(2025, 12, 26))).blocked_reason == "Holidays"


@pytest.mark.asyncio
async def test_block_range_validation(calendar_service):
    reversed_range = await calendar_service.block_range("2025-07-10", "2025-07-01")
    too_long = await calendar_service.block_range("2025-01-01", "2026-06-01")

    assert reversed_range.error_kind == ErrorKind.VALIDATION
    assert "cannot exceed 366 days" in too_long.error


@pytest.mark.asyncio
async def test_get_calendar_includes_booking_summary(calendar_service, manager, booking_payload):
    booking = (await manager.create(booking_payload())).data
    await calendar_service.block_date("2025-12-26", "Private event")

    result = await calendar_service.get_calendar("2025-12-01", "2025-12-31")

    assert result.success is True
    held, blocked = result.data
    assert held["date"] == "2025-12-25"
    assert held["booking"] == {
        "id": booking.id,
        "bookingReference": booking.booking_reference,
        "clientName": "John Doe",
        "eventType": "Wedding",
        "status": "PENDING",
    }
    assert blocked["isAvailable"] is False
    assert blocked["booking"] is None
