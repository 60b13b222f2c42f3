"""
Unit tests for the Supabase store.
Tests with mocked Supabase API calls.
"""

from datetime import date
from unittest.mock import MagicMock, call, patch

import pytest
from postgrest.exceptions import APIError

from db.base import ChangeOp, UnitOfWork
from db.supabase_client import (
    APPLY_CHANGES_FUNCTION,
    PAGE_SIZE,
    SupabaseStore,
    map_api_error,
)
from models.booking import BookingStatus
from utils.exceptions import (
    BookingNotFoundError,
    ConcurrentUpdateError,
    ContactNotFoundError,
    DatabaseError,
    DateHeldByBookingError,
    DateUnavailableError,
    DuplicateReferenceError,
)

BOOKING_ROW = {
    "id": "123e4567-e89b-12d3-a456-426614174000",
    "booking_reference": "DSE-123456-AB1",
    "client_name": "John Doe",
    "client_email": "john@example.com",
    "client_phone": "555-123-4567",
    "event_date": "2025-12-25",
    "event_start_time": "18:00:00",
    "event_end_time": None,
    "event_type": "Wedding",
    "services": ["dj", "photography"],
    "venue_name": None,
    "venue_address": None,
    "guest_count": 120,
    "special_requests": None,
    "total_amount": 1500.5,
    "deposit_amount": None,
    "status": "CONFIRMED",
    "payment_status": "UNPAID",
    "created_at": "2025-06-01T12:00:00+00:00",
    "updated_at": "2025-06-01T12:00:00Z",
}


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_client.table.return_value = mock_table
    return mock_client, mock_table


@pytest.fixture
def supabase_store(mock_supabase_client):
    mock_client, _ = mock_supabase_client
    return SupabaseStore(client=mock_client)


def _api_error(code, message="boom"):
    return APIError({"code": code, "message": message, "details": None, "hint": None})


def test_requires_credentials_without_client():
    with pytest.raises(DatabaseError):
        SupabaseStore()


def test_creates_client_from_credentials():
    with patch("db.supabase_client.create_client") as create_client:
        store = SupabaseStore("https://test.supabase.co", "service-key")

    create_client.assert_called_once_with("https://test.supabase.co", "service-key")
    assert store.client is create_client.return_value


@pytest.mark.asyncio
async def test_apply_changes_calls_rpc(supabase_store, mock_supabase_client):
    mock_client, _ = mock_supabase_client
    uow = UnitOfWork(supabase_store)
    uow.update_booking(
        BOOKING_ROW["id"], {"status": BookingStatus.CANCELLED}, expected_status=BookingStatus.CONFIRMED
    )
    uow.release_booking_dates(BOOKING_ROW["id"])

    await uow.commit()

    mock_client.rpc.assert_called_once()
    name, params = mock_client.rpc.call_args.args
    assert name == APPLY_CHANGES_FUNCTION
    assert params["changes"] == [
        {
            "op": ChangeOp.UPDATE_BOOKING.value,
            "payload": {
                "id": BOOKING_ROW["id"],
                "changes": {"status": "CANCELLED"},
                "expected_status": "CONFIRMED",
            },
        },
        {
            "op": ChangeOp.RELEASE_BOOKING_DATES.value,
            "payload": {"booking_id": BOOKING_ROW["id"]},
        },
    ]
    mock_client.rpc.return_value.execute.assert_called_once()


@pytest.mark.asyncio
async def test_claim_payload_is_json(supabase_store, mock_supabase_client):
    mock_client, _ = mock_supabase_client
    async with supabase_store.unit_of_work() as uow:
        uow.claim_date(date(2025, 12, 25), BOOKING_ROW["id"], "Booked Event")

    change = mock_client.rpc.call_args.args[1]["changes"][0]
    assert change["payload"] == {
        "date": "2025-12-25",
        "booking_id": BOOKING_ROW["id"],
        "reason": "Booked Event",
    }


@pytest.mark.asyncio
async def test_apply_changes_maps_database_errors(supabase_store, mock_supabase_client):
    mock_client, _ = mock_supabase_client
    mock_client.rpc.return_value.execute.side_effect = _api_error("BK409", "Date taken")

    async with supabase_store.unit_of_work() as uow:
        uow.release_booking_dates(BOOKING_ROW["id"])
        with pytest.raises(DateUnavailableError, match="Date taken"):
            await uow.commit()


@pytest.mark.asyncio
async def test_apply_changes_wraps_transport_errors(supabase_store, mock_supabase_client):
    mock_client, _ = mock_supabase_client
    mock_client.rpc.return_value.execute.side_effect = ConnectionError("reset")
    uow = UnitOfWork(supabase_store)
    uow.release_booking_dates(BOOKING_ROW["id"])

    with pytest.raises(DatabaseError):
        await uow.commit()


@pytest.mark.parametrize(
    "code, message, expected",
    [
        ("BK404", "missing", BookingNotFoundError),
        ("BK409", "taken", DateUnavailableError),
        ("BK412", "moved", ConcurrentUpdateError),
        ("BK423", "held", DateHeldByBookingError),
        ("BKC04", "missing", ContactNotFoundError),
        ("23505", 'duplicate key value violates "bookings_booking_reference_key"', DuplicateReferenceError),
        ("23505", 'duplicate key value violates "calendar_availability_pkey"', DateUnavailableError),
        ("23505", "duplicate key value violates something else", DatabaseError),
        ("XX000", "internal", DatabaseError),
    ],
)
def test_map_api_error(code, message, expected):
    assert type(map_api_error(_api_error(code, message))) is expected


@pytest.mark.asyncio
async def test_get_booking_found(supabase_store, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_response = MagicMock()
    mock_response.data = [BOOKING_ROW]
    mock_table.select.return_value.eq.return_value.execute.return_value = mock_response

    booking = await supabase_store.get_booking(BOOKING_ROW["id"])

    assert booking.booking_reference == "DSE-123456-AB1"
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.event_date == date(2025, 12, 25)
    assert str(booking.total_amount) == "1500.50"
    mock_table.select.return_value.eq.assert_called_once_with("id", BOOKING_ROW["id"])


@pytest.mark.asyncio
async def test_get_booking_not_found(supabase_store, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_response = MagicMock()
    mock_response.data = []
    mock_table.select.return_value.eq.return_value.execute.return_value = mock_response

    assert await supabase_store.get_booking(BOOKING_ROW["id"]) is None


@pytest.mark.asyncio
async def test_read_failure_raises_database_error(supabase_store, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.execute.side_effect = Exception("timeout")

    with pytest.raises(DatabaseError):
        await supabase_store.get_booking_by_reference("DSE-123456-AB1")


@pytest.mark.asyncio
async def test_list_calendar_days_available_filter(supabase_store, mock_supabase_client):
    _, mock_table = mock_supabase_client
    ranged = mock_table.select.return_value.gte.return_value.lte.return_value
    mock_response = MagicMock()
    mock_response.data = [
        {
            "date": "2025-07-04",
            "is_available": True,
            "blocked_reason": None,
            "booking_id": None,
            "updated_at": "2025-06-01T12:00:00Z",
        }
    ]
    ranged.eq.return_value.order.return_value.execute.return_value = mock_response

    days = await supabase_store.list_calendar_days(
        date(2025, 7, 1), date(2025, 7, 31), available=True
    )

    assert [d.date for d in days] == [date(2025, 7, 4)]
    mock_table.select.return_value.gte.assert_called_once_with("date", "2025-07-01")
    ranged.eq.assert_called_once_with("is_available", True)


def _chainable_query(mock_client):
    """Query builder whose filter and order calls return itself."""
    query = MagicMock()
    for method in ("select", "eq", "gte", "lte", "order"):
        getattr(query, method).return_value = query
    mock_client.table.return_value = query
    return query


def _page(rows):
    response = MagicMock()
    response.data = rows
    return response


@pytest.mark.asyncio
async def test_list_bookings_pages_past_row_cap(supabase_store, mock_supabase_client):
    mock_client, _ = mock_supabase_client
    query = _chainable_query(mock_client)
    query.range.return_value.execute.side_effect = [
        _page([BOOKING_ROW] * PAGE_SIZE),
        _page([BOOKING_ROW]),
    ]

    bookings = await supabase_store.list_bookings(status=BookingStatus.CONFIRMED)

    assert len(bookings) == PAGE_SIZE + 1
    assert query.range.call_args_list == [
        call(0, PAGE_SIZE - 1),
        call(PAGE_SIZE, 2 * PAGE_SIZE - 1),
    ]
    assert mock_client.table.call_count == 2
    query.eq.assert_called_with("status", "CONFIRMED")


@pytest.mark.asyncio
async def test_list_bookings_with_limit_is_one_request(supabase_store, mock_supabase_client):
    mock_client, _ = mock_supabase_client
    query = _chainable_query(mock_client)
    query.range.return_value.execute.return_value = _page([BOOKING_ROW])

    bookings = await supabase_store.list_bookings(limit=20, offset=40, newest_first=True)

    assert len(bookings) == 1
    query.range.assert_called_once_with(40, 59)
    query.order.assert_any_call("created_at", desc=True)


@pytest.mark.asyncio
async def test_list_contacts_pages_until_short_page(supabase_store, mock_supabase_client):
    mock_client, _ = mock_supabase_client
    query = _chainable_query(mock_client)
    query.range.return_value.execute.return_value = _page([])

    contacts = await supabase_store.list_contacts(is_read=False)

    assert contacts == []
    query.range.assert_called_once_with(0, PAGE_SIZE - 1)
    query.eq.assert_called_once_with("is_read", False)
