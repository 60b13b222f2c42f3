"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timezone
from itertools import count

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from api.app import create_app
from bookings.calendar import CalendarService
from bookings.lifecycle import BookingLifecycleManager
from config import Settings
from contacts.service import ContactService
from db.memory_store import InMemoryStore
from reporting.service import ReportingService
from utils.rate_limit import RateLimiter

ADMIN_TOKEN = "test-admin-token"
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    """Settings isolated from the developer's environment."""
    return Settings(
        _env_file=None,
        storage_backend="memory",
        admin_api_tokens=ADMIN_TOKEN,
        rate_limit_mode="off",
        admin_email="admin@example.com",
    )


@pytest.fixture
def clock():
    """Fixed clock at 2025-06-01 12:00 UTC."""
    return lambda: NOW


@pytest.fixture
def store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def sequential_references():
    """Reference generator producing DSE-000001-AAA, DSE-000002-AAA, ..."""
    counter = count(1)
    return lambda prefix, now: f"{prefix}-{next(counter):06d}-AAA"


@pytest.fixture
def manager(store, settings, clock, sequential_references):
    return BookingLifecycleManager(
        store, settings, clock=clock, reference_generator=sequential_references
    )


@pytest.fixture
def calendar_service(store):
    return CalendarService(store)


@pytest.fixture
def contact_service(store, clock):
    return ContactService(store, clock=clock)


@pytest.fixture
def reporting(store, settings, clock):
    return ReportingService(store, settings, clock=clock)


@pytest.fixture
def booking_payload():
    """Factory for valid booking form payloads."""

    def make(**overrides):
        payload = {
            "clientName": "John Doe",
            "clientEmail": "john@example.com",
            "clientPhone": "555-123-4567",
            "eventDate": "2025-12-25",
            "eventType": "Wedding",
            "services": ["dj", "photography"],
        }
        payload.update(overrides)
        return payload

    return make


@pytest.fixture
def contact_payload():
    return {
        "name": "Jane Smith",
        "email": "jane@example.com",
        "subject": "Wedding DJ",
        "message": "Are you free next summer?",
    }


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest_asyncio.fixture
async def api_client(settings, store, clock):
    """aiohttp test client bound to an app over the in-memory store."""
    app = create_app(
        settings=settings,
        store=store,
        rate_limiter=RateLimiter(mode=settings.rate_limit_mode),
        clock=clock,
    )
    client = TestClient(TestServer(app))
    await client.start_server()
    try:
        yield client
    finally:
        await client.close()
