"""Shared test fixtures and helpers."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from tradetrack.schemas.booking_schema import Address, Booking, BookingRequest
from tradetrack.scheduling.availability import AvailabilityService
from tradetrack.scheduling.lifecycle import BookingLifecycle
from tradetrack.scheduling.validator import BookingValidator
from tradetrack.stores.booking_store import InMemoryBookingStore
from tradetrack.stores.catalog import InMemoryCatalog
from tradetrack.stores.notifier import LoggingNotifier
from tradetrack.stores.sql_store import SqlBookingStore

BOOKING_DATE = date(2025, 3, 15)
PLUMBER = "mike.t@tradetrack.example"
ELECTRICIAN = "priya.m@tradetrack.example"


@pytest.fixture
def catalog():
    return InMemoryCatalog()


@pytest.fixture
def store():
    s = InMemoryBookingStore()
    yield s
    s.reset()


@pytest.fixture
def sql_store():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    s = SqlBookingStore(engine)
    s.create_schema()
    yield s
    engine.dispose()


@pytest.fixture
def notifier():
    return LoggingNotifier()


@pytest.fixture
def availability(catalog, store):
    return AvailabilityService(catalog, store)


@pytest.fixture
def validator(catalog, store, notifier):
    return BookingValidator(catalog, store, notifier)


@pytest.fixture
def lifecycle(store):
    return BookingLifecycle(store)


def make_address(**overrides) -> Address:
    """Helper to create a complete service address."""
    fields = {
        "line1": "42 Oak Ave",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
    }
    fields.update(overrides)
    return Address(**fields)


def make_request(
    service_id: str = "svc-plumbing-001",
    option_id: str = "faucet_replacement",
    time: str = "10:00 AM",
    material: Optional[str] = None,
    day: date = BOOKING_DATE,
    email: str = "jane@example.com",
    address: Optional[Address] = None,
) -> BookingRequest:
    """Helper to create a BookingRequest with sensible defaults."""
    return BookingRequest(
        service_id=service_id,
        option_id=option_id,
        material=material,
        date=day,
        time=time,
        customer_email=email,
        address=address if address is not None else make_address(),
    )


def make_booking(booking_id: str, created_at: datetime, **overrides) -> Booking:
    """Helper to create a stored-shape Booking without going through validation."""
    fields = {
        "id": booking_id,
        "provider_id": PLUMBER,
        "service_id": "svc-plumbing-001",
        "option_id": "toilet_repair",
        "service_name": "Toilet Repair",
        "rate": Decimal("100.00"),
        "duration_hours": 1.0,
        "customer_email": "jane@example.com",
        "total_price": Decimal("100.00"),
        "address": make_address(),
        "date": BOOKING_DATE,
        "time": "10:00 AM",
        "created_at": created_at,
        "updated_at": created_at,
    }
    fields.update(overrides)
    return Booking(**fields)


def seed_booking_history(store) -> None:
    """Insert four bookings an hour apart, oldest first.

    jane booked the plumber twice and the electrician once; bob booked the
    plumber once.
    """
    start = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
    store.insert(make_booking("b-1", start, time="9:00 AM"))
    store.insert(make_booking("b-2", start + timedelta(hours=1), time="11:00 AM",
                              customer_email="bob@example.com"))
    store.insert(make_booking("b-3", start + timedelta(hours=2), time="3:00 PM",
                              provider_id=ELECTRICIAN, service_id="svc-electrical-001"))
    store.insert(make_booking("b-4", start + timedelta(hours=3), time="2:00 PM"))
