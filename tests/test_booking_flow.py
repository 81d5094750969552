"""Integration tests: availability + validator + lifecycle + store together."""

from decimal import Decimal

import pytest

from tradetrack.errors import ConflictError
from tradetrack.schemas.booking_schema import BookingEvent, BookingStatus, PaymentStatus
from tradetrack.scheduling.availability import AvailabilityService
from tradetrack.scheduling.lifecycle import BookingLifecycle
from tradetrack.scheduling.slots import format_time
from tradetrack.scheduling.validator import BookingValidator
from tradetrack.stores.notifier import LoggingNotifier
from tests.conftest import BOOKING_DATE, ELECTRICIAN, PLUMBER, make_request, seed_booking_history


def _open_times(availability, service_id="svc-plumbing-001"):
    return [format_time(s.start) for s in availability.available_slots(service_id, BOOKING_DATE)]


class TestFullBookingFlow:
    """A customer picks a slot, pays, and the provider completes the job."""

    def test_happy_path(self, availability, validator, lifecycle, store, notifier):
        times = _open_times(availability)
        assert len(times) == 16

        booking_id = validator.create_booking(make_request(time=times[2], material="Standard faucet parts"))
        assert times[2] not in _open_times(availability)
        assert len(notifier.sent) == 1

        lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_SUCCEEDED, "pi_42")
        lifecycle.complete_booking(booking_id)

        booking = store.get(booking_id)
        assert booking.status == BookingStatus.COMPLETED
        assert booking.payment_status == PaymentStatus.PAID
        assert booking.total_price == Decimal("150.00")
        assert times[2] not in _open_times(availability)

    def test_failed_payment_still_holds_slot(self, availability, validator, lifecycle):
        booking_id = validator.create_booking(make_request())
        lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_FAILED)
        assert "10:00 AM" not in _open_times(availability)

        with pytest.raises(ConflictError):
            validator.create_booking(make_request(email="retry@example.com"))
        assert validator.create_booking(make_request(time="10:30 AM")) != booking_id

    def test_fully_booked_day(self, availability, validator):
        for slot_time in _open_times(availability):
            validator.create_booking(make_request(time=slot_time))
        assert _open_times(availability) == []

    def test_catalog_change_does_not_reprice_booking(self, catalog, availability, validator, store):
        booking_id = validator.create_booking(make_request())
        listing = catalog.get_listing("svc-plumbing-001")
        repriced = listing.model_copy(deep=True)
        repriced.offerings[0].rate = Decimal("999")
        catalog.upsert_listing(repriced)

        assert store.get(booking_id).total_price == Decimal("120.00")


class TestSqlBookingFlow:
    def test_same_flow_on_sql_store(self, catalog, sql_store):
        availability = AvailabilityService(catalog, sql_store)
        validator = BookingValidator(catalog, sql_store, LoggingNotifier())
        lifecycle = BookingLifecycle(sql_store)

        booking_id = validator.create_booking(make_request(time="9:00 AM"))
        assert "9:00 AM" not in _open_times(availability)

        lifecycle.cancel_booking(booking_id)
        assert "9:00 AM" in _open_times(availability)
        assert len(_open_times(availability)) == 16


class TestBookingHistory:
    """Customers and providers review their bookings, newest first."""

    def test_customer_history(self, store):
        seed_booking_history(store)
        assert [b.id for b in store.list_for_customer("jane@example.com")] == ["b-4", "b-3", "b-1"]
        assert [b.id for b in store.list_for_customer("bob@example.com")] == ["b-2"]

    def test_provider_history(self, store):
        seed_booking_history(store)
        assert [b.id for b in store.list_for_provider(PLUMBER)] == ["b-4", "b-2", "b-1"]
        assert [b.id for b in store.list_for_provider(ELECTRICIAN)] == ["b-3"]

    def test_history_is_a_copy(self, store):
        seed_booking_history(store)
        store.list_for_customer("bob@example.com")[0].time = "5:00 PM"
        assert store.get("b-2").time == "11:00 AM"
