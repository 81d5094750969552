"""Tests for the booking lifecycle state machine."""

import pytest

from tradetrack.errors import TransientError, ValidationError, ValidationKind
from tradetrack.schemas.booking_schema import (
    BookingEvent,
    BookingState,
    BookingStatus,
    PaymentStatus,
)
from tradetrack.scheduling.lifecycle import (
    CONFIRMED,
    PENDING,
    BookingLifecycle,
    InvalidTransitionError,
    is_terminal,
    next_state,
    valid_events,
)
from tradetrack.scheduling.validator import BookingValidator
from tradetrack.stores.booking_store import InMemoryBookingStore
from tests.conftest import BOOKING_DATE, PLUMBER, make_request

PAYMENT_FAILED = BookingState(BookingStatus.PAYMENT_FAILED, PaymentStatus.FAILED)
COMPLETED = BookingState(BookingStatus.COMPLETED, PaymentStatus.PAID)
CANCELLED_UNPAID = BookingState(BookingStatus.CANCELLED, PaymentStatus.PENDING)
CANCELLED_PAID = BookingState(BookingStatus.CANCELLED, PaymentStatus.PAID)
TERMINAL = [PAYMENT_FAILED, COMPLETED, CANCELLED_UNPAID, CANCELLED_PAID]


@pytest.fixture
def booking_id(validator):
    return validator.create_booking(make_request())


class TestNextState:
    def test_payment_succeeded_confirms(self):
        assert next_state(PENDING, BookingEvent.PAYMENT_SUCCEEDED) == CONFIRMED

    def test_payment_failed(self):
        assert next_state(PENDING, BookingEvent.PAYMENT_FAILED) == PAYMENT_FAILED

    def test_cancel_keeps_payment_status(self):
        assert next_state(PENDING, BookingEvent.CANCEL) == CANCELLED_UNPAID
        assert next_state(CONFIRMED, BookingEvent.CANCEL) == CANCELLED_PAID

    def test_complete_after_payment(self):
        assert next_state(CONFIRMED, BookingEvent.COMPLETE) == COMPLETED

    def test_complete_before_payment_is_invalid(self):
        with pytest.raises(InvalidTransitionError, match="complete"):
            next_state(PENDING, BookingEvent.COMPLETE)

    @pytest.mark.parametrize("state", TERMINAL)
    @pytest.mark.parametrize("event", list(BookingEvent))
    def test_terminal_states_absorb_every_event(self, state, event):
        assert is_terminal(state)
        assert next_state(state, event) is None

    @pytest.mark.parametrize("event", [BookingEvent.PAYMENT_SUCCEEDED, BookingEvent.PAYMENT_FAILED])
    def test_payment_event_after_confirmation_is_noop(self, event):
        assert next_state(CONFIRMED, event) is None

    def test_valid_events(self):
        assert set(valid_events(PENDING)) == {
            BookingEvent.PAYMENT_SUCCEEDED, BookingEvent.PAYMENT_FAILED, BookingEvent.CANCEL,
        }
        assert set(valid_events(CONFIRMED)) == {BookingEvent.CANCEL, BookingEvent.COMPLETE}
        assert valid_events(COMPLETED) == []


class TestApplyEvent:
    def test_payment_confirms_booking(self, lifecycle, store, booking_id):
        result = lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_SUCCEEDED, "pi_123")
        assert result.changed
        assert result.state == CONFIRMED
        booking = store.get(booking_id)
        assert booking.state == CONFIRMED
        assert booking.payment_reference == "pi_123"

    def test_accepts_event_string(self, lifecycle, booking_id):
        result = lifecycle.apply_event(booking_id, "payment_succeeded")
        assert result.state == CONFIRMED

    def test_duplicate_webhook_is_idempotent(self, lifecycle, store, booking_id):
        lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_SUCCEEDED)
        before = store.get(booking_id)
        result = lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_SUCCEEDED)
        assert not result.changed
        assert store.get(booking_id).updated_at == before.updated_at

    def test_late_failure_does_not_undo_confirmation(self, lifecycle, store, booking_id):
        lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_SUCCEEDED)
        result = lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_FAILED)
        assert not result.changed
        assert store.get(booking_id).state == CONFIRMED

    def test_no_event_moves_completed_booking(self, lifecycle, store, booking_id):
        lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_SUCCEEDED)
        lifecycle.complete_booking(booking_id)
        for event in BookingEvent:
            assert not lifecycle.apply_event(booking_id, event).changed
        assert store.get(booking_id).state == COMPLETED

    def test_complete_pending_raises(self, lifecycle, booking_id):
        with pytest.raises(InvalidTransitionError):
            lifecycle.complete_booking(booking_id)

    def test_unknown_booking(self, lifecycle):
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.apply_event("nope", BookingEvent.CANCEL)
        assert exc_info.value.kind == ValidationKind.BOOKING_NOT_FOUND

    def test_unknown_event_string(self, lifecycle, booking_id):
        with pytest.raises(ValueError):
            lifecycle.apply_event(booking_id, "refund")


class TestSlotRelease:
    def test_payment_failure_keeps_slot(self, lifecycle, store, booking_id):
        lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_FAILED)
        assert store.get_booked_times(PLUMBER, BOOKING_DATE) == ["10:00 AM"]
        assert store.has_active_booking(PLUMBER, BOOKING_DATE, "10:00 AM")

    def test_cancel_releases_slot(self, lifecycle, store, booking_id):
        lifecycle.cancel_booking(booking_id)
        assert store.get_booked_times(PLUMBER, BOOKING_DATE) == []

    def test_completion_keeps_slot(self, lifecycle, store, booking_id):
        lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_SUCCEEDED)
        lifecycle.complete_booking(booking_id)
        assert store.get_booked_times(PLUMBER, BOOKING_DATE) == ["10:00 AM"]


class TestCompareAndSet:
    def test_gives_up_after_repeated_races(self, catalog):
        class RacingStore(InMemoryBookingStore):
            def __init__(self):
                super().__init__()
                self.attempts = 0

            def update_state(self, booking_id, expected, new, payment_reference=None):
                self.attempts += 1
                return None

        store = RacingStore()
        booking_id = BookingValidator(catalog, store).create_booking(make_request())
        with pytest.raises(TransientError):
            BookingLifecycle(store).apply_event(booking_id, BookingEvent.PAYMENT_SUCCEEDED)
        assert store.attempts == BookingLifecycle.MAX_ATTEMPTS

    def test_rereads_after_concurrent_change(self, catalog):
        class OnceStaleStore(InMemoryBookingStore):
            def __init__(self):
                super().__init__()
                self.stale = True

            def update_state(self, booking_id, expected, new, payment_reference=None):
                if self.stale:
                    self.stale = False
                    super().update_state(booking_id, expected, CONFIRMED)
                    return None
                return super().update_state(booking_id, expected, new, payment_reference)

        store = OnceStaleStore()
        booking_id = BookingValidator(catalog, store).create_booking(make_request())
        result = BookingLifecycle(store).apply_event(booking_id, BookingEvent.PAYMENT_SUCCEEDED)
        assert not result.changed
        assert result.state == CONFIRMED

    def test_stale_expected_state_rejected(self, store, validator):
        booking_id = validator.create_booking(make_request())
        assert store.update_state(booking_id, CONFIRMED, COMPLETED) is None
        assert store.get(booking_id).state == PENDING
