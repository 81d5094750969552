"""
Finite state machine for a booking's (status, payment_status) pair.

Bookings only move forward:

    pending/pending --payment_succeeded--> confirmed/paid --complete--> completed/paid
    pending/pending --payment_failed-----> payment_failed/failed
    pending/pending, confirmed/paid --cancel--> cancelled/<unchanged>

Completed, cancelled and payment-failed bookings are terminal. Events that
reach a terminal booking, and payment events repeated after the booking has
left pending, are no-ops so webhook retries are harmless.

Usage:
    lifecycle = BookingLifecycle(store)
    lifecycle.apply_event(booking_id, BookingEvent.PAYMENT_SUCCEEDED)
"""

from dataclasses import dataclass
from typing import Optional, Union

from tradetrack.errors import TransientError, TransientKind, ValidationError, ValidationKind
from tradetrack.logging_context import get_request_logger
from tradetrack.schemas.booking_schema import (
    BookingEvent,
    BookingState,
    BookingStatus,
    PaymentStatus,
    RequestContext,
)
from tradetrack.stores.booking_store import BookingStore

logger = get_request_logger(__name__)

PENDING = BookingState(BookingStatus.PENDING, PaymentStatus.PENDING)
CONFIRMED = BookingState(BookingStatus.CONFIRMED, PaymentStatus.PAID)

TERMINAL_STATUSES = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.PAYMENT_FAILED}
)
PAYMENT_EVENTS = frozenset({BookingEvent.PAYMENT_SUCCEEDED, BookingEvent.PAYMENT_FAILED})


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: BookingState
    to_state: BookingState
    event: BookingEvent


@dataclass
class TransitionResult:
    booking_id: str
    state: BookingState
    changed: bool


class InvalidTransitionError(Exception):
    """Raised when an event cannot apply to a live booking in its current state."""


TRANSITIONS: list[Transition] = [
    # --- Payment outcome ---
    Transition(PENDING, CONFIRMED, BookingEvent.PAYMENT_SUCCEEDED),
    Transition(PENDING, BookingState(BookingStatus.PAYMENT_FAILED, PaymentStatus.FAILED),
               BookingEvent.PAYMENT_FAILED),

    # --- Cancellation keeps whatever payment status the booking had ---
    Transition(PENDING, BookingState(BookingStatus.CANCELLED, PaymentStatus.PENDING),
               BookingEvent.CANCEL),
    Transition(CONFIRMED, BookingState(BookingStatus.CANCELLED, PaymentStatus.PAID),
               BookingEvent.CANCEL),

    # --- Provider marks the job done ---
    Transition(CONFIRMED, BookingState(BookingStatus.COMPLETED, PaymentStatus.PAID),
               BookingEvent.COMPLETE),
]


def is_terminal(state: BookingState) -> bool:
    return state.status in TERMINAL_STATUSES


def valid_events(state: BookingState) -> list[BookingEvent]:
    """Return all events that change a booking in ``state``."""
    return [t.event for t in TRANSITIONS if t.from_state == state]


def next_state(state: BookingState, event: BookingEvent) -> Optional[BookingState]:
    """
    Resolve the state ``event`` leads to.

    Returns:
        The new state, or None when the event is a no-op (terminal booking,
        or a payment event for a booking that already left pending).

    Raises:
        InvalidTransitionError: The event is meaningless for a live booking
            in this state, e.g. completing a booking that was never paid.
    """
    if is_terminal(state):
        return None

    for t in TRANSITIONS:
        if t.from_state == state and t.event == event:
            return t.to_state

    if event in PAYMENT_EVENTS and state.status != BookingStatus.PENDING:
        return None

    valid = [e.value for e in valid_events(state)]
    raise InvalidTransitionError(
        f"No valid transition from '{state.status.value}/{state.payment_status.value}' "
        f"with event '{event.value}'. Valid events: {valid}"
    )


class BookingLifecycle:
    """Applies lifecycle events to stored bookings with a compare-and-set write."""

    MAX_ATTEMPTS = 3

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def apply_event(
        self,
        booking_id: str,
        event: Union[BookingEvent, str],
        payment_reference: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> TransitionResult:
        """
        Apply one event to a booking.

        Idempotent: re-delivering an event, or sending any event to a
        terminal booking, returns the current state with ``changed=False``.

        Raises:
            ValidationError: Unknown booking.
            InvalidTransitionError: Event not allowed from the current state.
            TransientError: Storage failure, or the booking kept changing
                underneath this call.
        """
        event = BookingEvent(event)
        actor = context.user_id if context else None

        for _ in range(self.MAX_ATTEMPTS):
            booking = self._store.get(booking_id)
            if booking is None:
                raise ValidationError(
                    ValidationKind.BOOKING_NOT_FOUND, f"Booking {booking_id} not found."
                )

            target = next_state(booking.state, event)
            if target is None:
                logger.info(
                    "Event %s ignored for booking %s in state %s/%s",
                    event.value, booking_id, booking.status.value, booking.payment_status.value,
                )
                return TransitionResult(booking_id, booking.state, changed=False)

            updated = self._store.update_state(
                booking_id, booking.state, target, payment_reference=payment_reference
            )
            if updated is not None:
                logger.info(
                    "Booking %s: %s/%s -> %s/%s (event: %s, by: %s)",
                    booking_id,
                    booking.status.value, booking.payment_status.value,
                    updated.status.value, updated.payment_status.value,
                    event.value, actor or "system",
                )
                return TransitionResult(booking_id, updated.state, changed=True)

            logger.debug("Booking %s changed concurrently, re-reading", booking_id)

        raise TransientError(
            TransientKind.STORAGE_UNAVAILABLE,
            f"Booking {booking_id} is being updated concurrently, please retry.",
        )

    def cancel_booking(
        self, booking_id: str, context: Optional[RequestContext] = None
    ) -> TransitionResult:
        return self.apply_event(booking_id, BookingEvent.CANCEL, context=context)

    def complete_booking(
        self, booking_id: str, context: Optional[RequestContext] = None
    ) -> TransitionResult:
        return self.apply_event(booking_id, BookingEvent.COMPLETE, context=context)
