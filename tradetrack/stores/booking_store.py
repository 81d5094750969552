"""
In-memory booking store.

Enforces the same rule a production database must: at most one holding
booking per (provider, date, time). Used by tests, the console demo and
single-process deployments; SqlBookingStore is the durable equivalent.
"""

import logging
import threading
from datetime import date, datetime, timezone
from typing import Callable, Optional, Protocol

from tradetrack.errors import ConflictError
from tradetrack.schemas.booking_schema import HOLDING_STATUSES, Booking, BookingState

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    """Storage collaborator for booking records."""

    def insert(self, booking: Booking) -> str:
        """Persist a new booking. Raises ConflictError if its slot is already held."""
        ...

    def get(self, booking_id: str) -> Optional[Booking]: ...

    def get_booked_times(self, provider_id: str, day: date) -> list[str]:
        """Display times of non-cancelled bookings for a provider on a date."""
        ...

    def has_active_booking(self, provider_id: str, day: date, time: str) -> bool: ...

    def list_for_customer(self, customer_email: str) -> list[Booking]:
        """Bookings made by a customer, newest first."""
        ...

    def list_for_provider(self, provider_id: str) -> list[Booking]:
        """Bookings for a provider's listings, newest first."""
        ...

    def update_state(
        self,
        booking_id: str,
        expected: BookingState,
        new: BookingState,
        payment_reference: Optional[str] = None,
    ) -> Optional[Booking]:
        """Compare-and-set the booking state. Returns None if ``expected`` no longer matches."""
        ...


class InMemoryBookingStore:
    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}
        self._held: dict[tuple[str, str, str], str] = {}
        self._lock = threading.Lock()

    def insert(self, booking: Booking) -> str:
        key = booking.slot_key
        with self._lock:
            holding = booking.status in HOLDING_STATUSES
            if holding and key in self._held:
                raise ConflictError()
            self._bookings[booking.id] = booking.model_copy(deep=True)
            if holding:
                self._held[key] = booking.id
        logger.info("Booking stored: %s for %s on %s at %s", booking.id, *key)
        return booking.id

    def get(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            booking = self._bookings.get(booking_id)
            return booking.model_copy(deep=True) if booking else None

    def get_booked_times(self, provider_id: str, day: date) -> list[str]:
        wanted = day.isoformat()
        with self._lock:
            return [t for (p, d, t) in self._held if p == provider_id and d == wanted]

    def has_active_booking(self, provider_id: str, day: date, time: str) -> bool:
        with self._lock:
            return (provider_id, day.isoformat(), time) in self._held

    def list_for_customer(self, customer_email: str) -> list[Booking]:
        return self._newest_first(lambda b: b.customer_email == customer_email)

    def list_for_provider(self, provider_id: str) -> list[Booking]:
        return self._newest_first(lambda b: b.provider_id == provider_id)

    def _newest_first(self, predicate: Callable[[Booking], bool]) -> list[Booking]:
        with self._lock:
            matches = [b.model_copy(deep=True) for b in self._bookings.values() if predicate(b)]
        return sorted(matches, key=lambda b: b.created_at, reverse=True)

    def update_state(
        self,
        booking_id: str,
        expected: BookingState,
        new: BookingState,
        payment_reference: Optional[str] = None,
    ) -> Optional[Booking]:
        with self._lock:
            current = self._bookings.get(booking_id)
            if current is None or current.state != expected:
                return None

            changes = {
                "status": new.status,
                "payment_status": new.payment_status,
                "updated_at": datetime.now(timezone.utc),
            }
            if payment_reference:
                changes["payment_reference"] = payment_reference
            updated = current.model_copy(update=changes)
            self._bookings[booking_id] = updated

            if new.status not in HOLDING_STATUSES and self._held.get(current.slot_key) == booking_id:
                del self._held[current.slot_key]
            return updated.model_copy(deep=True)

    def reset(self) -> None:
        """Clear all bookings. Used by test fixtures for isolation."""
        with self._lock:
            self._bookings.clear()
            self._held.clear()
