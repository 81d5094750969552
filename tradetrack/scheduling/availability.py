"""
Availability filtering: candidate slots minus times already held.

Conflicts are exact matches on the formatted display time. A two-hour job
booked at 9:00 AM does not block 9:30 AM; overlap by duration is not
modelled.
"""

from datetime import date, time
from typing import Iterable, Optional, Sequence

from tradetrack.errors import ValidationError, ValidationKind
from tradetrack.logging_context import get_request_logger
from tradetrack.schemas.catalog_schema import ServiceListing
from tradetrack.scheduling.durations import parse_time_limit, resolve_service_option
from tradetrack.scheduling.slots import (
    BookingSlot,
    build_booking_slot,
    default_slots,
    format_time,
    generate_slots,
    parse_hours,
)
from tradetrack.stores.booking_store import BookingStore
from tradetrack.stores.catalog import CatalogLookup

logger = get_request_logger(__name__)


def filter_available(candidates: Sequence[time], booked_times: Iterable[str]) -> list[time]:
    """Return the candidates whose display string is not in ``booked_times``, in order."""
    taken = set(booked_times)
    return [slot for slot in candidates if format_time(slot) not in taken]


def candidate_slots(listing: ServiceListing, duration_hours: Optional[float] = None) -> list[time]:
    """Generate start times for a listing, substituting the canned set if none come out."""
    slots = generate_slots(parse_hours(listing.hours), duration_hours)
    if not slots:
        logger.warning("No slots generated for listing %s, using default slots", listing.id)
        slots = default_slots()
    return slots


class AvailabilityService:
    """Answers "which times can I book on this date" for a listing."""

    def __init__(self, catalog: CatalogLookup, store: BookingStore) -> None:
        self._catalog = catalog
        self._store = store

    def get_listing(self, service_id: str) -> ServiceListing:
        listing = self._catalog.get_listing(service_id)
        if listing is None:
            raise ValidationError(
                ValidationKind.SERVICE_NOT_FOUND, f"Service {service_id} not found."
            )
        return listing

    def available_slots(
        self,
        service_id: str,
        day: date,
        option_id: Optional[str] = None,
        listing: Optional[ServiceListing] = None,
    ) -> list[BookingSlot]:
        """
        Slots still open on ``day`` for a listing.

        When ``option_id`` names a catalog entry its duration is used for
        end times and overrun flags; otherwise the default duration applies.
        A caller that already resolved the listing passes it to skip the
        catalog lookup.
        """
        if listing is None:
            listing = self.get_listing(service_id)
        duration = parse_time_limit(None)
        if option_id is not None:
            entry = listing.find_offering(option_id)
            if entry is None:
                raise ValidationError(
                    ValidationKind.SERVICE_NOT_FOUND,
                    f"Option {option_id} is not offered by service {service_id}.",
                )
            duration = resolve_service_option(entry).duration_hours

        candidates = candidate_slots(listing, duration)
        booked = self._store.get_booked_times(listing.provider_id, day)
        open_slots = filter_available(candidates, booked)

        logger.info(
            "Availability for %s on %s: %d of %d slots open",
            service_id, day.isoformat(), len(open_slots), len(candidates),
        )
        window = parse_hours(listing.hours)
        return [build_booking_slot(day, start, duration, window) for start in open_slots]
