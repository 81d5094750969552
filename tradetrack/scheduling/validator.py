"""
Booking validator: the single authoritative path from a slot selection to a
stored pending booking.

Checks run in a fixed order so callers always see the most fundamental
problem first: address, then service and option, then the slot itself,
then conflicts. The conflict pre-check gives fast feedback; the store's
uniqueness constraint decides races.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from tradetrack.errors import ConflictError, ValidationError, ValidationKind
from tradetrack.logging_context import get_request_logger
from tradetrack.schemas.booking_schema import (
    Booking,
    BookingRequest,
    BookingStatus,
    PaymentStatus,
    RequestContext,
)
from tradetrack.schemas.catalog_schema import Material, ServiceCatalogEntry, ServiceListing
from tradetrack.scheduling.availability import candidate_slots
from tradetrack.scheduling.durations import compute_total_price, resolve_service_option
from tradetrack.scheduling.slots import format_time, parse_time
from tradetrack.stores.booking_store import BookingStore
from tradetrack.stores.catalog import CatalogLookup
from tradetrack.stores.notifier import BookingNotifier
from tradetrack.utils import normalize_email

logger = get_request_logger(__name__)


class BookingValidator:
    def __init__(
        self,
        catalog: CatalogLookup,
        store: BookingStore,
        notifier: Optional[BookingNotifier] = None,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._notifier = notifier

    def create_booking(
        self, request: BookingRequest, context: Optional[RequestContext] = None
    ) -> str:
        """
        Validate a slot selection and store it as a pending booking.

        Returns:
            The new booking id, which the payment collaborator uses to
            correlate its payment intent.

        Raises:
            ValidationError: Missing address fields, unknown service, option
                or material, or a time that is not one of the offered slots.
            ConflictError: The slot is already held, either seen by the
                pre-check or lost in the insert race.
            TransientError: Catalog or storage failure.
        """
        context = context or RequestContext()

        missing = request.address.missing_fields()
        if missing:
            raise ValidationError(
                ValidationKind.MISSING_ADDRESS,
                f"Cannot create booking - missing required address fields: {', '.join(missing)}.",
            )

        listing, entry = self._resolve_offering(request.service_id, request.option_id)
        material = self._resolve_material(entry, request.material)
        slot_time = self._resolve_slot(listing, request.time)

        if self._store.has_active_booking(listing.provider_id, request.date, slot_time):
            logger.info(
                "Pre-check conflict for %s on %s at %s",
                listing.provider_id, request.date.isoformat(), slot_time,
            )
            raise ConflictError()

        booking = self._build_booking(request, context, listing, entry, material, slot_time)
        booking_id = self._store.insert(booking)
        logger.info(
            "Booking created: %s for %s on %s at %s (total %s)",
            booking_id, listing.provider_id, request.date.isoformat(), slot_time,
            booking.total_price,
        )

        if self._notifier is not None:
            try:
                self._notifier.booking_created(booking, listing)
            except Exception:
                logger.exception("Provider notification failed for booking %s", booking_id)

        return booking_id

    def _resolve_offering(
        self, service_id: str, option_id: str
    ) -> tuple[ServiceListing, ServiceCatalogEntry]:
        listing = self._catalog.get_listing(service_id)
        if listing is None:
            raise ValidationError(
                ValidationKind.SERVICE_NOT_FOUND, f"Service {service_id} not found."
            )
        entry = listing.find_offering(option_id)
        if entry is None:
            raise ValidationError(
                ValidationKind.SERVICE_NOT_FOUND,
                f"Option {option_id} is not offered by service {service_id}.",
            )
        return listing, entry

    @staticmethod
    def _resolve_material(
        entry: ServiceCatalogEntry, material_name: Optional[str]
    ) -> Optional[Material]:
        if not material_name or not material_name.strip():
            return None
        material = entry.find_material(material_name)
        if material is None:
            raise ValidationError(
                ValidationKind.INVALID_MATERIAL,
                f"Material {material_name!r} is not available for {entry.name}.",
            )
        return material

    @staticmethod
    def _resolve_slot(listing: ServiceListing, time_text: str) -> str:
        """Return the canonical display time, or fail if it is not an offered slot."""
        try:
            slot_time = format_time(parse_time(time_text))
        except ValueError as exc:
            raise ValidationError(ValidationKind.INVALID_SLOT, str(exc)) from None

        offered = {format_time(t) for t in candidate_slots(listing)}
        if slot_time not in offered:
            raise ValidationError(
                ValidationKind.INVALID_SLOT,
                f"{slot_time} is outside the working hours of {listing.name}.",
            )
        return slot_time

    @staticmethod
    def _build_booking(
        request: BookingRequest,
        context: RequestContext,
        listing: ServiceListing,
        entry: ServiceCatalogEntry,
        material: Optional[Material],
        slot_time: str,
    ) -> Booking:
        option = resolve_service_option(entry)
        now = datetime.now(timezone.utc)
        return Booking(
            id=uuid.uuid4().hex,
            provider_id=listing.provider_id,
            service_id=listing.id,
            option_id=entry.id,
            service_name=entry.name,
            rate=option.rate,
            duration_hours=option.duration_hours,
            material_name=material.name if material else None,
            material_price=material.price if material else None,
            user_id=context.user_id,
            customer_email=normalize_email(request.customer_email),
            total_price=compute_total_price(option.rate, material),
            address=request.address,
            date=request.date,
            time=slot_time,
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
