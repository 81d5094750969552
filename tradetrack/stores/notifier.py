"""
Booking notifications for providers.

Delivery (email, SMS) belongs to the notification collaborator. The core
builds the message and hands it over; the default notifier only logs it.
"""

import logging
from collections import deque
from typing import Protocol

from tradetrack.config import settings
from tradetrack.schemas.booking_schema import Booking
from tradetrack.schemas.catalog_schema import ServiceListing
from tradetrack.utils import format_currency

logger = logging.getLogger(__name__)


class BookingNotifier(Protocol):
    def booking_created(self, booking: Booking, listing: ServiceListing) -> None: ...


def build_provider_message(booking: Booking) -> dict[str, str]:
    """Subject and plain-text body telling a provider about a new booking."""
    lines = [
        f"You have a new booking for {booking.service_name}!",
        "",
        f"Service: {booking.service_name}",
        f"Date: {booking.date.isoformat()}",
        f"Time: {booking.time}",
        f"Amount: {format_currency(booking.total_price, settings.currency_symbol)}",
        f"Customer Email: {booking.customer_email}",
        f"Service Address: {booking.address.formatted()}",
    ]
    if booking.material_name:
        lines.append(f"Materials: {booking.material_name}")
    if booking.address.notes:
        lines.append(f"Additional Notes: {booking.address.notes}")
    return {
        "subject": f"New Booking: {booking.service_name}",
        "body": "\n".join(lines),
    }


class LoggingNotifier:
    """Notifier that records the provider message in the application log."""

    def __init__(self) -> None:
        self.sent: deque[dict[str, str]] = deque(maxlen=100)

    def booking_created(self, booking: Booking, listing: ServiceListing) -> None:
        message = {"to": listing.provider_id, **build_provider_message(booking)}
        self.sent.append(message)
        logger.info("Provider notification queued for %s: %s", message["to"], message["subject"])
