"""
Slot generation for a provider's daily working window.

Start times are emitted at a fixed interval (half-hourly by default) for
every whole hour that fits inside the window. The service duration does not
change slot density: a long job may run past closing, which is reported as
``overruns_window`` on the slot rather than hidden from the customer.

Usage:
    window = parse_hours("9 AM - 5 PM")
    [format_time(t) for t in generate_slots(window)]
    # ['9:00 AM', '9:30 AM', ..., '4:30 PM']
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from tradetrack.config import settings

logger = logging.getLogger(__name__)

DEFAULT_SLOT_HOURS = range(9, 17)

_DISPLAY_TIME = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")
_HOURS_RANGE = re.compile(
    r"^\s*(\d{1,2})(?::\d{2})?\s*([ap])?\.?m?\.?\s*(?:-|to)\s*"
    r"(\d{1,2})(?::\d{2})?\s*([ap])?\.?m?\.?\s*$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ProviderAvailability:
    """Daily working window in provider-local whole hours."""
    start_hour: int
    end_hour: int

    def is_well_formed(self) -> bool:
        return 0 <= self.start_hour < self.end_hour <= 23


@dataclass(frozen=True)
class BookingSlot:
    """A start time on a date, with the end time implied by the service duration."""
    date: date
    start: time
    duration_hours: float
    end: time
    overruns_window: bool = False


def fallback_window() -> ProviderAvailability:
    return ProviderAvailability(
        settings.schedule.fallback_start_hour, settings.schedule.fallback_end_hour
    )


def effective_window(availability: ProviderAvailability) -> ProviderAvailability:
    """Return the window slots are generated from, replacing malformed input."""
    if availability.is_well_formed():
        return availability
    logger.warning(
        "Malformed availability %d-%d, using fallback window",
        availability.start_hour, availability.end_hour,
    )
    return fallback_window()


def generate_slots(
    availability: ProviderAvailability, duration_hours: Optional[float] = None
) -> list[time]:
    """
    Produce the ordered candidate start times for one day.

    Args:
        availability: The provider's working window. An inverted or
            out-of-range window is replaced by the fallback window.
        duration_hours: Accepted for callers that know the service
            duration; slot density does not depend on it.

    Returns:
        Start times at the configured interval, all within
        ``[start_hour, end_hour)``.
    """
    window = effective_window(availability)
    step = settings.schedule.slot_interval_minutes

    slots: list[time] = []
    hour = window.start_hour
    while hour + 1 <= window.end_hour:
        slots.extend(time(hour, minute) for minute in range(0, 60, step))
        hour += 1

    logger.debug(
        "Generated %d slots for %d-%d (duration %s)",
        len(slots), window.start_hour, window.end_hour, duration_hours,
    )
    return slots


def default_slots() -> list[time]:
    """Canned hourly slots, 9 AM to 4 PM, used when generation yields nothing."""
    return [time(hour, 0) for hour in DEFAULT_SLOT_HOURS]


def build_booking_slot(
    day: date, start: time, duration_hours: float, availability: ProviderAvailability
) -> BookingSlot:
    window = effective_window(availability)
    started_at = datetime.combine(day, start)
    ends_at = started_at + timedelta(hours=duration_hours)
    closes_at = datetime.combine(day, time(window.end_hour, 0))
    return BookingSlot(
        date=day,
        start=start,
        duration_hours=duration_hours,
        end=ends_at.time(),
        overruns_window=ends_at > closes_at,
    )


def format_time(value: time) -> str:
    """Render a time in the display format used for slot matching ("9:00 AM")."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def parse_time(text: str) -> time:
    """Parse a display time such as "9:30 AM". Raises ValueError on anything else."""
    match = _DISPLAY_TIME.match(text or "")
    if not match:
        raise ValueError(f"Invalid time {text!r}, expected a value like '9:00 AM'")
    hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not 1 <= hour <= 12 or minute > 59:
        raise ValueError(f"Invalid time {text!r}")
    return time(_to_24h(hour, meridiem), minute)


def parse_hours(text: Optional[str]) -> ProviderAvailability:
    """
    Read a listing's working hours ("9-17", "9 AM - 5 PM", "10:00-18:00").

    Minutes are ignored. Text that cannot be read yields the fallback
    window. A range such as "9-5" parses literally to an inverted window,
    which slot generation then replaces with the fallback.
    """
    match = _HOURS_RANGE.match(text or "")
    if not match:
        logger.debug("Unreadable hours %r, using fallback window", text)
        return fallback_window()

    start, start_meridiem, end, end_meridiem = match.groups()
    start_hour, end_hour = int(start), int(end)
    if start_meridiem:
        start_hour = _to_24h(start_hour, start_meridiem.upper() + "M")
    if end_meridiem:
        end_hour = _to_24h(end_hour, end_meridiem.upper() + "M")
    return ProviderAvailability(start_hour, end_hour)


def _to_24h(hour: int, meridiem: str) -> int:
    if meridiem == "AM":
        return 0 if hour == 12 else hour
    return hour if hour == 12 else hour + 12
