from tradetrack.scheduling.availability import AvailabilityService, candidate_slots, filter_available
from tradetrack.scheduling.durations import compute_total_price, parse_time_limit, resolve_service_option
from tradetrack.scheduling.lifecycle import BookingLifecycle, InvalidTransitionError, next_state
from tradetrack.scheduling.slots import (
    BookingSlot,
    ProviderAvailability,
    format_time,
    generate_slots,
    parse_hours,
    parse_time,
)
from tradetrack.scheduling.validator import BookingValidator

__all__ = [
    "AvailabilityService", "candidate_slots", "filter_available",
    "compute_total_price", "parse_time_limit", "resolve_service_option",
    "BookingLifecycle", "InvalidTransitionError", "next_state",
    "BookingSlot", "ProviderAvailability", "format_time", "generate_slots",
    "parse_hours", "parse_time",
    "BookingValidator",
]
