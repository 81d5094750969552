"""
Billable duration and price for a catalog entry.

Catalog time limits are free text entered by providers ("1.5 hours").
Only the exact strings in TIME_LIMIT_HOURS are recognised; anything else
resolves to the default duration rather than blocking a booking over a
cosmetic catalog value.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from tradetrack.config import settings
from tradetrack.schemas.catalog_schema import Material, ServiceCatalogEntry
from tradetrack.utils import to_money

logger = logging.getLogger(__name__)

TIME_LIMIT_HOURS: dict[str, float] = {
    "1 hour": 1.0,
    "1.5 hours": 1.5,
    "2 hours": 2.0,
    "2.5 hours": 2.5,
    "3 hours": 3.0,
}


@dataclass(frozen=True)
class ServiceOption:
    """Duration and base price resolved from a catalog entry."""
    duration_hours: float
    rate: Decimal


def parse_time_limit(time_limit: Optional[str]) -> float:
    """Map a catalog time limit to hours, falling back to the default duration."""
    if time_limit:
        key = " ".join(time_limit.split()).lower()
        if key in TIME_LIMIT_HOURS:
            return TIME_LIMIT_HOURS[key]
    logger.debug("Unrecognised time limit %r, using default duration", time_limit)
    return settings.schedule.default_duration_hours


def resolve_service_option(entry: ServiceCatalogEntry) -> ServiceOption:
    return ServiceOption(
        duration_hours=parse_time_limit(entry.time_limit),
        rate=to_money(entry.rate),
    )


def compute_total_price(rate: Decimal, material: Optional[Material] = None) -> Decimal:
    """Flat rate plus the chosen material, to the cent."""
    material_price = material.price if material is not None else Decimal("0")
    return to_money(to_money(rate) + to_money(material_price))
