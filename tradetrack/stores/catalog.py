"""
Service listings with their catalog entries, pricing and durations.

The in-memory catalog is seeded with sample trade listings. In production
the listings collaborator is reached over HTTP through HttpCatalogClient.
"""

import logging
from typing import Optional, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from tradetrack.errors import TransientError, TransientKind
from tradetrack.schemas.catalog_schema import ServiceCatalogEntry, ServiceListing

logger = logging.getLogger(__name__)

SAMPLE_LISTINGS: list[dict] = [
    {
        "id": "svc-plumbing-001",
        "provider_id": "mike.t@tradetrack.example",
        "name": "Mike's Plumbing",
        "trade": "plumber",
        "hours": "9-17",
        "offerings": [
            {
                "id": "faucet_replacement",
                "category": "Plumbing",
                "name": "Faucet Replacement",
                "rate": "120",
                "time_limit": "1.5 hours",
                "description": "Remove old faucet and install new one, including testing for leaks",
                "materials": [
                    {"name": "Standard faucet parts", "price": "30"},
                    {"name": "Premium faucet kit", "price": "65"},
                ],
            },
            {
                "id": "toilet_repair",
                "category": "Plumbing",
                "name": "Toilet Repair",
                "rate": "100",
                "time_limit": "1 hour",
                "description": "Fix running toilet, replace flapper or fill valve",
                "materials": [
                    {"name": "Basic toilet repair kit", "price": "25"},
                    {"name": "Complete flush system", "price": "45"},
                ],
            },
            {
                "id": "pipe_leak_fix",
                "category": "Plumbing",
                "name": "Pipe Leak Repair",
                "rate": "150",
                "time_limit": "2 hours",
                "description": "Locate and fix leaking pipes under sinks or in accessible areas",
            },
        ],
    },
    {
        "id": "svc-electrical-001",
        "provider_id": "priya.m@tradetrack.example",
        "name": "Bright Spark Electrical",
        "trade": "electrician",
        "hours": "8 AM - 4 PM",
        "offerings": [
            {
                "id": "outlet_installation",
                "category": "Electrical",
                "name": "Outlet Installation",
                "rate": "85",
                "time_limit": "1 hour",
                "description": "Install new electrical outlet or replace existing one",
                "materials": [
                    {"name": "Standard outlet", "price": "10"},
                    {"name": "GFCI outlet", "price": "25"},
                    {"name": "USB outlet", "price": "35"},
                ],
            },
            {
                "id": "ceiling_fan",
                "category": "Electrical",
                "name": "Ceiling Fan Installation",
                "rate": "150",
                "time_limit": "2 hours",
                "description": "Install new ceiling fan or replace existing fan",
            },
        ],
    },
    {
        "id": "svc-handyman-001",
        "provider_id": "joe@tradetrack.example",
        "name": "Joe's Handyman Services",
        "trade": "handyman",
        # Written as a 12-hour range without AM/PM; generation falls back to 9-17.
        "hours": "9-5",
        "offerings": [
            {
                "id": "cabinet_installation",
                "category": "Carpentry",
                "name": "Cabinet Installation",
                "rate": "180",
                "time_limit": "2.5 hours",
                "description": "Hang and level cabinets, install hardware",
            },
            {
                "id": "interior_painting",
                "category": "Painting",
                "name": "Interior Painting",
                "rate": "200",
                "time_limit": "3 hours",
                "description": "Paint one standard room, walls only",
                "materials": [
                    {"name": "Standard paint (1 gallon)", "price": "35"},
                    {"name": "Premium paint (1 gallon)", "price": "55"},
                ],
            },
            {
                "id": "furniture_assembly",
                "category": "Furniture",
                "name": "Furniture Assembly",
                "rate": "90",
                "time_limit": "about an hour and a half",
                "description": "Assemble flat-pack furniture",
            },
        ],
    },
]


class CatalogLookup(Protocol):
    """Listings collaborator used by availability and booking validation."""

    def get_listing(self, service_id: str) -> Optional[ServiceListing]: ...

    def get_service_catalog(self, service_id: str) -> Optional[list[ServiceCatalogEntry]]: ...


class InMemoryCatalog:
    """Dictionary-backed listings, seeded with SAMPLE_LISTINGS by default."""

    def __init__(self, listings: Optional[list[ServiceListing]] = None) -> None:
        if listings is None:
            listings = [ServiceListing.model_validate(raw) for raw in SAMPLE_LISTINGS]
        self._listings: dict[str, ServiceListing] = {listing.id: listing for listing in listings}

    def get_listing(self, service_id: str) -> Optional[ServiceListing]:
        listing = self._listings.get(service_id.strip())
        if listing is None:
            logger.debug("Listing not found: %s", service_id)
        return listing

    def get_service_catalog(self, service_id: str) -> Optional[list[ServiceCatalogEntry]]:
        listing = self.get_listing(service_id)
        return list(listing.offerings) if listing else None

    def get_all_listings(self) -> list[dict]:
        """Return all listings with basic info."""
        return [
            {"id": listing.id, "name": listing.name, "trade": listing.trade, "hours": listing.hours}
            for listing in self._listings.values()
        ]

    def upsert_listing(self, listing: ServiceListing) -> None:
        self._listings[listing.id] = listing
        logger.info("Listing saved: %s (%d offerings)", listing.id, len(listing.offerings))


class HttpCatalogClient:
    """Fetches listings from the listings service at ``GET {base_url}/services/{id}``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 3.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def get_listing(self, service_id: str) -> Optional[ServiceListing]:
        try:
            resp = self._client.get(f"/services/{service_id}")
        except httpx.TimeoutException as exc:
            logger.warning("Catalog lookup timed out for %s", service_id)
            raise TransientError(
                TransientKind.CATALOG_LOOKUP_TIMEOUT,
                f"Timed out looking up service {service_id}.",
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("Catalog unreachable for %s: %s", service_id, exc)
            raise TransientError(
                TransientKind.CATALOG_UNAVAILABLE, "Service catalog is unavailable."
            ) from exc

        if resp.status_code == 404:
            return None
        if not resp.is_success:
            logger.warning("Catalog returned %d for %s", resp.status_code, service_id)
            raise TransientError(
                TransientKind.CATALOG_UNAVAILABLE,
                f"Service catalog returned {resp.status_code}.",
            )
        try:
            return ServiceListing.model_validate(resp.json())
        except (ValueError, PydanticValidationError) as exc:
            logger.warning("Unreadable catalog response for %s: %s", service_id, exc)
            raise TransientError(
                TransientKind.CATALOG_UNAVAILABLE,
                f"Service catalog sent an unreadable listing for {service_id}.",
            ) from exc

    def get_service_catalog(self, service_id: str) -> Optional[list[ServiceCatalogEntry]]:
        listing = self.get_listing(service_id)
        return list(listing.offerings) if listing else None

    def close(self) -> None:
        self._client.close()
