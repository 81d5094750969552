"""Service listing and catalog entry models."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Material(BaseModel):
    """Optional add-on a customer can pick for a catalog entry."""
    name: str
    price: Decimal = Field(ge=0)


class ServiceCatalogEntry(BaseModel):
    """One bookable offering with a flat rate and an estimated time limit."""
    id: str
    name: str
    category: str = ""
    rate: Decimal = Field(ge=0)
    time_limit: Optional[str] = None
    materials: Optional[list[Material]] = None
    description: str = ""

    @field_validator("materials")
    @classmethod
    def _materials_not_empty(cls, value: Optional[list[Material]]) -> Optional[list[Material]]:
        if value is not None and not value:
            raise ValueError("materials must be omitted or contain at least one entry")
        return value

    def find_material(self, name: str) -> Optional[Material]:
        """Look up a material by name, ignoring case and surrounding whitespace."""
        wanted = name.strip().lower()
        for material in self.materials or []:
            if material.name.strip().lower() == wanted:
                return material
        return None


class ServiceListing(BaseModel):
    """A provider's listing: working hours plus the offerings it sells."""
    id: str
    provider_id: str
    name: str
    trade: str = ""
    hours: Optional[str] = None
    offerings: list[ServiceCatalogEntry] = Field(default_factory=list)

    def find_offering(self, option_id: str) -> Optional[ServiceCatalogEntry]:
        for entry in self.offerings:
            if entry.id == option_id:
                return entry
        return None
