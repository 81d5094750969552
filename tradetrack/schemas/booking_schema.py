"""Booking records, requests and availability responses."""

from dataclasses import dataclass
from datetime import date as Date, datetime
from decimal import Decimal
from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field

REQUIRED_ADDRESS_FIELDS = ("line1", "city", "state", "zip_code")


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PAYMENT_FAILED = "payment_failed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class BookingEvent(str, Enum):
    """Events that move a booking through its lifecycle."""
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    COMPLETE = "complete"
    CANCEL = "cancel"


# Every booking except a cancelled one occupies its (provider, date, time) slot.
HOLDING_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.COMPLETED,
    BookingStatus.PAYMENT_FAILED,
)


class BookingState(NamedTuple):
    status: BookingStatus
    payment_status: PaymentStatus


@dataclass
class RequestContext:
    """
    Caller identity for a single core operation.

    Passed explicitly by the HTTP layer (or a test) instead of being read
    from framework session state.
    """
    user_id: Optional[str] = None
    request_id: Optional[str] = None


class Address(BaseModel):
    """Service address. Every field is optional here so that the booking
    validator, not request parsing, decides what is missing."""
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    notes: Optional[str] = None

    def missing_fields(self) -> list[str]:
        return [
            name for name in REQUIRED_ADDRESS_FIELDS
            if not (getattr(self, name) or "").strip()
        ]

    def formatted(self) -> str:
        line2 = f", {self.line2}" if self.line2 else ""
        return f"{self.line1}{line2}, {self.city}, {self.state} {self.zip_code}"


class BookingRequest(BaseModel):
    """Customer's slot selection as submitted for booking."""
    service_id: str
    option_id: str
    material: Optional[str] = None
    date: Date
    time: str
    customer_email: str
    address: Address = Field(default_factory=Address)


class Booking(BaseModel):
    """Durable booking record with a snapshot of the catalog entry it was priced from."""
    id: str
    provider_id: str
    service_id: str
    option_id: str
    service_name: str
    rate: Decimal
    duration_hours: float
    material_name: Optional[str] = None
    material_price: Optional[Decimal] = None
    user_id: Optional[str] = None
    customer_email: str
    total_price: Decimal
    address: Address
    date: Date
    time: str
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_reference: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def state(self) -> BookingState:
        return BookingState(self.status, self.payment_status)

    @property
    def slot_key(self) -> tuple[str, str, str]:
        return (self.provider_id, self.date.isoformat(), self.time)


class SlotView(BaseModel):
    """A bookable start time as shown to the customer."""
    time: str
    end_time: str
    duration_hours: float
    overruns_window: bool = False
    note: Optional[str] = None


class AvailabilityResponse(BaseModel):
    service_id: str
    provider_id: str
    date: Date
    slots: list[SlotView] = Field(default_factory=list)
    message: str = ""


class CreateBookingResponse(BaseModel):
    booking_id: str
    status: BookingStatus
    payment_status: PaymentStatus
    total_price: Decimal


class PaymentEventRequest(BaseModel):
    """Payment outcome forwarded by the payment webhook after signature checks."""
    booking_id: str
    event: BookingEvent
    payment_reference: Optional[str] = None


class TransitionResponse(BaseModel):
    booking_id: str
    status: BookingStatus
    payment_status: PaymentStatus
    changed: bool


class UserBookingsResponse(BaseModel):
    """The caller's bookings as a customer and as a provider, newest first."""
    client_bookings: list[Booking] = Field(default_factory=list)
    provider_bookings: list[Booking] = Field(default_factory=list)
