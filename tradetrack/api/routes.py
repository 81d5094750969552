from datetime import date as Date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from tradetrack.errors import ValidationError, ValidationKind
from tradetrack.schemas.booking_schema import (
    AvailabilityResponse,
    Booking,
    BookingRequest,
    CreateBookingResponse,
    PaymentEventRequest,
    RequestContext,
    SlotView,
    TransitionResponse,
    UserBookingsResponse,
)
from tradetrack.scheduling.availability import AvailabilityService
from tradetrack.scheduling.lifecycle import PAYMENT_EVENTS, BookingLifecycle, TransitionResult
from tradetrack.scheduling.slots import format_time
from tradetrack.scheduling.validator import BookingValidator
from tradetrack.stores.booking_store import BookingStore
from tradetrack.utils import normalize_email

router = APIRouter()

OVERRUN_NOTE = "Runs past the provider's closing time, additional charges may apply."


def get_context(request: Request) -> RequestContext:
    """Caller identity as forwarded by the auth gateway."""
    return RequestContext(
        user_id=request.headers.get("X-User-Sub"),
        request_id=getattr(request.state, "request_id", None),
    )


def get_availability(request: Request) -> AvailabilityService:
    return request.app.state.availability


def get_validator(request: Request) -> BookingValidator:
    return request.app.state.validator


def get_lifecycle(request: Request) -> BookingLifecycle:
    return request.app.state.lifecycle


def get_store(request: Request) -> BookingStore:
    return request.app.state.store


def _transition_response(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse(
        booking_id=result.booking_id,
        status=result.state.status,
        payment_status=result.state.payment_status,
        changed=result.changed,
    )


@router.get("/services/{service_id}/slots", response_model=AvailabilityResponse)
def available_slots(
    service_id: str,
    day: Date = Query(alias="date"),
    option_id: Optional[str] = None,
    availability: AvailabilityService = Depends(get_availability),
):
    listing = availability.get_listing(service_id)
    slots = availability.available_slots(service_id, day, option_id, listing=listing)
    message = (
        f"{len(slots)} time slots available on {day.isoformat()}."
        if slots else f"No slots available on {day.isoformat()}."
    )
    return AvailabilityResponse(
        service_id=service_id,
        provider_id=listing.provider_id,
        date=day,
        slots=[
            SlotView(
                time=format_time(slot.start),
                end_time=format_time(slot.end),
                duration_hours=slot.duration_hours,
                overruns_window=slot.overruns_window,
                note=OVERRUN_NOTE if slot.overruns_window else None,
            )
            for slot in slots
        ],
        message=message,
    )


@router.get("/providers/{provider_id}/booked")
def booked_slots(
    provider_id: str,
    day: Date = Query(alias="date"),
    store: BookingStore = Depends(get_store),
):
    return {
        "provider_id": provider_id,
        "date": day.isoformat(),
        "booked_slots": store.get_booked_times(provider_id, day),
    }


@router.post("/bookings", response_model=CreateBookingResponse, status_code=201)
def create_booking(
    data: BookingRequest,
    context: RequestContext = Depends(get_context),
    validator: BookingValidator = Depends(get_validator),
    store: BookingStore = Depends(get_store),
):
    booking_id = validator.create_booking(data, context)
    booking = store.get(booking_id)
    return CreateBookingResponse(
        booking_id=booking_id,
        status=booking.status,
        payment_status=booking.payment_status,
        total_price=booking.total_price,
    )


@router.get("/bookings", response_model=UserBookingsResponse)
def my_bookings(
    context: RequestContext = Depends(get_context),
    store: BookingStore = Depends(get_store),
):
    """Bookings the caller made and bookings made on the caller's listings.

    The gateway subject is the account email, which is also the
    ``provider_id`` on that account's listings.
    """
    if not context.user_id:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    return UserBookingsResponse(
        client_bookings=store.list_for_customer(normalize_email(context.user_id)),
        provider_bookings=store.list_for_provider(context.user_id),
    )


@router.get("/bookings/{booking_id}", response_model=Booking)
def get_booking(booking_id: str, store: BookingStore = Depends(get_store)):
    booking = store.get(booking_id)
    if booking is None:
        raise ValidationError(ValidationKind.BOOKING_NOT_FOUND, f"Booking {booking_id} not found.")
    return booking


@router.post("/bookings/{booking_id}/cancel", response_model=TransitionResponse)
def cancel_booking(
    booking_id: str,
    context: RequestContext = Depends(get_context),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    return _transition_response(lifecycle.cancel_booking(booking_id, context))


@router.post("/bookings/{booking_id}/complete", response_model=TransitionResponse)
def complete_booking(
    booking_id: str,
    context: RequestContext = Depends(get_context),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    return _transition_response(lifecycle.complete_booking(booking_id, context))


@router.post("/payments/events", response_model=TransitionResponse)
def payment_event(
    data: PaymentEventRequest,
    context: RequestContext = Depends(get_context),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    if data.event not in PAYMENT_EVENTS:
        raise HTTPException(status_code=400, detail=f"Not a payment event: {data.event.value}")
    result = lifecycle.apply_event(
        data.booking_id, data.event, payment_reference=data.payment_reference, context=context
    )
    return _transition_response(result)
