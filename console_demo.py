"""
Offline console demo: runs booking flows against the in-memory stores.

Uses the real slot generator, validator and lifecycle with the seeded
sample catalog. No database, no listings service, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario race
    python console_demo.py --scenario cancel
"""

import argparse
import threading
from datetime import date, timedelta
from typing import Optional

from tradetrack.config import settings
from tradetrack.errors import BookingError, ConflictError
from tradetrack.schemas.booking_schema import Address, BookingEvent, BookingRequest, RequestContext
from tradetrack.scheduling.availability import AvailabilityService
from tradetrack.scheduling.lifecycle import BookingLifecycle, InvalidTransitionError
from tradetrack.scheduling.slots import format_time
from tradetrack.scheduling.validator import BookingValidator
from tradetrack.stores.booking_store import InMemoryBookingStore
from tradetrack.stores.catalog import InMemoryCatalog
from tradetrack.stores.notifier import LoggingNotifier
from tradetrack.utils import format_currency

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_ADDRESS = Address(
    line1="42 Wallaby Way",
    city="Springfield",
    state="IL",
    zip_code="62701",
    notes="Side gate is unlocked",
)


class ConsoleSession:
    """Drives the scheduling core from the terminal."""

    def __init__(self) -> None:
        self.catalog = InMemoryCatalog()
        self.store = InMemoryBookingStore()
        self.notifier = LoggingNotifier()
        self.availability = AvailabilityService(self.catalog, self.store)
        self.validator = BookingValidator(self.catalog, self.store, self.notifier)
        self.lifecycle = BookingLifecycle(self.store)
        self.day = date.today() + timedelta(days=1)

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def warn(self, text: str) -> None:
        print(f"{YELLOW}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.app_name.upper()} - {title}{RESET}")
        print(f"{BOLD}  Date: {self.day.isoformat()}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def show_slots(self, service_id: str, option_id: Optional[str] = None) -> list[str]:
        slots = self.availability.available_slots(service_id, self.day, option_id)
        times = [format_time(slot.start) for slot in slots]
        self.say(f"{len(times)} slots open for {service_id}:")
        self.system_log(", ".join(times) or "(none)")
        overruns = [format_time(slot.start) for slot in slots if slot.overruns_window]
        if overruns:
            self.system_log(f"Runs past closing: {', '.join(overruns)}")
        return times

    def book(
        self,
        service_id: str,
        option_id: str,
        slot_time: str,
        email: str,
        material: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Optional[str]:
        request = BookingRequest(
            service_id=service_id,
            option_id=option_id,
            material=material,
            date=self.day,
            time=slot_time,
            customer_email=email,
            address=DEMO_ADDRESS,
        )
        try:
            booking_id = self.validator.create_booking(request, RequestContext(user_id=user_id))
        except BookingError as exc:
            self.warn(f"{type(exc).__name__} ({exc.kind.value}): {exc.message}")
            return None

        booking = self.store.get(booking_id)
        self.say(
            f"Booked {booking.service_name} at {booking.time} for "
            f"{format_currency(booking.total_price, settings.currency_symbol)} "
            f"[{booking.status.value}/{booking.payment_status.value}]"
        )
        self.system_log(f"Booking id: {booking_id}")
        return booking_id

    def apply(self, booking_id: str, event: BookingEvent) -> None:
        try:
            result = self.lifecycle.apply_event(booking_id, event)
        except InvalidTransitionError as exc:
            self.warn(str(exc))
            return
        marker = "changed" if result.changed else "no-op"
        self.system_log(
            f"{event.value}: {result.state.status.value}/{result.state.payment_status.value} ({marker})"
        )

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    def scenario_booking(self) -> None:
        service_id = "svc-plumbing-001"
        self.show_slots(service_id, "faucet_replacement")

        print(f"\n{BLUE}[Customer] {RESET}Faucet replacement at 10:00 AM with the premium kit")
        booking_id = self.book(
            service_id, "faucet_replacement", "10:00 AM", " Jane.Doe@Example.com ",
            material="Premium faucet kit", user_id="user-jane",
        )
        if booking_id is None:
            return

        for message in self.notifier.sent:
            self.system_log(f"Notification to {message['to']}: {message['subject']}")

        print(f"\n{BLUE}[Payments] {RESET}payment_succeeded")
        self.apply(booking_id, BookingEvent.PAYMENT_SUCCEEDED)
        print(f"\n{BLUE}[Payments] {RESET}payment_succeeded (webhook retry)")
        self.apply(booking_id, BookingEvent.PAYMENT_SUCCEEDED)
        print(f"\n{BLUE}[Provider] {RESET}Job done")
        self.apply(booking_id, BookingEvent.COMPLETE)

        print()
        self.show_slots(service_id, "faucet_replacement")

    def scenario_race(self) -> None:
        service_id = "svc-electrical-001"
        self.show_slots(service_id, "outlet_installation")

        customers = [f"customer{i}@example.com" for i in range(5)]
        barrier = threading.Barrier(len(customers))
        outcomes: dict[str, str] = {}

        def attempt(email: str) -> None:
            request = BookingRequest(
                service_id=service_id,
                option_id="outlet_installation",
                date=self.day,
                time="9:00 AM",
                customer_email=email,
                address=DEMO_ADDRESS,
            )
            barrier.wait()
            try:
                outcomes[email] = self.validator.create_booking(request)
            except ConflictError as exc:
                outcomes[email] = f"conflict: {exc.message}"

        print(f"\n{BLUE}[Customers] {RESET}{len(customers)} customers book 9:00 AM at once")
        threads = [threading.Thread(target=attempt, args=(email,)) for email in customers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for email in customers:
            self.system_log(f"{email}: {outcomes[email]}")
        winners = [e for e in customers if not outcomes[e].startswith("conflict")]
        self.say(f"{len(winners)} booking created, {len(customers) - len(winners)} rejected")

        print()
        self.show_slots(service_id, "outlet_installation")

    def scenario_cancel(self) -> None:
        service_id = "svc-handyman-001"
        self.show_slots(service_id, "interior_painting")

        print(f"\n{BLUE}[Customer] {RESET}Interior painting at 4:30 PM")
        booking_id = self.book(
            service_id, "interior_painting", "4:30 PM", "sam@example.com",
            material="Premium paint (1 gallon)",
        )
        if booking_id is None:
            return

        print(f"\n{BLUE}[Provider] {RESET}Complete before payment")
        self.apply(booking_id, BookingEvent.COMPLETE)
        print(f"\n{BLUE}[Customer] {RESET}Cancel")
        self.apply(booking_id, BookingEvent.CANCEL)
        print(f"\n{BLUE}[Payments] {RESET}payment_succeeded after cancel")
        self.apply(booking_id, BookingEvent.PAYMENT_SUCCEEDED)

        print()
        self.show_slots(service_id, "interior_painting")

    SCENARIOS = {
        "booking": scenario_booking,
        "race": scenario_race,
        "cancel": scenario_cancel,
    }

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        handler = self.SCENARIOS.get(scenario)
        if handler is None:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        handler(self)
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run(self) -> None:
        self._banner("Console Demo")
        print(f"{BOLD}  Type 'quit' to exit{RESET}\n")

        for listing in self.catalog.get_all_listings():
            self.system_log(f"{listing['id']}: {listing['name']} ({listing['hours']})")

        while True:
            service_id = input(f"\n{BLUE}[Service id] {RESET}").strip()
            if service_id.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            listing = self.catalog.get_listing(service_id)
            if listing is None:
                self.warn(f"Unknown service {service_id!r}")
                continue

            for entry in listing.offerings:
                self.system_log(f"{entry.id}: {entry.name} ({entry.time_limit or 'default duration'})")
            option_id = input(f"{BLUE}[Option id] {RESET}").strip()
            if listing.find_offering(option_id) is None:
                self.warn(f"Unknown option {option_id!r}")
                continue

            self.show_slots(service_id, option_id)
            slot_time = input(f"{BLUE}[Time] {RESET}").strip()
            email = input(f"{BLUE}[Email] {RESET}").strip()
            booking_id = self.book(service_id, option_id, slot_time, email)
            if booking_id and input(f"{BLUE}[Simulate payment? y/n] {RESET}").strip().lower() == "y":
                self.apply(booking_id, BookingEvent.PAYMENT_SUCCEEDED)


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline scheduling console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
