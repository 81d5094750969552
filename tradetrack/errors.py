"""Typed failures raised by the scheduling core.

Callers are expected to branch on the exception class and its ``kind``:
validation failures are shown to the user as-is, conflicts prompt a fresh
availability query, and transient failures are retried with backoff.
"""

from enum import Enum


class ValidationKind(str, Enum):
    MISSING_ADDRESS = "missing_address"
    SERVICE_NOT_FOUND = "service_not_found"
    INVALID_MATERIAL = "invalid_material"
    INVALID_SLOT = "invalid_slot"
    BOOKING_NOT_FOUND = "booking_not_found"


class ConflictKind(str, Enum):
    SLOT_TAKEN = "slot_taken"


class TransientKind(str, Enum):
    STORAGE_UNAVAILABLE = "storage_unavailable"
    CATALOG_LOOKUP_TIMEOUT = "catalog_lookup_timeout"
    CATALOG_UNAVAILABLE = "catalog_unavailable"


class BookingError(Exception):
    """Base class for every failure the core reports to its callers."""

    def __init__(self, kind: Enum, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "kind": self.kind.value, "message": self.message}


class ValidationError(BookingError):
    """The request is malformed or references something that does not exist."""

    def __init__(self, kind: ValidationKind, message: str) -> None:
        super().__init__(kind, message)


class ConflictError(BookingError):
    """Another booking won the slot. Re-fetch availability and pick again."""

    def __init__(self, kind: ConflictKind = ConflictKind.SLOT_TAKEN, message: str = "") -> None:
        super().__init__(kind, message or "That time is no longer available, please pick another time.")


class TransientError(BookingError):
    """A collaborator timed out or is unavailable. Safe to retry."""

    def __init__(self, kind: TransientKind, message: str) -> None:
        super().__init__(kind, message)
