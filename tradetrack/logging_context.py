"""Request ID logging context for tracing a booking across modules.

Every HTTP request gets a correlation ID. Loggers obtained through
``get_request_logger`` stamp it on their records, and once
``configure_request_logging`` has run the root handlers print it, so a
slot query or booking attempt can be followed from the API down to the
store.

Usage:
    from tradetrack.logging_context import get_request_logger, set_request_id

    set_request_id("req-abc123")
    logger = get_request_logger(__name__)
    logger.info("Creating booking")  # [req-abc123] Creating booking
"""

import logging
import uuid
from contextvars import ContextVar

NO_REQUEST_ID = "-"
REQUEST_LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s [%(request_id)s]: %(message)s"

_request_id: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST_ID)


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def set_request_id(request_id: str) -> None:
    _request_id.set(request_id)


def get_request_id() -> str:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Stamps the current request ID on records that do not carry one yet."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def get_request_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestIdFilter) for f in logger.filters):
        logger.addFilter(RequestIdFilter())
    return logger


def configure_request_logging() -> None:
    """Make every root handler print the request ID.

    Handler-level filters see records from all loggers, including
    third-party ones, so the format string is always satisfiable.
    """
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
        handler.setFormatter(logging.Formatter(REQUEST_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
