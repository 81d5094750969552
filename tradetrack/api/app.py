"""
HTTP surface for slot queries, booking creation and lifecycle events.

Run with uvicorn's factory mode:
    uvicorn tradetrack.api.app:create_app --factory
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tradetrack.api.middleware import RequestLoggingMiddleware
from tradetrack.api.routes import router
from tradetrack.config import settings
from tradetrack.errors import ConflictError, TransientError, ValidationError, ValidationKind
from tradetrack.logging_context import configure_request_logging
from tradetrack.scheduling.availability import AvailabilityService
from tradetrack.scheduling.lifecycle import BookingLifecycle, InvalidTransitionError
from tradetrack.scheduling.validator import BookingValidator
from tradetrack.stores.booking_store import BookingStore, InMemoryBookingStore
from tradetrack.stores.catalog import CatalogLookup, HttpCatalogClient, InMemoryCatalog
from tradetrack.stores.notifier import BookingNotifier, LoggingNotifier
from tradetrack.stores.sql_store import SqlBookingStore

logger = logging.getLogger(__name__)

NOT_FOUND_KINDS = frozenset({ValidationKind.SERVICE_NOT_FOUND, ValidationKind.BOOKING_NOT_FOUND})
RETRY_AFTER_SECONDS = "1"


def _default_catalog() -> CatalogLookup:
    if settings.catalog.url:
        logger.info("Using listings service at %s", settings.catalog.url)
        return HttpCatalogClient(settings.catalog.url, timeout=settings.catalog.timeout_seconds)
    return InMemoryCatalog()


def _default_store() -> BookingStore:
    if settings.storage.backend == "sql":
        store = SqlBookingStore.from_url(settings.storage.database_url)
        store.create_schema()
        return store
    return InMemoryBookingStore()


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    status = 404 if exc.kind in NOT_FOUND_KINDS else 400
    return JSONResponse(status_code=status, content=exc.to_dict())


async def _conflict_error(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=409, content=exc.to_dict())


async def _transient_error(request: Request, exc: TransientError) -> JSONResponse:
    logger.warning("Transient failure on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=503,
        content=exc.to_dict(),
        headers={"Retry-After": RETRY_AFTER_SECONDS},
    )


async def _invalid_transition(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"error": type(exc).__name__, "message": str(exc)},
    )


def create_app(
    catalog: Optional[CatalogLookup] = None,
    store: Optional[BookingStore] = None,
    notifier: Optional[BookingNotifier] = None,
) -> FastAPI:
    """Build the API with its collaborators. Missing ones come from settings."""
    catalog = catalog if catalog is not None else _default_catalog()
    store = store if store is not None else _default_store()
    notifier = notifier if notifier is not None else LoggingNotifier()
    configure_request_logging()

    app = FastAPI(title=settings.app_name)
    app.state.catalog = catalog
    app.state.store = store
    app.state.notifier = notifier
    app.state.availability = AvailabilityService(catalog, store)
    app.state.validator = BookingValidator(catalog, store, notifier)
    app.state.lifecycle = BookingLifecycle(store)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(ConflictError, _conflict_error)
    app.add_exception_handler(TransientError, _transient_error)
    app.add_exception_handler(InvalidTransitionError, _invalid_transition)
    app.include_router(router)

    @app.get("/health")
    def health():
        return {"status": "ok", "service": settings.app_name}

    @app.on_event("shutdown")
    def close_catalog():
        if isinstance(catalog, HttpCatalogClient):
            catalog.close()

    return app
