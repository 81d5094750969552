from tradetrack.stores.booking_store import BookingStore, InMemoryBookingStore
from tradetrack.stores.catalog import CatalogLookup, HttpCatalogClient, InMemoryCatalog
from tradetrack.stores.notifier import BookingNotifier, LoggingNotifier
from tradetrack.stores.sql_store import SqlBookingStore

__all__ = [
    "BookingStore", "InMemoryBookingStore", "SqlBookingStore",
    "CatalogLookup", "InMemoryCatalog", "HttpCatalogClient",
    "BookingNotifier", "LoggingNotifier",
]
