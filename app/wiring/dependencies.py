import logging

from fastapi import Depends

from app.core.config import settings
from app.application.ports.record_store import RecordStorePort
from app.application.use_cases.analytics import AnalyticsAggregator
from app.application.use_cases.booking_draft import BookingDraftMachine
from app.application.use_cases.bookings import BookingCommands
from app.application.use_cases.clients import ClientCommands
from app.application.use_cases.fault_boundaries import BookingFaultBoundary
from app.application.use_cases.services import ServiceCommands
from app.infrastructure.http.booking_api_client import HttpBookingApi
from app.infrastructure.storage.json_storage import JsonFileKeyValueStorage
from app.infrastructure.store.memory_store import MemoryRecordStore
from app.infrastructure.store.mongo_store import MongoConnection, MongoRecordStore


_record_store: MongoRecordStore | MemoryRecordStore | None = None
_connection: MongoConnection | None = None


def get_connection() -> MongoConnection:
    global _connection
    if _connection is None:
        _connection = MongoConnection(
            uri=settings.MONGODB_URI,
            database_name=settings.DATABASE_NAME,
            timeout_ms=settings.MONGODB_TIMEOUT_MS,
        )
    return _connection


def get_record_store() -> RecordStorePort:
    global _record_store
    if _record_store is None:
        provider = (settings.STORE_PROVIDER or "").lower()
        if not provider:
            use_memory = settings.ENV.lower() in {"dev", "local"} and not settings.MONGODB_URI
            provider = "memory" if use_memory else "mongo"
        if provider == "memory":
            logging.getLogger(__name__).info("Using in-memory record store (ENV=%s)", settings.ENV)
            _record_store = MemoryRecordStore()
        else:
            _record_store = MongoRecordStore(get_connection())
    return _record_store


def reset_record_store() -> None:
    """Forget the store and connection so the next request rebuilds them."""
    global _record_store, _connection
    if _connection is not None:
        _connection.reset()
    _record_store = None
    _connection = None


def get_booking_commands(store: RecordStorePort = Depends(get_record_store)) -> BookingCommands:
    return BookingCommands(store=store)


def get_client_commands(store: RecordStorePort = Depends(get_record_store)) -> ClientCommands:
    return ClientCommands(store=store)


def get_service_commands(store: RecordStorePort = Depends(get_record_store)) -> ServiceCommands:
    return ServiceCommands(store=store, currency_symbol=settings.CURRENCY_SYMBOL)


def get_analytics_aggregator(store: RecordStorePort = Depends(get_record_store)) -> AnalyticsAggregator:
    return AnalyticsAggregator(store=store)


def build_booking_flow(
    base_url: str | None = None,
    storage_dir: str | None = None,
) -> tuple[BookingDraftMachine, BookingFaultBoundary]:
    """Client-side booking flow backed by file storage and the HTTP booking API."""
    storage = JsonFileKeyValueStorage(data_dir=storage_dir or settings.BOOKING_STORAGE_DIR)
    machine = BookingDraftMachine(
        storage=storage,
        api=HttpBookingApi(base_url=base_url),
        storage_key=settings.BOOKING_STORAGE_KEY,
    )
    boundary = BookingFaultBoundary(storage=storage, storage_key=settings.BOOKING_STORAGE_KEY)
    return machine, boundary
