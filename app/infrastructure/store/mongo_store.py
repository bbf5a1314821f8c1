from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable

from bson import ObjectId
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from app.application.exceptions import StoreUnavailableError
from app.application.ports.record_store import Collection, Populate, RecordStorePort, SortSpec


REFERENCE_FIELDS = ("clientId", "serviceId")


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class MongoConnection:
    """
    Process-wide lazy connection. The first connect() creates the single client;
    callers arriving while it is still connecting wait for it and then reuse it.
    """

    def __init__(
        self,
        uri: str | None,
        database_name: str,
        timeout_ms: int = 5000,
        client_factory: Callable[..., Any] = MongoClient,
    ) -> None:
        self._uri = uri
        self._database_name = database_name
        self._timeout_ms = timeout_ms
        self._client_factory = client_factory
        self._client: Any = None
        self._state = ConnectionState.DISCONNECTED
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> ConnectionState:
        return self._state

    def connect(self) -> Database:
        client = self._client
        if self._state is ConnectionState.CONNECTED and client is not None:
            return client[self._database_name]
        with self._lock:
            if self._state is not ConnectionState.CONNECTED:
                self._open()
            return self._client[self._database_name]

    def reset(self) -> None:
        """Drop the client and return to DISCONNECTED."""
        with self._lock:
            self._close_client()
            self._state = ConnectionState.DISCONNECTED

    def _open(self) -> None:
        # Runs under self._lock; the client is published only after ping succeeds
        if not self._uri:
            raise StoreUnavailableError("MONGODB_URI is not configured")
        self._state = ConnectionState.CONNECTING
        client = None
        try:
            client = self._client_factory(self._uri, serverSelectionTimeoutMS=self._timeout_ms, tz_aware=True)
            client.admin.command("ping")
        except PyMongoError as e:
            self._logger.error("MongoDB connection failed", extra={"error": str(e)})
            if client is not None:
                client.close()
            self._state = ConnectionState.DISCONNECTED
            raise StoreUnavailableError(f"Could not connect to MongoDB: {e}") from e
        self._client = client
        self._state = ConnectionState.CONNECTED
        self._logger.info("Connected to MongoDB database %s", self._database_name)

    def _close_client(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            try:
                client.close()
            except PyMongoError:
                self._logger.warning("Error while closing MongoDB client", exc_info=True)


class MongoRecordStore(RecordStorePort):
    def __init__(self, connection: MongoConnection) -> None:
        self._connection = connection

    def warm_up(self) -> None:
        self._connection.connect()

    def find(
        self,
        collection: Collection,
        filter: dict[str, Any] | None = None,
        sort: SortSpec | None = None,
        populate: tuple[Populate, ...] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        try:
            cursor = self._db()[collection.value].find(_to_query(filter))
            if sort:
                cursor = cursor.sort(sort)
            if limit is not None:
                cursor = cursor.limit(limit)
            docs = [_serialize(d) for d in cursor]
            for spec in populate:
                self._populate(docs, spec)
        except PyMongoError as e:
            raise StoreUnavailableError(str(e)) from e
        return docs

    def find_one(self, collection: Collection, filter: dict[str, Any]) -> dict[str, Any] | None:
        try:
            doc = self._db()[collection.value].find_one(_to_query(filter))
        except PyMongoError as e:
            raise StoreUnavailableError(str(e)) from e
        return _serialize(doc) if doc else None

    def insert(self, collection: Collection, payload: dict[str, Any]) -> dict[str, Any]:
        doc = _to_query(payload)
        doc.pop("_id", None)
        try:
            result = self._db()[collection.value].insert_one(doc)
        except PyMongoError as e:
            raise StoreUnavailableError(str(e)) from e
        doc["_id"] = result.inserted_id
        return _serialize(doc)

    def count(self, collection: Collection, filter: dict[str, Any] | None = None) -> int:
        try:
            return self._db()[collection.value].count_documents(_to_query(filter))
        except PyMongoError as e:
            raise StoreUnavailableError(str(e)) from e

    def _db(self) -> Database:
        return self._connection.connect()

    def _populate(self, docs: list[dict[str, Any]], spec: Populate) -> None:
        ids = {d[spec.field] for d in docs if d.get(spec.field) and ObjectId.is_valid(d[spec.field])}
        projection = {column: 1 for column in spec.columns}
        found: dict[str, dict[str, Any]] = {}
        if ids:
            cursor = self._db()[spec.collection.value].find(
                {"_id": {"$in": [ObjectId(i) for i in ids]}}, projection
            )
            found = {str(d["_id"]): _serialize(d) for d in cursor}
        for doc in docs:
            ref = doc.get(spec.field)
            doc[spec.field] = found.get(str(ref)) if ref is not None else None


def _to_query(values: dict[str, Any] | None) -> dict[str, Any]:
    """Convert string ids in `_id` and reference fields to ObjectIds."""
    query = dict(values or {})
    for key in ("_id", *REFERENCE_FIELDS):
        value = query.get(key)
        if isinstance(value, str) and ObjectId.is_valid(value):
            query[key] = ObjectId(value)
    return query


def _serialize(doc: dict[str, Any]) -> dict[str, Any]:
    d = dict(doc)
    for key, value in list(d.items()):
        if isinstance(value, ObjectId):
            d[key] = str(value)
    return d
