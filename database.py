"""
MongoDB access for the portfolio API.

`MongoStore` owns one `MongoClient` for the whole process. It is built
explicitly and handed to the app factory, so tests can pass a fake with
the same methods instead.

Every operation takes an `Entity` (see schemas.py) which names the
collection, the default sort field and the validation rules.
"""

from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, MongoClient, ReturnDocument, monitoring
from pymongo.errors import PyMongoError

from errors import StoreConnectionError, StoreError, ValidationError
from logging_config import get_logger
from schemas import Entity

logger = get_logger(__name__)

CONNECTED = "connected"
ERROR = "error"
DISCONNECTED = "disconnected"
EVENTS = (CONNECTED, ERROR, DISCONNECTED)

DEFAULT_DATABASE = "test"

Listener = Callable[..., None]


def serialize_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Return a JSON-friendly copy with `_id` as a hex string."""
    out = dict(doc)
    if isinstance(out.get("_id"), ObjectId):
        out["_id"] = str(out["_id"])
    return out


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse an identifier, returning None when it cannot name any document."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


class _HeartbeatListener(monitoring.ServerHeartbeatListener):
    """Turns pymongo heartbeats into connected/error/disconnected transitions."""

    def __init__(self, store: "MongoStore"):
        self._store = store

    def started(self, event: monitoring.ServerHeartbeatStartedEvent) -> None:
        pass

    def succeeded(self, event: monitoring.ServerHeartbeatSucceededEvent) -> None:
        self._store._mark_connected()

    def failed(self, event: monitoring.ServerHeartbeatFailedEvent) -> None:
        self._store._mark_failed(event.reply)


class MongoStore:
    def __init__(
        self,
        uri: Optional[str],
        database_name: Optional[str] = None,
        *,
        timeout_ms: int = 10000,
        client_factory: Callable[..., Any] = MongoClient,
    ):
        self._uri = uri
        self._database_name = database_name
        self._timeout_ms = timeout_ms
        self._client_factory = client_factory
        self._client: Any = None
        self._db: Any = None
        self._connected = False
        self._listeners: Dict[str, List[Listener]] = {event: [] for event in EVENTS}

    # -----------------------------
    # Connection lifecycle
    # -----------------------------

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._connected

    @property
    def database_name(self) -> Optional[str]:
        return self._db.name if self._db is not None else None

    def add_listener(self, event: str, callback: Listener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown connection event: {event}")
        self._listeners[event].append(callback)

    def _emit(self, event: str, **info: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                callback(**info)
            except Exception:
                # Listeners are for visibility only and must not break the store.
                logger.exception("connection_listener_failed", connection_event=event)

    def _mark_connected(self) -> None:
        if not self._connected:
            self._connected = True
            self._emit(CONNECTED)

    def _mark_failed(self, error: Exception) -> None:
        self._emit(ERROR, error=error)
        if self._connected:
            self._connected = False
            self._emit(DISCONNECTED)

    def connect(self) -> None:
        """Open the client and verify the server answers within the timeout.

        Raises:
            StoreConnectionError: URI missing or malformed, or server unreachable
        """
        if self._client is not None:
            return
        if not self._uri:
            raise StoreConnectionError("MONGODB_URI is not defined")

        try:
            client = self._client_factory(
                self._uri,
                serverSelectionTimeoutMS=self._timeout_ms,
                tz_aware=True,
                event_listeners=[_HeartbeatListener(self)],
            )
        except PyMongoError as exc:
            self._emit(ERROR, error=exc)
            raise StoreConnectionError(f"Invalid MongoDB connection string: {exc}") from exc

        try:
            client.admin.command("ping")
        except PyMongoError as exc:
            client.close()
            self._emit(ERROR, error=exc)
            raise StoreConnectionError(f"MongoDB is unreachable: {exc}") from exc

        self._client = client
        self._db = client.get_default_database(default=self._database_name or DEFAULT_DATABASE)
        self._mark_connected()

    def close(self) -> None:
        if self._client is None:
            return
        self._client.close()
        self._client = None
        self._db = None
        was_connected = self._connected
        self._connected = False
        if was_connected:
            self._emit(DISCONNECTED)

    def _collection(self, entity: Entity) -> Any:
        if self._db is None:
            raise StoreError("MongoDB is not connected")
        return self._db[entity.collection]

    # -----------------------------
    # Document operations
    # -----------------------------

    def list_all(
        self,
        entity: Entity,
        sort_field: Optional[str] = None,
        direction: int = DESCENDING,
    ) -> List[Dict[str, Any]]:
        collection = self._collection(entity)
        try:
            cursor = collection.find({}).sort(sort_field or entity.sort_field, direction)
            return [serialize_document(doc) for doc in cursor]
        except PyMongoError as exc:
            raise StoreError(f"Failed to list {entity.collection}: {exc}") from exc

    def insert(self, entity: Entity, payload: Any) -> Dict[str, Any]:
        """Validate and insert one document.

        Raises:
            ValidationError: payload violates the entity schema; nothing is written
            StoreError: the write failed
        """
        document = entity.validate_new(payload)
        collection = self._collection(entity)
        try:
            result = collection.insert_one(document)
        except PyMongoError as exc:
            raise StoreError(f"Failed to insert into {entity.collection}: {exc}") from exc
        document["_id"] = result.inserted_id
        return serialize_document(document)

    def update_by_id(
        self,
        entity: Entity,
        document_id: str,
        patch: Any,
        *,
        return_updated: bool = True,
        validate: bool = True,
    ) -> Optional[Dict[str, Any]]:
        """Set the supplied fields on one document.

        Returns the document after (or before, when `return_updated` is
        False) the update, or None when `document_id` matches nothing.
        """
        if validate:
            changes = entity.validate_patch(patch)
        elif isinstance(patch, dict):
            changes = {k: v for k, v in patch.items() if k != "_id"}
        else:
            raise ValidationError(f"{entity.name} payload must be a JSON object")

        oid = to_object_id(document_id)
        if oid is None:
            return None

        collection = self._collection(entity)
        try:
            if not changes:
                doc = collection.find_one({"_id": oid})
            else:
                doc = collection.find_one_and_update(
                    {"_id": oid},
                    {"$set": changes},
                    return_document=ReturnDocument.AFTER if return_updated else ReturnDocument.BEFORE,
                )
        except PyMongoError as exc:
            raise StoreError(f"Failed to update {entity.collection}/{document_id}: {exc}") from exc
        return serialize_document(doc) if doc is not None else None

    def delete_by_id(self, entity: Entity, document_id: str) -> bool:
        oid = to_object_id(document_id)
        if oid is None:
            return False
        collection = self._collection(entity)
        try:
            result = collection.delete_one({"_id": oid})
        except PyMongoError as exc:
            raise StoreError(f"Failed to delete {entity.collection}/{document_id}: {exc}") from exc
        return result.deleted_count > 0
