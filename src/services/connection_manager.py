"""MongoDB connection lifecycle, capability checks and connection events"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from pymongo import AsyncMongoClient
from pymongo.errors import ConfigurationError, OperationFailure, PyMongoError
from pymongo.operations import SearchIndexModel

from src.config import AppConfig, config
from src.services.errors import ErrorCode, MongoDBError

logger = logging.getLogger(__name__)

CONNECTION_SUCCESS = "connection-success"
CONNECTION_CLOSE = "connection-close"
CONNECTION_ERROR = "connection-error"

Listener = Callable[[], None]


class ConnectionHandle(Protocol):
    """Operations available on an established connection"""

    async def is_vector_search_supported(self) -> bool: ...

    async def list_search_indexes(self, database: str, collection: str) -> list[dict[str, Any]]: ...

    async def list_indexes(self, database: str, collection: str) -> list[dict[str, Any]]: ...

    async def create_index(
        self, database: str, collection: str, keys: dict[str, Any], name: str | None = None
    ) -> str: ...

    async def create_search_index(
        self,
        database: str,
        collection: str,
        definition: dict[str, Any],
        name: str | None = None,
        index_type: str = "vectorSearch",
    ) -> str: ...

    async def drop_index(self, database: str, collection: str, index_name: str) -> dict[str, Any]: ...

    async def insert_many(
        self, database: str, collection: str, documents: list[dict[str, Any]]
    ) -> list[Any]: ...

    async def aggregate(
        self,
        database: str,
        collection: str,
        pipeline: list[dict[str, Any]],
        max_time_ms: int | None = None,
    ) -> list[dict[str, Any]]: ...

    async def close(self) -> None: ...


class MongoConnectionHandle:
    """ConnectionHandle backed by pymongo's asyncio client"""

    def __init__(self, client: AsyncMongoClient):
        self.client = client
        self._search_supported: bool | None = None

    async def is_vector_search_supported(self) -> bool:
        """
        Check whether the cluster has a search node

        The answer does not change for the lifetime of a connection, so it is
        remembered per handle.
        """
        if self._search_supported is None:
            try:
                await self.list_search_indexes("test", "test")
                self._search_supported = True
            except OperationFailure as e:
                logger.debug(f"Search index listing is not available: {e}")
                self._search_supported = False
        return self._search_supported

    async def list_search_indexes(self, database: str, collection: str) -> list[dict[str, Any]]:
        cursor = await self.client[database][collection].list_search_indexes()
        return await cursor.to_list()

    async def list_indexes(self, database: str, collection: str) -> list[dict[str, Any]]:
        cursor = await self.client[database][collection].list_indexes()
        return await cursor.to_list()

    async def create_index(
        self, database: str, collection: str, keys: dict[str, Any], name: str | None = None
    ) -> str:
        kwargs = {"name": name} if name else {}
        return await self.client[database][collection].create_index(list(keys.items()), **kwargs)

    async def create_search_index(
        self,
        database: str,
        collection: str,
        definition: dict[str, Any],
        name: str | None = None,
        index_type: str = "vectorSearch",
    ) -> str:
        model = SearchIndexModel(definition=definition, name=name, type=index_type)
        return await self.client[database][collection].create_search_index(model)

    async def drop_index(self, database: str, collection: str, index_name: str) -> dict[str, Any]:
        return await self.client[database].command({"dropIndexes": collection, "index": index_name})

    async def insert_many(
        self, database: str, collection: str, documents: list[dict[str, Any]]
    ) -> list[Any]:
        result = await self.client[database][collection].insert_many(documents)
        return list(result.inserted_ids)

    async def aggregate(
        self,
        database: str,
        collection: str,
        pipeline: list[dict[str, Any]],
        max_time_ms: int | None = None,
    ) -> list[dict[str, Any]]:
        options = {"maxTimeMS": max_time_ms} if max_time_ms is not None else {}
        cursor = await self.client[database][collection].aggregate(pipeline, **options)
        return await cursor.to_list()

    async def close(self) -> None:
        await self.client.close()


@dataclass(frozen=True)
class ConnectionStateDisconnected:
    tag: str = "disconnected"


@dataclass(frozen=True)
class ConnectionStateConnecting:
    tag: str = "connecting"


@dataclass(frozen=True)
class ConnectionStateConnected:
    handle: ConnectionHandle
    tag: str = "connected"


@dataclass(frozen=True)
class ConnectionStateErrored:
    error_message: str
    tag: str = "errored"


@dataclass(frozen=True)
class ConnectionStateClosed:
    tag: str = "closed"


ConnectionState = (
    ConnectionStateDisconnected
    | ConnectionStateConnecting
    | ConnectionStateConnected
    | ConnectionStateErrored
    | ConnectionStateClosed
)


@dataclass
class ConnectionEvents:
    """Minimal synchronous event source for connection lifecycle notifications"""

    _listeners: dict[str, list[Listener]] = field(default_factory=dict)

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """Subscribe to an event and return a callable that unsubscribes"""
        self._listeners.setdefault(event, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def emit(self, event: str) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener()
            except Exception as e:
                logger.error(f"Listener for {event} failed: {e}")

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))


ClientFactory = Callable[[str, str], AsyncMongoClient]


def _default_client_factory(connection_string: str, app_name: str) -> AsyncMongoClient:
    return AsyncMongoClient(connection_string, appname=app_name)


class ConnectionManager:
    """
    Owns the current MongoDB connection

    States: disconnected -> connecting -> connected | errored, and closed as the
    terminal state. `connection-close` is emitted exactly once every time a connected
    state is left.
    """

    def __init__(
        self,
        app_config: AppConfig | None = None,
        client_factory: ClientFactory = _default_client_factory,
    ):
        self.config = app_config or config
        self.events = ConnectionEvents()
        self.current_state: ConnectionState = ConnectionStateDisconnected()
        self._client_factory = client_factory

    def connected_handle(self) -> ConnectionHandle | None:
        """Return the handle of the current connection, if connected"""
        if isinstance(self.current_state, ConnectionStateConnected):
            return self.current_state.handle
        return None

    async def connect(self, connection_string: str) -> ConnectionHandle:
        """
        Connect to a MongoDB deployment, replacing any existing connection

        Raises:
            MongoDBError: If the manager is closed, the connection string is invalid
                or the server cannot be reached
        """
        if isinstance(self.current_state, ConnectionStateClosed):
            raise MongoDBError(
                ErrorCode.NOT_CONNECTED_TO_MONGODB, "The connection manager has been closed."
            )

        await self.disconnect()
        self.current_state = ConnectionStateConnecting()

        try:
            client = self._client_factory(connection_string, self.config.app_name)
        except (ConfigurationError, ValueError) as e:
            self._set_errored(str(e))
            raise MongoDBError(
                ErrorCode.MISCONFIGURED_CONNECTION_STRING, f"Invalid connection string: {e}"
            ) from e

        handle = MongoConnectionHandle(client)
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            await handle.close()
            self._set_errored(str(e))
            raise MongoDBError(
                ErrorCode.NOT_CONNECTED_TO_MONGODB, f"Failed to connect to MongoDB: {e}"
            ) from e

        self.current_state = ConnectionStateConnected(handle=handle)
        logger.info("Connected to MongoDB")
        self.events.emit(CONNECTION_SUCCESS)
        return handle

    async def disconnect(self) -> None:
        """Close the current connection, if any"""
        state = self.current_state
        if isinstance(state, ConnectionStateClosed):
            return

        self.current_state = ConnectionStateDisconnected()
        if isinstance(state, ConnectionStateConnected):
            try:
                await state.handle.close()
            finally:
                logger.info("Disconnected from MongoDB")
                self.events.emit(CONNECTION_CLOSE)

    async def close(self) -> None:
        """Disconnect and move to the terminal closed state"""
        await self.disconnect()
        self.current_state = ConnectionStateClosed()

    def _set_errored(self, message: str) -> None:
        logger.error(f"MongoDB connection failed: {message}")
        self.current_state = ConnectionStateErrored(error_message=message)
        self.events.emit(CONNECTION_ERROR)
