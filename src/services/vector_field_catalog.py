"""Per-namespace cache of vector search index field definitions"""

import logging
from typing import Any

from pydantic import ValidationError

from src.config import AppConfig
from src.models.vector_search import (
    EmbeddingNamespace,
    VectorFieldIndexDefinition,
    embedding_namespace,
)
from src.services.connection_manager import (
    CONNECTION_CLOSE,
    ConnectionHandle,
    ConnectionManager,
)

logger = logging.getLogger(__name__)


class VectorFieldCatalogCache:
    """
    Cache of vector field definitions keyed by "<database>.<collection>"

    Entries are fetched lazily from the cluster's search index listing and are only
    dropped by `invalidate` (after an index is created on the namespace) or
    `clear_all` (when the connection closes). An empty list is a cached answer
    meaning "no vector fields", distinct from a missing entry.

    The mapping is mutated in place without locking: a lookup that started before
    an invalidation may store its (stale) result after it, and the next lookup
    after that simply uses it until the next invalidation.
    """

    def __init__(
        self,
        app_config: AppConfig,
        connection_manager: ConnectionManager,
        definitions: dict[EmbeddingNamespace, list[VectorFieldIndexDefinition]] | None = None,
    ):
        self.config = app_config
        self.connection_manager = connection_manager
        self._definitions = definitions if definitions is not None else {}
        self._unsubscribe = connection_manager.events.on(CONNECTION_CLOSE, self.clear_all)

    async def search_enabled_handle(self) -> ConnectionHandle | None:
        """Return the connected handle if it supports vector search, None otherwise"""
        handle = self.connection_manager.connected_handle()
        if handle is not None and await handle.is_vector_search_supported():
            return handle
        return None

    async def definitions_for(
        self, database: str, collection: str
    ) -> list[VectorFieldIndexDefinition]:
        """
        Get the vector field definitions of a namespace

        Args:
            database: Database name
            collection: Collection name

        Returns:
            list[VectorFieldIndexDefinition]: Vector fields of all vector search indexes,
            empty when validation is disabled or search is not available

        Raises:
            PyMongoError: If listing the search indexes fails
        """
        # Definitions are only used for validation
        if self.config.disable_embeddings_validation:
            return []

        handle = await self.search_enabled_handle()
        if handle is None:
            return []

        key = embedding_namespace(database, collection)
        cached = self._definitions.get(key)
        if cached is not None:
            return cached

        search_indexes = await handle.list_search_indexes(database, collection)
        definitions = self._extract_vector_fields(search_indexes)
        logger.debug(f"Cached {len(definitions)} vector field definitions for {key}")

        self._definitions[key] = definitions
        return definitions

    def invalidate(self, database: str, collection: str) -> None:
        """Forget the definitions of one namespace so the next lookup refetches them"""
        self._definitions.pop(embedding_namespace(database, collection), None)

    def clear_all(self) -> None:
        self._definitions.clear()

    def is_cached(self, database: str, collection: str) -> bool:
        return embedding_namespace(database, collection) in self._definitions

    def dispose(self) -> None:
        """Stop listening to connection events"""
        self._unsubscribe()

    @staticmethod
    def _extract_vector_fields(
        search_indexes: list[dict[str, Any]],
    ) -> list[VectorFieldIndexDefinition]:
        definitions: list[VectorFieldIndexDefinition] = []
        for index in search_indexes:
            if index.get("type") != "vectorSearch":
                continue

            fields = (index.get("latestDefinition") or {}).get("fields") or []
            for field in fields:
                if field.get("type") != "vector":
                    continue
                try:
                    definitions.append(VectorFieldIndexDefinition.model_validate(field))
                except ValidationError as e:
                    logger.warning(
                        f"Ignoring malformed vector field in index {index.get('name')}: {e}"
                    )
        return definitions
