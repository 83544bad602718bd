"""Vector search embeddings: index definition cache, validation and generation"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from src.config import AppConfig
from src.models.embedding import EmbeddingParameters, InputType
from src.models.vector_search import (
    EmbeddingNamespace,
    VectorFieldIndexDefinition,
    VectorFieldValidationError,
    embedding_namespace,
)
from src.services.connection_manager import ConnectionManager
from src.services.embedding_validation import EmbeddingValidator
from src.services.embeddings_provider import EmbeddingsProvider, get_embeddings_provider
from src.services.errors import ErrorCode, MongoDBError
from src.services.vector_field_catalog import VectorFieldCatalogCache

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[AppConfig], EmbeddingsProvider | None]


class VectorSearchEmbeddingsManager:
    """
    Session-scoped entry point for everything embeddings related

    Both the write path (validating inserted documents) and the query path
    (turning text into query vectors) go through the same definition cache.
    """

    def __init__(
        self,
        app_config: AppConfig,
        connection_manager: ConnectionManager,
        definitions: dict[EmbeddingNamespace, list[VectorFieldIndexDefinition]] | None = None,
        provider_factory: ProviderFactory = get_embeddings_provider,
    ):
        self.config = app_config
        self.catalog = VectorFieldCatalogCache(app_config, connection_manager, definitions)
        self.validator = EmbeddingValidator(self.catalog)
        self._provider_factory = provider_factory

    async def definitions_for(
        self, database: str, collection: str
    ) -> list[VectorFieldIndexDefinition]:
        return await self.catalog.definitions_for(database, collection)

    def invalidate(self, database: str, collection: str) -> None:
        self.catalog.invalidate(database, collection)

    def clear_all(self) -> None:
        self.catalog.clear_all()

    def dispose(self) -> None:
        self.catalog.dispose()

    async def find_violations(
        self, database: str, collection: str, document: Mapping[str, Any]
    ) -> list[VectorFieldValidationError]:
        return await self.validator.find_violations(database, collection, document)

    async def generate_embeddings(
        self,
        database: str,
        collection: str,
        path: str,
        raw_values: list[str],
        embedding_parameters: EmbeddingParameters,
        input_type: InputType,
    ) -> list[list[float]]:
        """
        Generate embeddings for raw text targeting a vector field

        Args:
            database: Database name
            collection: Collection name
            path: Vector field path the embeddings are meant for
            raw_values: Texts to embed
            embedding_parameters: Model and output options
            input_type: Whether the texts are queries or documents

        Returns:
            list[list[float]]: One embedding per raw value, same order

        Raises:
            MongoDBError: If search is not supported, no provider is configured or,
                with validation enabled, no vector index covers the path
        """
        # Generation is only meaningful against a search capable cluster, even
        # when validation is disabled
        if await self.catalog.search_enabled_handle() is None:
            raise MongoDBError(
                ErrorCode.ATLAS_SEARCH_NOT_SUPPORTED,
                "Atlas Search is not supported in this cluster.",
            )

        provider = self._provider_factory(self.config)
        if provider is None:
            raise MongoDBError(
                ErrorCode.NO_EMBEDDINGS_PROVIDER_CONFIGURED, "No embeddings provider configured."
            )

        if not self.config.disable_embeddings_validation:
            definitions = await self.catalog.definitions_for(database, collection)
            if not any(definition.path == path for definition in definitions):
                raise MongoDBError(
                    ErrorCode.ATLAS_VECTOR_SEARCH_INDEX_NOT_FOUND,
                    f'No Vector Search index found for path "{path}" in namespace '
                    f'"{embedding_namespace(database, collection)}"',
                )

        parameters = embedding_parameters.model_copy(update={"input_type": input_type})
        return await provider.embed(parameters.model.value, raw_values, parameters)
