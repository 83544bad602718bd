"""create-index tool"""

import logging
from typing import Annotated

from fastmcp import Context
from pydantic import Field

from src.models.index_definition import (
    ClassicIndexDefinition,
    IndexDefinition,
    VectorSearchIndexDefinition,
)
from src.models.tool_result import ToolResult
from src.models.vector_search import Similarity
from src.tools.base import OperationType
from src.tools.mongodb.base import Collection, Database, MongoDBToolBase

logger = logging.getLogger(__name__)


class CreateIndexTool(MongoDBToolBase):
    name = "create-index"
    description = "Create an index for a collection"
    operation_type = OperationType.CREATE

    async def handler(
        self,
        database: Database,
        collection: Collection,
        definition: Annotated[
            list[IndexDefinition],
            Field(
                description=(
                    "The index definition. Use 'classic' for standard indexes and "
                    "'vectorSearch' for vector search indexes (requires the vectorSearch "
                    "preview feature)"
                )
            ),
        ],
        ctx: Context,
        name: Annotated[str | None, Field(description="The name of the index")] = None,
    ) -> str:
        return await self.respond(
            ctx, database=database, collection=collection, definition=definition, name=name
        )

    async def execute(
        self,
        *,
        database: str,
        collection: str,
        definition: list[ClassicIndexDefinition | VectorSearchIndexDefinition],
        name: str | None = None,
    ) -> ToolResult:
        handle = await self.ensure_connected()
        if not definition:
            raise ValueError(
                "Index definition not provided. Expected one of the following: `classic`, "
                "`vectorSearch`"
            )

        index_definition = definition[0]
        clarification = ""

        if isinstance(index_definition, ClassicIndexDefinition):
            index_name = await handle.create_index(
                database, collection, index_definition.keys, name=name
            )
        else:
            if not self.is_vector_search_enabled():
                return ToolResult(
                    content=[
                        "Vector search indexes require the vectorSearch preview feature to be "
                        "enabled."
                    ],
                    is_error=True,
                )

            await self.ensure_search_is_supported()
            search_definition = index_definition.to_search_definition(
                num_dimensions=self.config.vector_search_dimensions,
                similarity=Similarity(self.config.vector_search_similarity_function),
            )
            index_name = await handle.create_search_index(
                database, collection, search_definition, name=name, index_type="vectorSearch"
            )
            clarification = (
                " Since this is a vector search index, it may take a while for the index to "
                "build. Use the `list-search-indexes` tool to check the index status."
            )

            # Drop the cached definitions so validation picks up the new index
            self.session.embeddings_manager.invalidate(database, collection)
            logger.info(f"Created vector search index {index_name} on {database}.{collection}")

        return ToolResult(
            content=[
                f'Created the index "{index_name}" on collection "{collection}" in database '
                f'"{database}".{clarification}'
            ]
        )
