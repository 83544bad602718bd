"""collection-indexes tool"""

from typing import Any

from fastmcp import Context
from pymongo.errors import OperationFailure

from src.models.tool_result import ToolResult
from src.tools.base import OperationType
from src.tools.mongodb.base import Collection, Database, MongoDBToolBase
from src.tools.mongodb.list_search_indexes import get_search_indexes
from src.utils.ejson import to_ejson
from src.utils.untrusted_data import format_untrusted_data

NAMESPACE_NOT_FOUND = 26


class CollectionIndexesTool(MongoDBToolBase):
    name = "collection-indexes"
    description = "Describe the indexes for a collection"
    operation_type = OperationType.METADATA

    async def handler(self, database: Database, collection: Collection, ctx: Context) -> str:
        return await self.respond(ctx, database=database, collection=collection)

    async def execute(self, *, database: str, collection: str) -> ToolResult:
        handle = await self.ensure_connected()
        indexes = [
            {"name": index.get("name"), "key": index.get("key")}
            for index in await handle.list_indexes(database, collection)
        ]

        content = format_untrusted_data(
            f'Found {len(indexes)} indexes in the collection "{collection}":',
            *(to_ejson(index) for index in indexes),
        )

        if self.is_vector_search_enabled() and await self.session.is_search_supported():
            search_indexes = await get_search_indexes(handle, database, collection)
            if search_indexes:
                content += format_untrusted_data(
                    f"Found {len(search_indexes)} search and vector search indexes in the "
                    f'collection "{collection}":',
                    *(to_ejson(index.model_dump(by_alias=True)) for index in search_indexes),
                )

        return ToolResult(content=content)

    def handle_error(self, error: Exception, **kwargs: Any) -> ToolResult:
        if isinstance(error, OperationFailure) and error.code == NAMESPACE_NOT_FOUND:
            return ToolResult(
                content=[
                    f'The indexes for "{kwargs.get("database")}.{kwargs.get("collection")}" '
                    "cannot be determined because the collection does not exist."
                ],
                is_error=True,
            )
        return super().handle_error(error, **kwargs)
