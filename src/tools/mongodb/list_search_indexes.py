"""list-search-indexes tool"""

from fastmcp import Context

from src.models.search_index import SearchIndexWithStatus
from src.models.tool_result import ToolResult
from src.services.connection_manager import ConnectionHandle
from src.tools.base import OperationType
from src.tools.mongodb.base import Collection, Database, MongoDBToolBase
from src.utils.ejson import to_ejson
from src.utils.untrusted_data import format_untrusted_data


async def get_search_indexes(
    handle: ConnectionHandle, database: str, collection: str
) -> list[SearchIndexWithStatus]:
    indexes = await handle.list_search_indexes(database, collection)
    return [SearchIndexWithStatus.from_index(index) for index in indexes]


class ListSearchIndexesTool(MongoDBToolBase):
    name = "list-search-indexes"
    description = "Describes the search and vector search indexes for a single collection"
    operation_type = OperationType.METADATA

    async def handler(self, database: Database, collection: Collection, ctx: Context) -> str:
        return await self.respond(ctx, database=database, collection=collection)

    async def execute(self, *, database: str, collection: str) -> ToolResult:
        handle = await self.ensure_connected()
        await self.ensure_search_is_supported()
        search_indexes = await get_search_indexes(handle, database, collection)

        if not search_indexes:
            return ToolResult(
                content=format_untrusted_data(
                    "Could not retrieve search indexes",
                    f"There are no search or vector search indexes in {database}.{collection}",
                )
            )

        return ToolResult(
            content=format_untrusted_data(
                f"Found {len(search_indexes)} search and vector search indexes in "
                f"{database}.{collection}",
                *(to_ejson(index.model_dump(by_alias=True)) for index in search_indexes),
            )
        )
