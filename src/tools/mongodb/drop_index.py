"""drop-index tool"""

import json
from typing import Annotated, Any

from fastmcp import Context
from pydantic import Field

from src.models.tool_result import ToolResult
from src.tools.base import OperationType
from src.tools.mongodb.base import Collection, Database, MongoDBToolBase
from src.utils.untrusted_data import format_untrusted_data


class DropIndexTool(MongoDBToolBase):
    name = "drop-index"
    description = "Drop an index for the provided database and collection."
    operation_type = OperationType.DELETE

    async def handler(
        self,
        database: Database,
        collection: Collection,
        index_name: Annotated[
            str, Field(min_length=1, description="The name of the index to be dropped.")
        ],
        ctx: Context,
    ) -> str:
        return await self.respond(
            ctx, database=database, collection=collection, index_name=index_name
        )

    async def execute(self, *, database: str, collection: str, index_name: str) -> ToolResult:
        handle = await self.ensure_connected()
        result = await handle.drop_index(database, collection, index_name)
        ok = bool(result.get("ok"))

        if ok:
            # A dropped vector search index changes the expected embeddings
            self.session.embeddings_manager.invalidate(database, collection)

        return ToolResult(
            content=format_untrusted_data(
                f"{'Successfully dropped' if ok else 'Failed to drop'} the index from the "
                "provided namespace.",
                json.dumps({"indexName": index_name, "namespace": f"{database}.{collection}"}),
            ),
            is_error=not ok,
        )

    def get_confirmation_message(self, **kwargs: Any) -> str:
        return (
            f"You are about to drop the `{kwargs.get('index_name')}` index from the "
            f"`{kwargs.get('database')}.{kwargs.get('collection')}` namespace:\n\n"
            "This operation will permanently remove the index and might affect the performance "
            "of queries relying on this index.\n\n"
            "**Do you confirm the execution of the action?**"
        )
