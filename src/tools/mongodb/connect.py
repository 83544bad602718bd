"""connect tool"""

from typing import Annotated

from fastmcp import Context
from pydantic import Field

from src.models.tool_result import ToolResult
from src.tools.base import OperationType
from src.tools.mongodb.base import MongoDBToolBase


class ConnectTool(MongoDBToolBase):
    name = "connect"
    description = "Connect to a MongoDB instance"
    operation_type = OperationType.CONNECT

    async def handler(
        self,
        connection_string: Annotated[
            str, Field(description="MongoDB connection string (mongodb:// or mongodb+srv://)")
        ],
        ctx: Context,
    ) -> str:
        return await self.respond(ctx, connection_string=connection_string)

    async def execute(self, *, connection_string: str) -> ToolResult:
        await self.session.connect(connection_string)
        return ToolResult(content=["Successfully connected to MongoDB."])
