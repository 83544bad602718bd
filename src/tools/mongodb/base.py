"""Base class for tools operating on a MongoDB connection"""

import logging
from typing import Annotated, Any

from pydantic import Field
from pymongo.errors import PyMongoError

from src.models.tool_result import ToolResult
from src.services.connection_manager import ConnectionHandle
from src.services.errors import ErrorCode, MongoDBError
from src.tools.base import ToolBase

logger = logging.getLogger(__name__)

VECTOR_SEARCH_FEATURE = "vectorSearch"

Database = Annotated[str, Field(description="Database name")]
Collection = Annotated[str, Field(description="Collection name")]


class MongoDBToolBase(ToolBase):
    category = "mongodb"

    async def ensure_connected(self) -> ConnectionHandle:
        """
        Return the current connection handle, connecting with the configured
        connection string if there is no connection yet

        Raises:
            MongoDBError: If not connected and no connection string is configured
        """
        handle = self.session.connection_manager.connected_handle()
        if handle is not None:
            return handle

        if self.config.connection_string:
            logger.info("Connecting to MongoDB with the configured connection string")
            return await self.session.connect(self.config.connection_string)

        raise MongoDBError(
            ErrorCode.NOT_CONNECTED_TO_MONGODB,
            "Not connected to MongoDB. Use the `connect` tool or configure a connection string.",
        )

    async def ensure_search_is_supported(self) -> None:
        if not await self.session.is_search_supported():
            raise MongoDBError(
                ErrorCode.ATLAS_SEARCH_NOT_SUPPORTED,
                "Atlas Search is not supported in the current cluster.",
            )

    def is_vector_search_enabled(self) -> bool:
        return self.config.is_preview_feature_enabled(VECTOR_SEARCH_FEATURE)

    def handle_error(self, error: Exception, **kwargs: Any) -> ToolResult:
        if isinstance(error, MongoDBError):
            if error.code == ErrorCode.NOT_CONNECTED_TO_MONGODB:
                return ToolResult(
                    content=[
                        "You need to connect to a MongoDB instance before you can access its "
                        "data.",
                        f"Details: {error.message}",
                    ],
                    is_error=True,
                )
            if error.code == ErrorCode.MISCONFIGURED_CONNECTION_STRING:
                return ToolResult(
                    content=[
                        "The configured connection string is not valid. Please check it and "
                        "connect again.",
                        f"Details: {error.message}",
                    ],
                    is_error=True,
                )
            return ToolResult(content=[error.message], is_error=True)

        if isinstance(error, PyMongoError):
            return ToolResult(content=[f"MongoDB error running {self.name}: {error}"], is_error=True)

        return super().handle_error(error, **kwargs)
