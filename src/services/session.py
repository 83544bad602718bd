"""Server session: the connection and everything scoped to it"""

import logging

from src.config import AppConfig, config
from src.services.connection_manager import ConnectionHandle, ConnectionManager
from src.services.embeddings_manager import VectorSearchEmbeddingsManager

logger = logging.getLogger(__name__)


class Session:
    """Holds the connection manager and the embeddings manager bound to it"""

    def __init__(
        self,
        app_config: AppConfig | None = None,
        connection_manager: ConnectionManager | None = None,
        embeddings_manager: VectorSearchEmbeddingsManager | None = None,
    ):
        self.config = app_config or config
        self.connection_manager = connection_manager or ConnectionManager(self.config)
        self.embeddings_manager = embeddings_manager or VectorSearchEmbeddingsManager(
            self.config, self.connection_manager
        )

    async def connect(self, connection_string: str) -> ConnectionHandle:
        return await self.connection_manager.connect(connection_string)

    async def disconnect(self) -> None:
        await self.connection_manager.disconnect()

    async def is_search_supported(self) -> bool:
        handle = self.connection_manager.connected_handle()
        return handle is not None and await handle.is_vector_search_supported()

    async def close(self) -> None:
        """Release the connection; the session cannot be reconnected afterwards"""
        logger.info("Closing session")
        try:
            await self.connection_manager.close()
        finally:
            self.embeddings_manager.dispose()
