"""Unit tests for embedding generation"""

import pytest

from src.models.embedding import EmbeddingParameters, InputType, VoyageModel
from src.services.connection_manager import CONNECTION_CLOSE, ConnectionManager
from src.services.embeddings_manager import VectorSearchEmbeddingsManager
from src.services.errors import ErrorCode, MongoDBError
from tests.fakes import FakeConnectionHandle, connect_handle, vector_search_index


@pytest.fixture
def handle():
    return FakeConnectionHandle(
        search_indexes={
            "mydb.movies": [
                vector_search_index(
                    "vector_index",
                    [{"type": "vector", "path": "plot_embedding", "numDimensions": 3}],
                )
            ]
        }
    )


async def generate(manager, path="plot_embedding", raw_values=None):
    return await manager.generate_embeddings(
        database="mydb",
        collection="movies",
        path=path,
        raw_values=raw_values or ["a movie about space"],
        embedding_parameters=EmbeddingParameters(model=VoyageModel.VOYAGE_3_5),
        input_type=InputType.QUERY,
    )


class TestGenerateEmbeddings:
    @pytest.mark.asyncio
    async def test_generates_one_embedding_per_value(self, embeddings_manager, provider):
        embeddings = await generate(embeddings_manager, raw_values=["first", "second"])

        assert embeddings == [[0.0] * 3, [1.0] * 3]
        assert len(provider.calls) == 1
        assert provider.calls[0]["model"] == "voyage-3.5"
        assert provider.calls[0]["inputs"] == ["first", "second"]
        assert provider.calls[0]["parameters"].input_type == InputType.QUERY

    @pytest.mark.asyncio
    async def test_search_not_supported(self, embeddings_manager, handle, provider):
        handle.search_supported = False

        with pytest.raises(MongoDBError) as exc_info:
            await generate(embeddings_manager)

        assert exc_info.value.code == ErrorCode.ATLAS_SEARCH_NOT_SUPPORTED
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_search_not_supported_even_without_validation(
        self, app_config, embeddings_manager, handle, provider
    ):
        app_config.disable_embeddings_validation = True
        handle.search_supported = False

        with pytest.raises(MongoDBError) as exc_info:
            await generate(embeddings_manager)

        assert exc_info.value.code == ErrorCode.ATLAS_SEARCH_NOT_SUPPORTED

    @pytest.mark.asyncio
    async def test_no_provider_configured(self, app_config, connection_manager):
        manager = VectorSearchEmbeddingsManager(
            app_config, connection_manager, provider_factory=lambda _: None
        )

        with pytest.raises(MongoDBError) as exc_info:
            await generate(manager)

        assert exc_info.value.code == ErrorCode.NO_EMBEDDINGS_PROVIDER_CONFIGURED

    @pytest.mark.asyncio
    async def test_default_provider_requires_api_key(self, app_config, connection_manager):
        manager = VectorSearchEmbeddingsManager(app_config, connection_manager)

        with pytest.raises(MongoDBError) as exc_info:
            await generate(manager)

        assert exc_info.value.code == ErrorCode.NO_EMBEDDINGS_PROVIDER_CONFIGURED

    @pytest.mark.asyncio
    async def test_index_not_found_for_path(self, embeddings_manager, provider):
        with pytest.raises(MongoDBError) as exc_info:
            await generate(embeddings_manager, path="title_embedding")

        assert exc_info.value.code == ErrorCode.ATLAS_VECTOR_SEARCH_INDEX_NOT_FOUND
        assert exc_info.value.message == (
            'No Vector Search index found for path "title_embedding" in namespace "mydb.movies"'
        )
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_disabled_validation_skips_index_lookup(
        self, app_config, embeddings_manager, handle, provider
    ):
        app_config.disable_embeddings_validation = True

        embeddings = await generate(embeddings_manager, path="title_embedding")

        assert len(embeddings) == 1
        assert handle.list_search_indexes_calls == 0


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_connection_close_clears_definitions(self, embeddings_manager, connection_manager):
        await embeddings_manager.definitions_for("mydb", "movies")
        assert embeddings_manager.catalog.is_cached("mydb", "movies")

        await connection_manager.disconnect()

        assert not embeddings_manager.catalog.is_cached("mydb", "movies")

    @pytest.mark.asyncio
    async def test_reconnect_refetches(self, embeddings_manager, connection_manager, handle):
        await embeddings_manager.definitions_for("mydb", "movies")
        await connection_manager.disconnect()
        connect_handle(connection_manager, handle)

        await embeddings_manager.definitions_for("mydb", "movies")

        assert handle.list_search_indexes_calls == 2

    @pytest.mark.asyncio
    async def test_session_close_disposes_subscription(self, session, connection_manager):
        await session.close()

        assert connection_manager.events.listener_count(CONNECTION_CLOSE) == 0

    @pytest.mark.asyncio
    async def test_closed_manager_cannot_reconnect(self, app_config):
        manager = ConnectionManager(app_config)
        await manager.close()

        with pytest.raises(MongoDBError) as exc_info:
            await manager.connect("mongodb://localhost:27017")

        assert exc_info.value.code == ErrorCode.NOT_CONNECTED_TO_MONGODB
