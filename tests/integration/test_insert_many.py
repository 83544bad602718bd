"""Integration tests for insert-many with embedding validation and generation"""

import pytest
from bson import ObjectId

from src.models.embedding import InputType, InsertEmbeddingParameters
from src.tools.mongodb.insert_many import InsertManyTool, set_field
from tests.fakes import FakeConnectionHandle, vector_search_index


@pytest.fixture
def handle():
    return FakeConnectionHandle(
        search_indexes={
            "mydb.movies": [
                vector_search_index(
                    "vector_index",
                    [
                        {
                            "type": "vector",
                            "path": "plot_embedding",
                            "numDimensions": 3,
                            "quantization": "scalar",
                        },
                        {
                            "type": "vector",
                            "path": "meta.title_embedding",
                            "numDimensions": 3,
                            "quantization": "scalar",
                        },
                    ],
                )
            ]
        }
    )


@pytest.fixture
def tool(session, telemetry):
    return InsertManyTool(session, telemetry)


class TestInsertMany:
    @pytest.mark.asyncio
    async def test_inserts_valid_documents(self, tool, handle):
        documents = [
            {"title": "Alien", "plot_embedding": [1, 2, 3]},
            {"title": "Up"},
        ]

        result = await tool.invoke(database="mydb", collection="movies", documents=documents)

        assert not result.is_error
        assert "Documents were inserted successfully." in result.text
        assert "Inserted `2` document(s) into mydb.movies." in result.text
        assert len(handle.inserted["mydb.movies"]) == 2

    @pytest.mark.asyncio
    async def test_extended_json_is_converted(self, tool, handle):
        oid = "65a1b2c3d4e5f6a7b8c9d0e1"

        await tool.invoke(
            database="mydb", collection="movies", documents=[{"_id": {"$oid": oid}}]
        )

        assert handle.inserted["mydb.movies"][0]["_id"] == ObjectId(oid)

    @pytest.mark.asyncio
    async def test_invalid_embedding_rejects_whole_batch(self, tool, handle):
        documents = [
            {"title": "Alien", "plot_embedding": [1, 2, 3]},
            {"title": "Up", "plot_embedding": [1, 2]},
        ]

        result = await tool.invoke(database="mydb", collection="movies", documents=documents)

        assert result.is_error
        assert (
            "There were errors when inserting documents. No document was inserted."
            in result.text
        )
        assert (
            "- Field plot_embedding is an embedding with 3 dimensions and scalar quantization"
            in result.text
        )
        assert "Actual dimensions: 2, actual quantization: scalar. Error: dimension-mismatch" in (
            result.text
        )
        assert "mydb.movies" not in handle.inserted

    @pytest.mark.asyncio
    async def test_disabled_validation_inserts_anything(self, tool, handle, app_config):
        app_config.disable_embeddings_validation = True

        result = await tool.invoke(
            database="mydb", collection="movies", documents=[{"plot_embedding": "oops"}]
        )

        assert not result.is_error
        assert len(handle.inserted["mydb.movies"]) == 1

    @pytest.mark.asyncio
    async def test_generates_embeddings_before_insert(self, tool, handle, provider):
        parameters = InsertEmbeddingParameters(
            model="voyage-3-large",
            input=[
                {"plot_embedding": "A crew meets an alien", "meta.title_embedding": "Alien"},
                {"plot_embedding": "A house flies away"},
            ],
        )

        result = await tool.invoke(
            database="mydb",
            collection="movies",
            documents=[{"title": "Alien"}, {"title": "Up", "meta": {"year": 2009}}],
            embedding_parameters=parameters,
        )

        assert not result.is_error
        inserted = handle.inserted["mydb.movies"]
        assert inserted[0]["plot_embedding"] == [0.0, 0.0, 0.0]
        assert inserted[1]["plot_embedding"] == [1.0, 1.0, 1.0]
        assert inserted[0]["meta"]["title_embedding"] == [0.0, 0.0, 0.0]
        assert inserted[1]["meta"] == {"year": 2009}

        assert [call["inputs"] for call in provider.calls] == [
            ["A crew meets an alien", "A house flies away"],
            ["Alien"],
        ]
        assert all(
            call["parameters"].input_type == InputType.DOCUMENT for call in provider.calls
        )

    @pytest.mark.asyncio
    async def test_generation_for_unindexed_path_fails(self, tool, handle, provider):
        parameters = InsertEmbeddingParameters(input=[{"summary_embedding": "text"}])

        result = await tool.invoke(
            database="mydb",
            collection="movies",
            documents=[{"title": "Alien"}],
            embedding_parameters=parameters,
        )

        assert result.is_error
        assert 'No Vector Search index found for path "summary_embedding"' in result.text
        assert provider.calls == []
        assert "mydb.movies" not in handle.inserted

    @pytest.mark.asyncio
    async def test_generation_requires_preview_feature(self, tool, app_config, provider):
        app_config.preview_features = []
        parameters = InsertEmbeddingParameters(input=[{"plot_embedding": "text"}])

        result = await tool.invoke(
            database="mydb",
            collection="movies",
            documents=[{"title": "Alien"}],
            embedding_parameters=parameters,
        )

        assert result.is_error
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_generation_does_not_overwrite_scalar_parent(self, tool, handle, provider):
        parameters = InsertEmbeddingParameters(input=[{"meta.title_embedding": "Alien"}])

        result = await tool.invoke(
            database="mydb",
            collection="movies",
            documents=[{"title": "Alien", "meta": "classic"}],
            embedding_parameters=parameters,
        )

        assert result.is_error
        assert 'Cannot set "meta.title_embedding"' in result.text
        assert "mydb.movies" not in handle.inserted


def test_set_field_creates_intermediate_documents():
    document = {"meta": {"year": 1979}}

    set_field(document, "meta.embedding.value", [1.0])

    assert document == {"meta": {"year": 1979, "embedding": {"value": [1.0]}}}


def test_set_field_keeps_non_document_values():
    document = {"meta": "not a document"}

    with pytest.raises(ValueError, match="\"meta\" already holds a value"):
        set_field(document, "meta.embedding", [1.0])

    assert document == {"meta": "not a document"}
