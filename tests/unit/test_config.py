"""Unit tests for configuration"""

import pytest
from pydantic import ValidationError

from src.config import AppConfig


def test_config_loading_from_environment(monkeypatch):
    """Test that configuration loads prefixed environment variables"""
    monkeypatch.setenv("MDB_MCP_CONNECTION_STRING", "mongodb://localhost:27017")
    monkeypatch.setenv("MDB_MCP_VECTOR_SEARCH_DIMENSIONS", "768")
    monkeypatch.setenv("MDB_MCP_EMBEDDING_BATCH_SIZE", "64")
    monkeypatch.setenv("MDB_MCP_DISABLE_EMBEDDINGS_VALIDATION", "true")

    config = AppConfig(_env_file=None)

    assert config.connection_string == "mongodb://localhost:27017"
    assert config.vector_search_dimensions == 768
    assert config.embedding_batch_size == 64
    assert config.disable_embeddings_validation is True


def test_config_defaults():
    """Test that configuration uses correct defaults"""
    config = AppConfig(_env_file=None)

    assert config.read_only is False
    assert config.disable_embeddings_validation is False
    assert config.vector_search_dimensions == 1024
    assert config.vector_search_similarity_function == "euclidean"
    assert config.confirmation_required_tools == ["drop-index"]
    assert config.voyage_api_url == "https://api.voyageai.com/v1"
    assert config.max_documents_per_query == 100
    assert config.otel_logging_enabled is False


def test_comma_separated_lists(monkeypatch):
    """Test that list settings accept comma separated environment values"""
    monkeypatch.setenv("MDB_MCP_DISABLED_TOOLS", "delete, drop-index")
    monkeypatch.setenv("MDB_MCP_PREVIEW_FEATURES", "vectorSearch")

    config = AppConfig(_env_file=None)

    assert config.disabled_tools == ["delete", "drop-index"]
    assert config.is_preview_feature_enabled("vectorSearch")
    assert not config.is_preview_feature_enabled("somethingElse")


def test_invalid_similarity_is_rejected():
    with pytest.raises(ValidationError):
        AppConfig(_env_file=None, vector_search_similarity_function="manhattan")


def test_unprefixed_variables_are_ignored(monkeypatch):
    monkeypatch.setenv("VECTOR_SEARCH_DIMENSIONS", "12")

    config = AppConfig(_env_file=None)

    assert config.vector_search_dimensions == 1024
