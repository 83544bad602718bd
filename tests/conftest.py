"""Shared fixtures"""

from unittest.mock import MagicMock

import pytest

from src.config import AppConfig
from src.services.connection_manager import ConnectionManager
from src.services.embeddings_manager import VectorSearchEmbeddingsManager
from src.services.session import Session
from tests.fakes import FakeConnectionHandle, FakeEmbeddingsProvider, connect_handle


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        _env_file=None,
        preview_features=["vectorSearch"],
        voyage_api_key=None,
        connection_string=None,
    )


@pytest.fixture
def handle() -> FakeConnectionHandle:
    return FakeConnectionHandle()


@pytest.fixture
def provider() -> FakeEmbeddingsProvider:
    return FakeEmbeddingsProvider()


@pytest.fixture
def connection_manager(app_config, handle) -> ConnectionManager:
    manager = ConnectionManager(app_config)
    connect_handle(manager, handle)
    return manager


@pytest.fixture
def embeddings_manager(app_config, connection_manager, provider) -> VectorSearchEmbeddingsManager:
    return VectorSearchEmbeddingsManager(
        app_config, connection_manager, provider_factory=lambda _: provider
    )


@pytest.fixture
def session(app_config, connection_manager, embeddings_manager) -> Session:
    return Session(app_config, connection_manager, embeddings_manager)


@pytest.fixture
def telemetry() -> MagicMock:
    return MagicMock()
