"""Centralized configuration using Pydantic BaseSettings"""

from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration with environment variable support"""

    # MongoDB connection
    connection_string: str | None = Field(
        default=None, description="MongoDB connection string used when no connect tool call was made"
    )
    app_name: str = Field(
        default="mongodb-vector-mcp", description="Application name reported to the MongoDB server"
    )

    # Access control
    read_only: bool = Field(
        default=False, description="Only register tools that read data or metadata"
    )
    disabled_tools: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Tool names, categories (mongodb) or operation types (create, delete...) to disable",
    )
    confirmation_required_tools: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["drop-index"],
        description="Tools that ask the client for confirmation before running",
    )
    preview_features: Annotated[list[str], NoDecode] = Field(
        default_factory=list, description="Preview features to enable (vectorSearch)"
    )

    # Vector search
    disable_embeddings_validation: bool = Field(
        default=False,
        description="Skip dimension/quantization checks of embeddings against vector search indexes",
    )
    vector_search_dimensions: int = Field(
        default=1024, ge=1, le=8192, description="Default numDimensions for new vector fields"
    )
    vector_search_similarity_function: Literal["cosine", "euclidean", "dotProduct"] = Field(
        default="euclidean",
        description="Default similarity for new vector fields (cosine, euclidean, dotProduct)",
    )

    # Embeddings provider (VoyageAI)
    voyage_api_key: str | None = Field(default=None, description="VoyageAI API key")
    voyage_api_url: str = Field(
        default="https://api.voyageai.com/v1", description="VoyageAI API base URL"
    )
    embedding_batch_size: int = Field(
        default=128, ge=1, le=1000, description="Batch size for embedding generation"
    )
    embedding_timeout: float = Field(
        default=30.0, gt=0, description="HTTP timeout in seconds for embedding requests"
    )
    http_proxy: str | None = Field(
        default=None,
        description="Outbound proxy for embedding requests (HTTP(S)_PROXY env vars are also honored)",
    )

    # Query limits
    max_documents_per_query: int = Field(
        default=100, ge=0, description="Maximum documents returned by aggregate (0 disables)"
    )
    max_bytes_per_query: int = Field(
        default=16 * 1024 * 1024, ge=0, description="Maximum response size in bytes (0 disables)"
    )

    # MCP Server
    mcp_host: str = Field(default="0.0.0.0", description="MCP server bind address")
    mcp_port: int = Field(default=8080, ge=1024, le=65535, description="MCP server port")
    mcp_transport: str = Field(
        default="streamable-http", description="MCP transport (streamable-http, stdio)"
    )

    # OpenTelemetry
    otel_logging_enabled: bool = Field(default=False, description="Enable OpenTelemetry logging")
    otel_tracing_enabled: bool = Field(
        default=False, description="Enable OpenTelemetry tracing for HTTP requests"
    )
    otel_endpoint: str = Field(
        default="http://localhost:4318",
        description="OpenTelemetry collector endpoint (HTTP/protobuf)",
    )
    otel_service_name: str = Field(
        default="mongodb-vector-mcp", description="Service name for OpenTelemetry"
    )
    otel_service_version: str = Field(
        default="1.0.0", description="Service version for OpenTelemetry"
    )

    model_config = SettingsConfigDict(
        env_prefix="MDB_MCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "disabled_tools", "confirmation_required_tools", "preview_features", mode="before"
    )
    @classmethod
    def split_comma_separated(cls, v: object) -> object:
        """Accept comma separated lists from the environment"""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    def is_preview_feature_enabled(self, feature: str) -> bool:
        return feature in self.preview_features


# Global config instance
config = AppConfig()
