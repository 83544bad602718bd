"""Data models for the MCP server"""

from src.models.embedding import (
    EmbeddingParameters,
    InputType,
    InsertEmbeddingParameters,
    VoyageModel,
)
from src.models.index_definition import (
    ClassicIndexDefinition,
    IndexDefinition,
    VectorSearchFilterField,
    VectorSearchIndexDefinition,
    VectorSearchVectorField,
)
from src.models.search_index import SearchIndexWithStatus
from src.models.tool_result import ToolResult
from src.models.vector_search import (
    EmbeddingNamespace,
    Quantization,
    Similarity,
    ValidationErrorKind,
    VectorFieldIndexDefinition,
    VectorFieldValidationError,
    embedding_namespace,
)

__all__ = [
    "ClassicIndexDefinition",
    "EmbeddingNamespace",
    "EmbeddingParameters",
    "IndexDefinition",
    "InputType",
    "InsertEmbeddingParameters",
    "Quantization",
    "SearchIndexWithStatus",
    "Similarity",
    "ToolResult",
    "ValidationErrorKind",
    "VectorFieldIndexDefinition",
    "VectorFieldValidationError",
    "VectorSearchFilterField",
    "VectorSearchIndexDefinition",
    "VectorSearchVectorField",
    "VoyageModel",
    "embedding_namespace",
]
