"""Vector search index field definitions and embedding validation results"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Quantization(str, Enum):
    """Automatic quantization applied to a vector field by the search index"""

    NONE = "none"
    SCALAR = "scalar"
    BINARY = "binary"


class Similarity(str, Enum):
    """Similarity function used to rank nearest neighbours"""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOT_PRODUCT = "dotProduct"


class ValidationErrorKind(str, Enum):
    """Why a document field does not satisfy its vector field definition"""

    DIMENSION_MISMATCH = "dimension-mismatch"
    QUANTIZATION_MISMATCH = "quantization-mismatch"
    NOT_A_VECTOR = "not-a-vector"
    NOT_NUMERIC = "not-numeric"


# "<database>.<collection>"
EmbeddingNamespace = str


def embedding_namespace(database: str, collection: str) -> EmbeddingNamespace:
    return f"{database}.{collection}"


class VectorFieldIndexDefinition(BaseModel):
    """One vector field of a vector search index

    numDimensions and quantization are fixed when the index is created, so a cached
    definition stays valid until the index is dropped or recreated.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    type: Literal["vector"] = "vector"
    path: str = Field(min_length=1, description="Dot-separated path of the field")
    num_dimensions: int = Field(
        alias="numDimensions", ge=1, le=8192, description="Number of vector dimensions"
    )
    quantization: Quantization = Field(
        default=Quantization.NONE, description="Automatic quantization of the vectors"
    )
    similarity: Similarity | None = Field(
        default=None, description="Similarity function (not used for validation)"
    )


class VectorFieldValidationError(BaseModel):
    """A document field that is not compatible with its vector field definition"""

    model_config = ConfigDict(populate_by_name=True)

    path: str
    expected_num_dimensions: int = Field(alias="expectedNumDimensions")
    expected_quantization: Quantization = Field(alias="expectedQuantization")
    actual_num_dimensions: int | Literal["unknown"] = Field(
        default="unknown", alias="actualNumDimensions"
    )
    actual_quantization: Quantization | Literal["unknown"] = Field(
        default="unknown", alias="actualQuantization"
    )
    error: ValidationErrorKind = ValidationErrorKind.NOT_A_VECTOR

    def describe(self) -> str:
        """Human (and LLM) readable explanation of the violation"""
        return (
            f"- Field {self.path} is an embedding with {self.expected_num_dimensions} dimensions "
            f"and {self.expected_quantization.value} quantization, and the provided value is not "
            f"compatible. Actual dimensions: {self.actual_num_dimensions}, actual quantization: "
            f"{_value(self.actual_quantization)}. Error: {self.error.value}"
        )


def _value(quantization: Quantization | str) -> str:
    return quantization.value if isinstance(quantization, Quantization) else quantization
