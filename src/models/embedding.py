"""Embedding generation parameters"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class InputType(str, Enum):
    """Whether the text is a search query or a document to be stored"""

    QUERY = "query"
    DOCUMENT = "document"


class VoyageModel(str, Enum):
    """VoyageAI text embedding models"""

    VOYAGE_3_LARGE = "voyage-3-large"
    VOYAGE_3_5 = "voyage-3.5"
    VOYAGE_3_5_LITE = "voyage-3.5-lite"
    VOYAGE_CODE_3 = "voyage-code-3"


OutputDimension = Literal[256, 512, 1024, 2048, 4096]
OutputDType = Literal["float", "int8", "uint8", "binary", "ubinary"]


class EmbeddingParameters(BaseModel):
    """Request-scoped embedding parameters supplied by the client

    Unknown fields are ignored so that extra keys an agent adds never reach the
    embeddings provider.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    model: VoyageModel = Field(
        default=VoyageModel.VOYAGE_3_LARGE, description="Embedding model to use"
    )
    output_dimension: OutputDimension = Field(
        default=1024, alias="outputDimension", description="Number of dimensions of the output"
    )
    output_dtype: OutputDType = Field(
        default="float", alias="outputDType", description="Data type of the returned embeddings"
    )
    input_type: InputType | None = Field(
        default=None, alias="inputType", description="Set by the server before dispatch"
    )


class InsertEmbeddingParameters(EmbeddingParameters):
    """Embedding parameters for insert-many: raw text to embed per document and path"""

    input: list[dict[str, str]] = Field(
        default_factory=list,
        description=(
            "One entry per document (same order as the documents). Each entry maps a "
            "vector field path to the raw text that must be embedded into that field."
        ),
    )
