"""Index definitions accepted by the create-index tool"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.vector_search import Quantization, Similarity

FIELD_PATH_DESCRIPTION = (
    "Name of the field to index. For nested fields, use dot notation to specify path to "
    "embedded fields"
)


class ClassicIndexDefinition(BaseModel):
    """Standard B-tree style index"""

    type: Literal["classic"] = "classic"
    keys: dict[str, Any] = Field(
        description="The index keys, e.g. {\"title\": 1} or {\"location\": \"2dsphere\"}"
    )


class VectorSearchFilterField(BaseModel):
    """Field that can be used to pre-filter vector search results"""

    model_config = ConfigDict(extra="forbid")

    type: Literal["filter"] = "filter"
    path: str = Field(min_length=1, description=FIELD_PATH_DESCRIPTION)


class VectorSearchVectorField(BaseModel):
    """Field that contains vector embeddings

    numDimensions and similarity are left unset when the client omits them so that the
    server's configured defaults can be applied.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    type: Literal["vector"] = "vector"
    path: str = Field(min_length=1, description=FIELD_PATH_DESCRIPTION)
    num_dimensions: int | None = Field(
        default=None,
        alias="numDimensions",
        ge=1,
        le=8192,
        description=(
            "Number of vector dimensions that MongoDB Vector Search enforces at index-time and "
            "query-time"
        ),
    )
    similarity: Similarity | None = Field(
        default=None,
        description="Vector similarity function to use to search for top K-nearest neighbors",
    )
    quantization: Quantization = Field(
        default=Quantization.NONE,
        description=(
            "Type of automatic vector quantization for your vectors. Use this setting only if "
            "your embeddings are float or double vectors."
        ),
    )

    def with_defaults(self, num_dimensions: int, similarity: Similarity) -> "VectorSearchVectorField":
        return self.model_copy(
            update={
                "num_dimensions": self.num_dimensions or num_dimensions,
                "similarity": self.similarity or similarity,
            }
        )


VectorSearchField = Annotated[
    VectorSearchFilterField | VectorSearchVectorField, Field(discriminator="type")
]


class VectorSearchIndexDefinition(BaseModel):
    """Vector search index made of vector and filter fields"""

    type: Literal["vectorSearch"] = "vectorSearch"
    fields: list[VectorSearchField] = Field(
        min_length=1,
        description=(
            "Definitions for the vector and filter fields to index. Use `vector` for fields "
            "that contain vector embeddings and `filter` for additional fields to filter on. "
            "At least one vector-type field definition is required."
        ),
    )

    @model_validator(mode="after")
    def require_vector_field(self) -> "VectorSearchIndexDefinition":
        if not any(isinstance(field, VectorSearchVectorField) for field in self.fields):
            raise ValueError("At least one vector field must be defined")
        return self

    def to_search_definition(
        self, num_dimensions: int, similarity: Similarity
    ) -> dict[str, Any]:
        """Server-side definition with defaults filled in for vector fields"""
        fields = [
            field.with_defaults(num_dimensions, similarity)
            if isinstance(field, VectorSearchVectorField)
            else field
            for field in self.fields
        ]
        return {
            "fields": [
                field.model_dump(mode="json", by_alias=True, exclude_none=True) for field in fields
            ]
        }


IndexDefinition = Annotated[
    ClassicIndexDefinition | VectorSearchIndexDefinition, Field(discriminator="type")
]
