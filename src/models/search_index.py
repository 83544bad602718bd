"""Search index listing models"""

from typing import Any

from pydantic import BaseModel, Field


class SearchIndexWithStatus(BaseModel):
    """Relevant subset of a search index description

    The server reports a lot of per-node status information that is not useful to an
    agent; only the main status, queryability, name, type and definition are kept.
    """

    name: str = Field(default="default", description="Index name")
    type: str = Field(default="UNKNOWN", description="search or vectorSearch")
    status: str = Field(default="UNKNOWN", description="Build status of the index")
    queryable: bool = Field(default=False, description="Whether the index can be queried")
    latest_definition: dict[str, Any] | None = Field(
        default=None, serialization_alias="latestDefinition", description="Index definition"
    )

    @classmethod
    def from_index(cls, index: dict[str, Any]) -> "SearchIndexWithStatus":
        return cls(
            name=index.get("name") or "default",
            type=index.get("type") or "UNKNOWN",
            status=index.get("status") or "UNKNOWN",
            queryable=bool(index.get("queryable", False)),
            latest_definition=index.get("latestDefinition"),
        )
