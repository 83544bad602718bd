"""insert-many tool"""

import logging
from typing import Annotated, Any

from fastmcp import Context
from pydantic import Field

from src.models.embedding import InputType, InsertEmbeddingParameters
from src.models.tool_result import ToolResult
from src.models.vector_search import VectorFieldValidationError
from src.tools.base import OperationType
from src.tools.mongodb.base import Collection, Database, MongoDBToolBase
from src.utils.ejson import from_ejson
from src.utils.untrusted_data import format_untrusted_data

logger = logging.getLogger(__name__)


def set_field(document: dict[str, Any], path: str, value: Any) -> None:
    """
    Set a dot path value, creating intermediate documents as needed

    Raises:
        ValueError: If an intermediate segment already holds a non-document value
    """
    *parents, leaf = path.split(".")
    target = document
    for segment in parents:
        if segment not in target:
            target[segment] = {}
        child = target[segment]
        if not isinstance(child, dict):
            raise ValueError(
                f'Cannot set "{path}": "{segment}" already holds a value that is not a document.'
            )
        target = child
    target[leaf] = value


class InsertManyTool(MongoDBToolBase):
    name = "insert-many"
    description = "Insert an array of documents into a MongoDB collection"
    operation_type = OperationType.CREATE

    async def handler(
        self,
        database: Database,
        collection: Collection,
        documents: Annotated[
            list[dict[str, Any]],
            Field(
                description=(
                    "The array of documents to insert, matching the syntax of the document "
                    "argument of db.collection.insertMany()"
                )
            ),
        ],
        ctx: Context,
        embedding_parameters: Annotated[
            InsertEmbeddingParameters | None,
            Field(
                description=(
                    "Generate embeddings for vector fields before inserting. Requires the "
                    "vectorSearch preview feature and a configured embeddings provider."
                )
            ),
        ] = None,
    ) -> str:
        return await self.respond(
            ctx,
            database=database,
            collection=collection,
            documents=documents,
            embedding_parameters=embedding_parameters,
        )

    async def execute(
        self,
        *,
        database: str,
        collection: str,
        documents: list[dict[str, Any]],
        embedding_parameters: InsertEmbeddingParameters | None = None,
    ) -> ToolResult:
        handle = await self.ensure_connected()
        documents = [from_ejson(document) for document in documents]

        if embedding_parameters is not None and embedding_parameters.input:
            if not self.is_vector_search_enabled():
                return ToolResult(
                    content=[
                        "Embedding generation requires the vectorSearch preview feature. "
                        "No document was inserted."
                    ],
                    is_error=True,
                )
            await self._embed_documents(database, collection, documents, embedding_parameters)

        violations: list[VectorFieldValidationError] = []
        for document in documents:
            violations.extend(
                await self.session.embeddings_manager.find_violations(
                    database, collection, document
                )
            )

        if violations:
            # All or nothing: a single invalid document aborts the whole batch
            return ToolResult(
                content=format_untrusted_data(
                    "There were errors when inserting documents. No document was inserted.",
                    *_unique_descriptions(violations),
                ),
                is_error=True,
            )

        inserted_ids = await handle.insert_many(database, collection, documents)
        return ToolResult(
            content=format_untrusted_data(
                "Documents were inserted successfully.",
                f"Inserted `{len(inserted_ids)}` document(s) into {database}.{collection}.",
                f"Inserted IDs: {', '.join(str(inserted_id) for inserted_id in inserted_ids)}",
            )
        )

    async def _embed_documents(
        self,
        database: str,
        collection: str,
        documents: list[dict[str, Any]],
        parameters: InsertEmbeddingParameters,
    ) -> None:
        """Generate document embeddings and write them into the documents in place"""
        if len(parameters.input) > len(documents):
            raise ValueError(
                f"embedding_parameters.input has {len(parameters.input)} entries but only "
                f"{len(documents)} documents were provided"
            )

        # path -> [(document position, raw text)]
        by_path: dict[str, list[tuple[int, str]]] = {}
        for position, inputs in enumerate(parameters.input):
            for path, text in inputs.items():
                by_path.setdefault(path, []).append((position, text))

        for path, entries in by_path.items():
            embeddings = await self.session.embeddings_manager.generate_embeddings(
                database=database,
                collection=collection,
                path=path,
                raw_values=[text for _, text in entries],
                embedding_parameters=parameters,
                input_type=InputType.DOCUMENT,
            )
            for (position, _), embedding in zip(entries, embeddings, strict=True):
                set_field(documents[position], path, embedding)
            logger.debug(f"Generated {len(embeddings)} embeddings for {path}")


def _unique_descriptions(violations: list[VectorFieldValidationError]) -> list[str]:
    return list(dict.fromkeys(violation.describe() for violation in violations))
