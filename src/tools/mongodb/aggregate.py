"""aggregate tool"""

import asyncio
import logging
from typing import Annotated, Any

import bson
from fastmcp import Context
from pydantic import Field

from src.models.embedding import EmbeddingParameters, InputType
from src.models.tool_result import ToolResult
from src.services.connection_manager import ConnectionHandle
from src.services.errors import ErrorCode, MongoDBError
from src.tools.base import OperationType
from src.tools.mongodb.base import Collection, Database, MongoDBToolBase
from src.utils.ejson import from_ejson, to_ejson
from src.utils.fallback import operation_with_fallback
from src.utils.untrusted_data import format_untrusted_data

logger = logging.getLogger(__name__)

ONE_MB = 1024 * 1024
AGG_COUNT_MAX_TIME_MS_CAP = 60_000
WRITE_STAGES = ("$out", "$merge")
WRITE_OPERATIONS = {OperationType.CREATE.value, OperationType.UPDATE.value, OperationType.DELETE.value}

LIMIT_DESCRIPTIONS = {
    "max_documents_per_query": "server's configured - max_documents_per_query",
    "max_bytes_per_query": "server's configured - max_bytes_per_query",
    "response_bytes_limit": "tool's parameter - response_bytes_limit",
}


def collect_until_bytes_limit(
    documents: list[dict[str, Any]], max_bytes: int
) -> tuple[list[dict[str, Any]], bool]:
    """
    Keep leading documents while their encoded size stays within max_bytes

    Returns:
        tuple: The kept documents and whether any document was dropped
    """
    if max_bytes <= 0:
        return documents, False

    kept: list[dict[str, Any]] = []
    total = 0
    for document in documents:
        total += len(bson.encode(document))
        if total > max_bytes:
            return kept, True
        kept.append(document)
    return kept, False


class AggregateTool(MongoDBToolBase):
    name = "aggregate"
    description = (
        "Run an aggregation against a MongoDB collection. A $vectorSearch stage may pass a "
        "text queryVector together with embeddingParameters to have the embedding generated "
        "by the server."
    )
    operation_type = OperationType.READ

    async def handler(
        self,
        database: Database,
        collection: Collection,
        pipeline: Annotated[
            list[dict[str, Any]], Field(description="An array of aggregation stages to execute")
        ],
        ctx: Context,
        response_bytes_limit: Annotated[
            int,
            Field(
                description=(
                    "The maximum number of bytes to return in the response. This value is "
                    "capped by the server's configured max_bytes_per_query."
                )
            ),
        ] = ONE_MB,
    ) -> str:
        return await self.respond(
            ctx,
            database=database,
            collection=collection,
            pipeline=pipeline,
            response_bytes_limit=response_bytes_limit,
        )

    async def execute(
        self,
        *,
        database: str,
        collection: str,
        pipeline: list[dict[str, Any]],
        response_bytes_limit: int = ONE_MB,
    ) -> ToolResult:
        handle = await self.ensure_connected()
        pipeline = [from_ejson(stage) for stage in pipeline]

        self.assert_only_uses_permitted_stages(pipeline)
        pipeline = await self.replace_raw_query_vectors(database, collection, pipeline)

        capped_pipeline = list(pipeline)
        if self.config.max_documents_per_query > 0:
            capped_pipeline.append({"$limit": self.config.max_documents_per_query})

        count_task = asyncio.create_task(
            self._count_documents(handle, database, collection, pipeline)
        )
        try:
            documents = await handle.aggregate(database, collection, capped_pipeline)
        except BaseException:
            count_task.cancel()
            raise
        total_documents = await count_task

        applied_limits: list[str] = []
        if (
            self.config.max_documents_per_query > 0
            and total_documents is not None
            and total_documents > self.config.max_documents_per_query
        ):
            applied_limits.append("max_documents_per_query")

        max_bytes, bytes_limit_name = self._bytes_limit(response_bytes_limit)
        documents, capped_by_bytes = collect_until_bytes_limit(documents, max_bytes)
        if capped_by_bytes and bytes_limit_name:
            applied_limits.append(bytes_limit_name)

        return ToolResult(
            content=format_untrusted_data(
                self._message(total_documents, len(documents), applied_limits),
                *([to_ejson(documents)] if documents else []),
            )
        )

    def assert_only_uses_permitted_stages(self, pipeline: list[dict[str, Any]]) -> None:
        """
        Raises:
            MongoDBError: If the pipeline writes data while writes are not allowed
        """
        if self.config.read_only:
            message = "In readOnly mode you can not run pipelines with $out or $merge stages."
        elif WRITE_OPERATIONS.intersection(self.config.disabled_tools):
            message = (
                "When 'create', 'update', or 'delete' operations are disabled, you can not run "
                "pipelines with $out or $merge stages."
            )
        else:
            return

        for stage in pipeline:
            if any(key in stage for key in WRITE_STAGES):
                raise MongoDBError(ErrorCode.FORBIDDEN_WRITE_OPERATION, message)

    async def replace_raw_query_vectors(
        self, database: str, collection: str, pipeline: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """
        Turn text queryVector values of $vectorSearch stages into embeddings

        embeddingParameters is removed from every $vectorSearch stage since the server
        does not accept it.
        """
        result: list[dict[str, Any]] = []
        for stage in pipeline:
            vector_search = stage.get("$vectorSearch")
            if not isinstance(vector_search, dict):
                result.append(stage)
                continue

            vector_search = dict(vector_search)
            raw_parameters = vector_search.pop("embeddingParameters", None)
            query_vector = vector_search.get("queryVector")

            if isinstance(query_vector, str):
                if not self.is_vector_search_enabled():
                    raise ValueError(
                        "Generating query embeddings requires the vectorSearch preview feature."
                    )
                parameters = EmbeddingParameters.model_validate(raw_parameters or {})
                embeddings = await self.session.embeddings_manager.generate_embeddings(
                    database=database,
                    collection=collection,
                    path=vector_search.get("path", ""),
                    raw_values=[query_vector],
                    embedding_parameters=parameters,
                    input_type=InputType.QUERY,
                )
                vector_search["queryVector"] = embeddings[0]
                logger.debug(f"Generated query vector for {vector_search.get('path')}")

            result.append({**stage, "$vectorSearch": vector_search})
        return result

    async def _count_documents(
        self,
        handle: ConnectionHandle,
        database: str,
        collection: str,
        pipeline: list[dict[str, Any]],
    ) -> int | None:
        async def count() -> int:
            results = await handle.aggregate(
                database,
                collection,
                [*pipeline, {"$count": "totalDocuments"}],
                max_time_ms=AGG_COUNT_MAX_TIME_MS_CAP,
            )
            if len(results) == 1 and isinstance(results[0].get("totalDocuments"), int):
                return results[0]["totalDocuments"]
            return 0

        return await operation_with_fallback(count, None)

    def _bytes_limit(self, response_bytes_limit: int) -> tuple[int, str | None]:
        configured = self.config.max_bytes_per_query
        if configured > 0 and (response_bytes_limit <= 0 or configured < response_bytes_limit):
            return configured, "max_bytes_per_query"
        if response_bytes_limit > 0:
            return response_bytes_limit, "response_bytes_limit"
        return 0, None

    @staticmethod
    def _message(total_documents: int | None, returned: int, applied_limits: list[str]) -> str:
        total = "indeterminable number of" if total_documents is None else str(total_documents)
        message = f"The aggregation resulted in {total} documents. Returning {returned} documents"
        if applied_limits:
            limits = ", ".join(LIMIT_DESCRIPTIONS[limit] for limit in applied_limits)
            return f"{message} while respecting the applied limits of {limits}."
        return f"{message}."
