"""Embedding generation through the VoyageAI API"""

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict

from src.config import AppConfig
from src.models.embedding import EmbeddingParameters, InputType, OutputDimension, OutputDType

logger = logging.getLogger(__name__)


class EmbeddingsProviderError(Exception):
    """Raised when the embeddings provider rejects or fails a request"""

    def __init__(self, status_code: int | None = None, message: str = ""):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Embeddings request failed: {message}")


class EmbeddingsProvider(Protocol):
    async def embed(
        self,
        model: str,
        inputs: list[str],
        parameters: EmbeddingParameters | Mapping[str, Any],
    ) -> list[list[float]]: ...


class VoyageEmbeddingParameters(BaseModel):
    """The parameters the VoyageAI embeddings endpoint accepts, anything else is dropped"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    input_type: InputType | None = None
    output_dimension: OutputDimension | None = None
    output_dtype: OutputDType | None = None


def _normalize_parameters(
    parameters: EmbeddingParameters | Mapping[str, Any],
) -> VoyageEmbeddingParameters:
    if isinstance(parameters, EmbeddingParameters):
        values = parameters.model_dump(exclude_none=True)
    else:
        values = EmbeddingParameters.model_validate(dict(parameters)).model_dump(exclude_none=True)
    return VoyageEmbeddingParameters.model_validate(values)


class VoyageEmbeddingsProvider:
    """Generate embeddings with VoyageAI models"""

    def __init__(self, app_config: AppConfig, transport: httpx.AsyncBaseTransport | None = None):
        """
        Initialize provider

        Args:
            app_config: Configuration holding the API key, URL and proxy settings
            transport: Optional httpx transport (used instead of the network)

        Raises:
            ValueError: If no VoyageAI API key is configured
        """
        if not app_config.voyage_api_key:
            raise ValueError("The VoyageAI API key is not configured")

        self.api_key = app_config.voyage_api_key
        self.api_url = app_config.voyage_api_url.rstrip("/")
        self.batch_size = app_config.embedding_batch_size
        self.timeout = app_config.embedding_timeout
        # Enterprise networks may block direct egress, so requests always honor the
        # configured proxy or the HTTP(S)_PROXY environment variables
        self.proxy = app_config.http_proxy
        self.transport = transport

    @staticmethod
    def is_configured_in(app_config: AppConfig) -> bool:
        return bool(app_config.voyage_api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=httpx.Timeout(self.timeout),
            proxy=self.proxy,
            transport=self.transport,
            trust_env=True,
        )

    async def embed(
        self,
        model: str,
        inputs: list[str],
        parameters: EmbeddingParameters | Mapping[str, Any],
    ) -> list[list[float]]:
        """
        Generate embeddings for a list of texts

        Args:
            model: VoyageAI model name
            inputs: Texts to embed
            parameters: Embedding parameters, unsupported fields are ignored

        Returns:
            list[list[float]]: One embedding per input, in input order

        Raises:
            EmbeddingsProviderError: If the API request fails
        """
        if not inputs:
            return []

        options = _normalize_parameters(parameters).model_dump(mode="json", exclude_none=True)
        model_name = getattr(model, "value", model)

        embeddings: list[list[float]] = []
        async with self._client() as client:
            for i in range(0, len(inputs), self.batch_size):
                batch = inputs[i : i + self.batch_size]
                embeddings.extend(await self._embed_batch(client, model_name, batch, options))

        logger.debug(f"Generated {len(embeddings)} embeddings with {model_name}")
        return embeddings

    async def _embed_batch(
        self,
        client: httpx.AsyncClient,
        model: str,
        batch: list[str],
        options: dict[str, Any],
    ) -> list[list[float]]:
        try:
            response = await client.post(
                "/embeddings", json={"input": batch, "model": model, **options}
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise EmbeddingsProviderError(e.response.status_code, e.response.text) from e
        except httpx.HTTPError as e:
            raise EmbeddingsProviderError(message=str(e)) from e

        data = sorted(response.json().get("data", []), key=lambda item: item.get("index", 0))
        if len(data) != len(batch):
            raise EmbeddingsProviderError(
                response.status_code,
                f"expected {len(batch)} embeddings, received {len(data)}",
            )

        # int8/uint8/binary encodings come back as integers
        return [[float(value) for value in item["embedding"]] for item in data]


def get_embeddings_provider(app_config: AppConfig) -> EmbeddingsProvider | None:
    """Return the configured embeddings provider, or None if there is none"""
    if VoyageEmbeddingsProvider.is_configured_in(app_config):
        return VoyageEmbeddingsProvider(app_config)
    return None
