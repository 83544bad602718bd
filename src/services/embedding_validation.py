"""Validation of document embeddings against vector search index definitions"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from bson.binary import VECTOR_SUBTYPE, Binary, BinaryVectorDtype
from bson.decimal128 import Decimal128

from src.models.vector_search import (
    Quantization,
    ValidationErrorKind,
    VectorFieldIndexDefinition,
    VectorFieldValidationError,
)
from src.services.vector_field_catalog import VectorFieldCatalogCache

_MISSING = object()

# dtype byte + padding byte
_VECTOR_HEADER_SIZE = 2


@dataclass(frozen=True)
class VectorDecodeResult:
    """Outcome of decoding a BSON binary vector: the element count, or a failure"""

    ok: bool
    length: int = 0

    @classmethod
    def decoded(cls, length: int) -> "VectorDecodeResult":
        return cls(ok=True, length=length)

    @classmethod
    def failed(cls) -> "VectorDecodeResult":
        return cls(ok=False)


def _vector_payload(value: Binary) -> tuple[bytes, int, bytes] | None:
    """Split a vector-subtype binary into (dtype, padding, data)"""
    if value.subtype != VECTOR_SUBTYPE:
        return None
    raw = bytes(value)
    if len(raw) < _VECTOR_HEADER_SIZE:
        return None
    return raw[:1], raw[1], raw[_VECTOR_HEADER_SIZE:]


def decode_float32_length(value: Binary) -> VectorDecodeResult:
    payload = _vector_payload(value)
    if payload is None:
        return VectorDecodeResult.failed()

    dtype, padding, data = payload
    if dtype != BinaryVectorDtype.FLOAT32.value or padding != 0 or len(data) % 4 != 0:
        return VectorDecodeResult.failed()
    return VectorDecodeResult.decoded(len(data) // 4)


def decode_bits_length(value: Binary) -> VectorDecodeResult:
    payload = _vector_payload(value)
    if payload is None:
        return VectorDecodeResult.failed()

    dtype, padding, data = payload
    if dtype != BinaryVectorDtype.PACKED_BIT.value or padding > 7:
        return VectorDecodeResult.failed()
    if not data and padding != 0:
        return VectorDecodeResult.failed()
    return VectorDecodeResult.decoded(len(data) * 8 - padding)


# Tried in order, first successful decode wins
BINARY_VECTOR_DECODERS: tuple[Callable[[Binary], VectorDecodeResult], ...] = (
    decode_float32_length,
    decode_bits_length,
)


def decode_binary_vector_length(value: Binary) -> VectorDecodeResult:
    for decoder in BINARY_VECTOR_DECODERS:
        result = decoder(value)
        if result.ok:
            return result
    return VectorDecodeResult.failed()


def resolve_field(document: Mapping[str, Any], path: str) -> Any:
    """Walk a dot path through nested mappings, returning _MISSING if absent"""
    value: Any = document
    for segment in path.split("."):
        if isinstance(value, Mapping) and segment in value:
            value = value[segment]
        else:
            return _MISSING
    return value


def is_numeric(value: Any) -> bool:
    # bson.Int64 is an int subclass; bool is not a number in a vector
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float, Decimal128))


def find_field_violation(
    definition: VectorFieldIndexDefinition, document: Mapping[str, Any]
) -> VectorFieldValidationError | None:
    """
    Check one document field against its vector field definition

    A document that does not contain the field is not wrong about it. Unquantized
    vectors are not checked: the index publishes no format contract for them.
    """
    value = resolve_field(document, definition.path)
    if value is _MISSING:
        return None

    if definition.quantization == Quantization.NONE:
        return None

    def violation(
        error: ValidationErrorKind,
        actual_num_dimensions: int | str = "unknown",
        actual_quantization: Quantization | str = "unknown",
    ) -> VectorFieldValidationError:
        return VectorFieldValidationError(
            path=definition.path,
            expected_num_dimensions=definition.num_dimensions,
            expected_quantization=definition.quantization,
            actual_num_dimensions=actual_num_dimensions,
            actual_quantization=actual_quantization,
            error=error,
        )

    if isinstance(value, Binary):
        decoded = decode_binary_vector_length(value)
        if not decoded.ok:
            return violation(
                ValidationErrorKind.NOT_A_VECTOR, actual_quantization=Quantization.BINARY
            )
        if decoded.length != definition.num_dimensions:
            return violation(
                ValidationErrorKind.DIMENSION_MISMATCH, decoded.length, Quantization.BINARY
            )
        return None

    if not isinstance(value, (list, tuple)):
        return violation(ValidationErrorKind.NOT_A_VECTOR)

    if len(value) != definition.num_dimensions:
        return violation(ValidationErrorKind.DIMENSION_MISMATCH, len(value), Quantization.SCALAR)

    if not all(is_numeric(element) for element in value):
        return violation(ValidationErrorKind.NOT_NUMERIC, len(value), Quantization.SCALAR)

    return None


class EmbeddingValidator:
    """Find document fields whose embeddings do not match the namespace's vector indexes"""

    def __init__(self, catalog: VectorFieldCatalogCache):
        self.catalog = catalog

    async def find_violations(
        self, database: str, collection: str, document: Mapping[str, Any]
    ) -> list[VectorFieldValidationError]:
        """
        Validate a document's vector fields

        Returns:
            list[VectorFieldValidationError]: At most one violation per vector field,
            in the order of the index definitions
        """
        # Validation is best effort, so users can opt out of it entirely
        if self.catalog.config.disable_embeddings_validation:
            return []

        if await self.catalog.search_enabled_handle() is None:
            return []

        definitions = await self.catalog.definitions_for(database, collection)
        violations: list[VectorFieldValidationError] = []
        for definition in definitions:
            violation = find_field_violation(definition, document)
            if violation is not None:
                violations.append(violation)
        return violations
