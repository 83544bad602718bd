"""Error codes surfaced to MCP clients"""

from enum import IntEnum


class ErrorCode(IntEnum):
    """Application error codes, kept outside the range used by the MongoDB server"""

    NOT_CONNECTED_TO_MONGODB = 1_000_000
    MISCONFIGURED_CONNECTION_STRING = 1_000_001
    FORBIDDEN_WRITE_OPERATION = 1_000_003
    ATLAS_SEARCH_NOT_SUPPORTED = 1_000_004
    NO_EMBEDDINGS_PROVIDER_CONFIGURED = 1_000_005
    ATLAS_VECTOR_SEARCH_INDEX_NOT_FOUND = 1_000_006


class MongoDBError(Exception):
    """Raised when an operation cannot be performed against the current connection"""

    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(message)
