"""Base class for MCP tools: access control, confirmation, errors and telemetry"""

import logging
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from fastmcp import Context, FastMCP
from fastmcp.exceptions import McpError
from mcp.types import ErrorData, ToolAnnotations

from src.config import AppConfig
from src.models.tool_result import ToolResult
from src.services.session import Session
from src.services.telemetry import TelemetryService, get_telemetry_service

logger = logging.getLogger(__name__)


class OperationType(str, Enum):
    """
    What a tool does, used to decide whether it may be registered

    - metadata: reads data that is not user generated (indexes, schemas)
    - read: reads potentially user generated data (aggregations)
    - create / update / delete: changes resources
    - connect: changes the connection
    """

    METADATA = "metadata"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CONNECT = "connect"


READ_ONLY_OPERATIONS = {OperationType.METADATA, OperationType.READ, OperationType.CONNECT}


class ToolBase(ABC):
    """
    A tool exposed over MCP

    Subclasses declare `name`, `description`, `category` and `operation_type`,
    implement `execute` with keyword arguments, and expose a typed `handler`
    coroutine whose signature becomes the MCP input schema.
    """

    name: str
    description: str
    category: str
    operation_type: OperationType

    def __init__(self, session: Session, telemetry: TelemetryService | None = None):
        self.session = session
        self.config: AppConfig = session.config
        self.telemetry = telemetry or get_telemetry_service()

    @property
    def annotations(self) -> ToolAnnotations:
        read_only = self.operation_type in READ_ONLY_OPERATIONS
        return ToolAnnotations(
            title=self.name,
            readOnlyHint=read_only,
            destructiveHint=self.operation_type == OperationType.DELETE,
        )

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Run the tool with validated arguments"""

    @abstractmethod
    async def handler(self, *args: Any, **kwargs: Any) -> str:
        """MCP entry point with the tool's typed signature"""

    def verify_allowed(self) -> bool:
        """Check whether the configuration allows registering this tool"""
        clarification: str | None = None

        if self.config.read_only and self.operation_type not in READ_ONLY_OPERATIONS:
            clarification = (
                f"read-only mode is enabled, its operation type, `{self.operation_type.value}`,"
            )
        elif self.category in self.config.disabled_tools:
            clarification = f"its category, `{self.category}`,"
        elif self.operation_type.value in self.config.disabled_tools:
            clarification = f"its operation type, `{self.operation_type.value}`,"
        elif self.name in self.config.disabled_tools:
            clarification = "it"

        if clarification:
            logger.debug(
                f"Prevented registration of {self.name} because {clarification} is disabled "
                "in the config"
            )
            return False

        return True

    def get_confirmation_message(self, **kwargs: Any) -> str:
        return (
            f"You are about to execute the `{self.name}` tool which requires additional "
            "confirmation. Would you like to proceed?"
        )

    async def verify_confirmed(self, ctx: Context | None, **kwargs: Any) -> bool:
        """Ask the client for confirmation if the tool requires it"""
        if self.name not in self.config.confirmation_required_tools:
            return True

        if ctx is None:
            return True

        try:
            result = await ctx.elicit(self.get_confirmation_message(**kwargs), response_type=None)
        except McpError as e:
            # Clients without elicitation support cannot be asked
            logger.warning(f"Could not request confirmation for {self.name}: {e}")
            return True

        return result.action == "accept"

    def handle_error(self, error: Exception, **kwargs: Any) -> ToolResult:
        """Turn an exception into a tool result, subclasses may special-case errors"""
        return ToolResult(content=[f"Error running {self.name}: {error}"], is_error=True)

    async def invoke(self, ctx: Context | None = None, **kwargs: Any) -> ToolResult:
        """Run the tool with confirmation, error handling and telemetry"""
        start_time = time.monotonic()
        error: Exception | None = None

        try:
            if not await self.verify_confirmed(ctx, **kwargs):
                message = (
                    f"User did not confirm the execution of the `{self.name}` tool so the "
                    "operation was not performed."
                )
                logger.debug(message)
                result = ToolResult(content=[message])
            else:
                logger.debug(f"Executing tool {self.name}")
                result = await self.execute(**kwargs)
                logger.debug(f"Executed tool {self.name}")
        except Exception as e:
            logger.error(f"Error executing {self.name}: {e}")
            error = e
            result = self.handle_error(e, **kwargs)

        self._emit_tool_event(start_time, result, error)
        return result

    async def respond(self, ctx: Context | None = None, **kwargs: Any) -> str:
        """Invoke the tool and convert the result for fastmcp"""
        result = await self.invoke(ctx, **kwargs)
        if result.is_error:
            raise McpError(ErrorData(code=-32603, message=result.text))
        return result.text

    def register(self, mcp: FastMCP) -> bool:
        """Register the tool on the server if the configuration allows it"""
        if not self.verify_allowed():
            return False

        mcp.tool(
            self.handler,
            name=self.name,
            description=self.description,
            annotations=self.annotations,
        )
        return True

    def _emit_tool_event(
        self, start_time: float, result: ToolResult, error: Exception | None
    ) -> None:
        duration_ms = (time.monotonic() - start_time) * 1000
        self.telemetry.log_tool_call(
            tool_name=self.name,
            category=self.category,
            operation_type=self.operation_type.value,
            duration_ms=duration_ms,
            success=not result.is_error,
            error=error if error is not None else (result.text if result.is_error else None),
        )
