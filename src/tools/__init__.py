"""MCP tools exposed by the server"""

from src.tools.base import OperationType, ToolBase
from src.tools.mongodb import MONGODB_TOOLS

ALL_TOOLS: list[type[ToolBase]] = [*MONGODB_TOOLS]

__all__ = ["ALL_TOOLS", "OperationType", "ToolBase"]
