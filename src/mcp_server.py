"""MCP server implementation using fastmcp"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastmcp import FastMCP
from starlette.responses import JSONResponse

from src.config import config
from src.services.session import Session
from src.services.telemetry import get_telemetry_service
from src.tools import ALL_TOOLS

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# One session per server process: the connection and its embeddings cache
session = Session(config)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    try:
        yield
    finally:
        # Close in the server's event loop, the client is bound to it
        try:
            await session.close()
        except Exception as e:
            logger.error(f"Error closing session: {e}")


# Initialize fastmcp server
mcp = FastMCP(name="mongodb-vector-mcp", version="1.0.0", lifespan=lifespan)


def register_tools(server: FastMCP, tool_session: Session) -> list[str]:
    """Register every tool the configuration allows and return their names"""
    telemetry = get_telemetry_service()
    registered = []
    for tool_class in ALL_TOOLS:
        tool = tool_class(tool_session, telemetry)
        if tool.register(server):
            registered.append(tool.name)
    logger.info(f"Registered {len(registered)} tools: {', '.join(registered)}")
    return registered


register_tools(mcp, session)


# Health check endpoint
# Note: Both routes (/ and /health) point to the same function using double decorator pattern.
@mcp.custom_route("/", methods=["GET"])
@mcp.custom_route("/health", methods=["GET"])
def health_check(request):
    return JSONResponse({"status": "ok"})


def main() -> None:
    """Entry point for the MCP server"""
    if config.mcp_transport == "stdio":
        mcp.run(transport="stdio")
        return

    # CORS is handled automatically by FastMCP via streamable-http transport
    mcp.run(transport=config.mcp_transport, host=config.mcp_host, port=config.mcp_port)


if __name__ == "__main__":
    main()
