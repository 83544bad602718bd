"""Result of a tool execution"""

from pydantic import BaseModel, Field


class ToolResult(BaseModel):
    """Text content returned to the MCP client"""

    content: list[str] = Field(default_factory=list, description="Text blocks of the response")
    is_error: bool = Field(default=False, description="Whether the tool call failed")

    @property
    def text(self) -> str:
        return "\n\n".join(self.content)
