"""Tool registration and dispatch for the MCP server.

Provides a central registry for all MCP tools with:
- Input schemas published from Pydantic models
- Tool discovery for the MCP ``tools/list`` request
- Execution routing for ``tools/call``
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type

from mcp.shared.exceptions import McpError
from mcp.types import METHOD_NOT_FOUND, ErrorData, Tool
from pydantic import BaseModel


@dataclass
class ToolDefinition:
    """Definition of an MCP tool.

    Attributes:
        name: Unique tool identifier (e.g., "list_workflows")
        description: Human-readable description
        input_schema: Pydantic model describing the tool arguments
        handler: Async function ``(api_client, args) -> ToolResponse``
        tags: Optional tags for categorization
    """
    name: str
    description: str
    input_schema: Type[BaseModel]
    handler: Callable
    tags: List[str] = field(default_factory=list)

    def to_mcp_tool(self) -> Tool:
        """Convert to the MCP tool listing entry."""
        json_schema = self.input_schema.model_json_schema()
        json_schema.pop("title", None)
        json_schema.setdefault("properties", {})
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=json_schema,
        )


class ToolRegistry:
    """Central registry for MCP tools.

    Manages tool registration, discovery, and execution.
    """

    def __init__(self):
        self._tools: Dict[str, ToolDefinition] = {}

    def register(
        self,
        name: str,
        description: str,
        input_schema: Type[BaseModel],
        handler: Callable,
        tags: Optional[List[str]] = None
    ) -> None:
        """Register a new tool.

        Raises:
            ValueError: If tool with same name already exists
        """
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")

        self._tools[name] = ToolDefinition(
            name=name,
            description=description,
            input_schema=input_schema,
            handler=handler,
            tags=tags or []
        )

    def get(self, name: str) -> Optional[ToolDefinition]:
        """Get a tool by name.

        Returns:
            ToolDefinition if found, None otherwise
        """
        return self._tools.get(name)

    def list_tools(self) -> List[ToolDefinition]:
        """Get all registered tools."""
        return list(self._tools.values())

    def get_mcp_tools(self) -> List[Tool]:
        """Get the MCP listing for all registered tools."""
        return [tool.to_mcp_tool() for tool in self._tools.values()]

    async def execute(
        self,
        name: str,
        api_client: Any,
        arguments: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Execute a tool with the given arguments.

        Arguments are passed through unvalidated; each handler validates
        its own input so schema problems come back as tool errors.

        Args:
            name: Tool identifier
            api_client: n8n API client handed to the handler
            arguments: Raw tool arguments

        Returns:
            The handler's ToolResponse

        Raises:
            McpError: If the tool is not registered, or the handler
                rejects missing required arguments
        """
        tool = self.get(name)
        if tool is None:
            raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))

        return await tool.handler(api_client, arguments or {})


# Global registry instance
_registry: Optional[ToolRegistry] = None


def get_registry() -> ToolRegistry:
    """Get the global tool registry.

    Creates the instance on first call.
    """
    global _registry
    if _registry is None:
        _registry = ToolRegistry()
    return _registry


def tool(
    name: str,
    description: str,
    input_schema: Type[BaseModel],
    tags: Optional[List[str]] = None
) -> Callable:
    """Decorator to register a function as an MCP tool.

    Example:
        @tool(
            name="get_workflow",
            description="Get a workflow by ID",
            input_schema=WorkflowIdArgs,
            tags=["n8n", "workflow"]
        )
        async def handle_get_workflow(api_client, args) -> ToolResponse:
            ...
    """
    def decorator(func: Callable) -> Callable:
        get_registry().register(
            name=name,
            description=description,
            input_schema=input_schema,
            handler=func,
            tags=tags
        )
        return func
    return decorator
