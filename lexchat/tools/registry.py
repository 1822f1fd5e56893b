"""Tools registry for executing model-requested tool calls."""

import json
from typing import Any

from pydantic import ValidationError

from lexchat.clients.vector_store import ArticleStore
from lexchat.models.llm import ToolCall, ToolResult, ToolSchema
from lexchat.tools.articles import create_fetch_article_tool, create_query_articles_tool
from lexchat.tools.base import ToolArgumentError, ToolDefinition
from lexchat.utils.logging import get_logger

logger = get_logger(__name__)


def resolve_arguments(raw_arguments: Any) -> dict[str, Any]:
    """Normalize tool call arguments into a mapping.

    Textual arguments are parsed as JSON, mappings pass through and a missing value
    means no arguments.

    Raises:
        ToolArgumentError: If the arguments are malformed or of an unexpected type
    """
    if raw_arguments is None:
        return {}

    if isinstance(raw_arguments, str):
        try:
            parsed = json.loads(raw_arguments or "{}")
        except json.JSONDecodeError as e:
            raise ToolArgumentError(f"Invalid JSON in tool arguments: {raw_arguments}") from e
        if not isinstance(parsed, dict):
            raise ToolArgumentError(f"Tool arguments must be a JSON object: {raw_arguments}")
        return parsed

    if isinstance(raw_arguments, dict):
        return raw_arguments

    raise ToolArgumentError(f"Unexpected format for tool arguments: {raw_arguments!r}")


class ToolsRegistry:
    """Registry mapping tool names to async capabilities."""

    def __init__(self, store: ArticleStore | None = None):
        """Initialize tools registry, registering the article tools when a store is given."""
        self._tools: dict[str, ToolDefinition] = {}
        if store is not None:
            self._register_default_tools(store)

    def _register_default_tools(self, store: ArticleStore) -> None:
        """Register the article search and retrieval tools."""
        tools = [
            create_fetch_article_tool(store),
            create_query_articles_tool(store),
        ]

        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a new tool in the registry."""
        self._tools[tool.name] = tool

    def get_tool_schemas(self) -> list[ToolSchema]:
        """Get the schemas of all registered tools, in registration order."""
        return [tool.get_schema() for tool in self._tools.values()]

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    async def execute(self, call: ToolCall) -> ToolResult:
        """Run one tool call, converting every failure into an error result."""
        name = call.name or "unknown_tool"

        try:
            arguments = resolve_arguments(call.arguments)
        except ToolArgumentError as e:
            logger.error(f"Tool {name} received bad arguments: {e}")
            return ToolResult(name=name, error=f"Error executing tool: {e}")

        tool = self._tools.get(name)
        if tool is None:
            logger.error(f"Unknown tool call: {name}")
            return ToolResult(name=name, response="")

        logger.debug(f"Executing tool: {name} with input: {arguments}")
        try:
            params = tool.parse_input(arguments)
            result = await tool.handler(params)
        except ValidationError as e:
            logger.error(f"Tool {name} arguments failed validation: {e}")
            return ToolResult(name=name, error=f"Error executing tool: invalid arguments for {name}: {e}")
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}")
            return ToolResult(name=name, error=f"Error executing tool: {e}")

        logger.debug(f"Tool {name} succeeded: {result[:100]}...")
        return ToolResult(name=name, response=result)


_tools_registry: ToolsRegistry | None = None


def get_tools_registry(store: ArticleStore | None = None) -> ToolsRegistry:
    """Get or create tools registry instance."""
    global _tools_registry

    if _tools_registry is None:
        if store is None:
            raise ValueError("Must provide an article store for initial registry creation")
        _tools_registry = ToolsRegistry(store)

    return _tools_registry
