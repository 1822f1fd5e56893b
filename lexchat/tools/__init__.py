"""Tools for the conversational legal assistant."""

from lexchat.tools.base import ToolArgumentError, ToolDefinition
from lexchat.tools.registry import ToolsRegistry, get_tools_registry, resolve_arguments

__all__ = ["ToolArgumentError", "ToolDefinition", "ToolsRegistry", "get_tools_registry", "resolve_arguments"]
