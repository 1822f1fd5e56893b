"""Base types and definitions for tools."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from lexchat.models.llm import ToolSchema

ToolHandler = Callable[[BaseModel], Awaitable[str]]


class ToolArgumentError(ValueError):
    """Raised when a tool call carries arguments that cannot be interpreted."""


@dataclass
class ToolDefinition:
    """Definition of a tool available to the AI assistant."""

    name: str
    description: str
    input_schema_class: type[BaseModel]
    handler: ToolHandler

    def get_json_schema(self) -> dict[str, Any]:
        """Get JSON schema for this tool's input."""
        return self.input_schema_class.model_json_schema()

    def get_schema(self) -> ToolSchema:
        return ToolSchema(name=self.name, description=self.description, parameters=self.get_json_schema())

    def parse_input(self, raw_input: dict[str, Any]) -> BaseModel:
        """Parse and validate tool input."""
        return self.input_schema_class.model_validate(raw_input)
