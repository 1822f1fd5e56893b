"""LLM-related data models and types (provider-agnostic)."""

import json
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel

Role = Literal["system", "user", "assistant", "tool"]


class Message(BaseModel):
    """A role-tagged message in a conversation."""

    role: Role
    content: str
    name: str | None = None

    class Config:
        extra = "ignore"  # Clients may send display-only fields


class ToolSchema(BaseModel):
    """Schema definition for a tool offered to the model."""

    name: str
    description: str
    parameters: dict[str, Any]


class ToolCall(BaseModel):
    """A tool invocation requested by the model.

    ``arguments`` is kept as the model produced it, either a JSON string or an
    already-structured mapping.
    """

    name: str
    arguments: str | dict[str, Any] | None = None


@dataclass
class ToolResult:
    """Outcome of executing one tool call."""

    name: str
    response: str = ""
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_message(self) -> Message:
        """Serialize as the tool-role message appended before the next round."""
        if self.is_error:
            payload = {"name": self.name, "error": self.error}
        else:
            payload = {"name": self.name, "response": self.response}
        return Message(role="tool", content=json.dumps(payload), name=self.name)


@dataclass
class InferenceResult:
    """Result of a single-shot inference call."""

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    stop_reason: str | None = None
    model: str | None = None
