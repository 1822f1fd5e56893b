"""Request and response models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from lexchat.models.llm import Message


class ChatRequest(BaseModel):
    """Request model for the chat endpoint."""

    messages: list[Message] = Field(default_factory=list)

    @field_validator("messages")
    @classmethod
    def validate_system_message(cls, v: list[Message]) -> list[Message]:
        """Allow at most one system message, and only as the first message."""
        system_positions = [index for index, msg in enumerate(v) if msg.role == "system"]
        if len(system_positions) > 1:
            raise ValueError("Conversation may contain at most one system message")
        if system_positions and system_positions[0] != 0:
            raise ValueError("System message must be the first message")
        return v


class SessionTokenResponse(BaseModel):
    """Response model for credential issuance."""

    token: str


class ErrorResponse(BaseModel):
    """Error body returned when a chat request cannot be processed."""

    error: str


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
