"""Session credential and client-side chat session models."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from lexchat.models.llm import Message
from lexchat.utils.logging import get_logger

logger = get_logger(__name__)

GREETING = "Hello! I'm a legal assistant. Ask me a question and I'll look for the relevant articles."


class TokenData(BaseModel):
    """Decoded contents of a session credential (times in epoch milliseconds)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    generated_time: int = Field(alias="generatedTime")
    expiration_time: int = Field(alias="expirationTime")


@dataclass
class PendingRequest:
    """One in-flight submission attempt for a question."""

    question: str
    retry_count: int
    deadline: float


@dataclass
class ChatSession:
    """Conversation state owned by a chat client for the lifetime of one chat."""

    session_id: str
    messages: list[Message] = field(default_factory=list)
    retry_counts: dict[str, int] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def open(cls, session_id: str, greeting: str | None = GREETING) -> "ChatSession":
        """Create a fresh session, optionally seeded with the assistant greeting."""
        session = cls(session_id=session_id)
        if greeting:
            session.messages.append(Message(role="assistant", content=greeting))
        return session

    def as_dict(self) -> dict[str, Any]:
        """Return the session as a dictionary."""
        return {
            "session_id": self.session_id,
            "messages": [msg.model_dump(exclude_none=True) for msg in self.messages],
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }

    def update_activity(self) -> None:
        """Update the last activity timestamp."""
        self.last_activity = datetime.now(UTC)

    def append(self, message: Message) -> None:
        """Append a message; history is never edited in place."""
        self.messages.append(message)
        self.update_activity()

    def retry_count(self, question: str) -> int:
        """Failed attempts recorded for this exact question text."""
        return self.retry_counts.get(question, 0)

    def record_failure(self, question: str) -> int:
        """Increment and return the failure count for a question."""
        count = self.retry_counts.get(question, 0) + 1
        self.retry_counts[question] = count
        logger.info(f"Session {self.session_id}: question failed {count} time(s)")
        return count

    def clear_retries(self, question: str) -> None:
        """Forget failures for a question after it succeeds."""
        self.retry_counts.pop(question, None)
