"""Key-value persistence for chat histories."""

import json
from pathlib import Path
from typing import Protocol

from lexchat.models.llm import Message
from lexchat.utils.logging import get_logger

logger = get_logger(__name__)


class HistoryStore(Protocol):
    """Stores the message list of a chat session under its session id."""

    def load(self, key: str) -> list[Message] | None: ...

    def save(self, key: str, messages: list[Message]) -> None: ...

    def delete(self, key: str) -> bool: ...


class InMemoryHistoryStore:
    """History store that lives for the lifetime of the process."""

    def __init__(self):
        self._histories: dict[str, list[Message]] = {}

    def load(self, key: str) -> list[Message] | None:
        messages = self._histories.get(key)
        return list(messages) if messages is not None else None

    def save(self, key: str, messages: list[Message]) -> None:
        self._histories[key] = list(messages)

    def delete(self, key: str) -> bool:
        return self._histories.pop(key, None) is not None


class JsonFileHistoryStore:
    """History store writing one JSON document per session into a directory."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe_key = "".join(ch for ch in key if ch.isalnum() or ch in "-_")
        if not safe_key:
            raise ValueError(f"Invalid history key: {key!r}")
        return self.directory / f"{safe_key}.json"

    def load(self, key: str) -> list[Message] | None:
        path = self._path(key)
        if not path.exists():
            return None
        data = json.loads(path.read_text(encoding="utf-8"))
        return [Message.model_validate(item) for item in data]

    def save(self, key: str, messages: list[Message]) -> None:
        path = self._path(key)
        payload = [msg.model_dump(exclude_none=True) for msg in messages]
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.debug(f"Saved {len(messages)} messages to {path}")

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if path.exists():
            path.unlink()
            return True
        return False
