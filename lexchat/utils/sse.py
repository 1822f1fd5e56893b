"""Server-Sent Events framing helpers shared by the server and the chat client."""

import json
from typing import Any

DONE_SENTINEL = "[DONE]"
DATA_PREFIX = "data:"
EVENT_DELIMITER = "\n\n"


def _strip_marker(line: str) -> str:
    # Only one space after the marker belongs to the framing
    payload = line[len(DATA_PREFIX) :]
    return payload[1:] if payload.startswith(" ") else payload


def consume_events(buffer: str) -> tuple[list[str], str]:
    """Split complete SSE blocks off the front of ``buffer``.

    Each block delimited by a blank line yields one event made of its ``data:`` lines
    joined with newlines. Blocks without any ``data:`` line (comments, padding) are
    dropped. Whatever follows the last delimiter is returned untouched so the caller can
    prepend it to the next network chunk.

    Args:
        buffer: Text accumulated so far, possibly ending in a partial block

    Returns:
        Tuple of (events in arrival order, remainder)
    """
    normalized = buffer.replace("\r", "")
    events: list[str] = []

    while (end := normalized.find(EVENT_DELIMITER)) != -1:
        raw_event = normalized[:end]
        normalized = normalized[end + len(EVENT_DELIMITER) :]

        data_lines = [_strip_marker(line) for line in raw_event.split("\n") if line.startswith(DATA_PREFIX)]
        if not data_lines:
            continue
        events.append("\n".join(data_lines))

    return events, normalized


def format_event(payload: str) -> str:
    """Encode a payload as a single SSE frame."""
    lines = payload.split("\n")
    return "".join(f"{DATA_PREFIX} {line}\n" for line in lines) + "\n"


def format_content_event(text: str) -> str:
    """Encode a content increment in the ``{"response": ...}`` shape."""
    return format_event(json.dumps({"response": text}))


def extract_content(payload: str) -> str:
    """Pull the text increment out of a decoded event payload.

    Accepts both ``{"response": str}`` and ``{"choices": [{"delta": {"content": str}}]}``.
    Unrecognized shapes yield an empty string.

    Raises:
        ValueError: If the payload is not valid JSON
    """
    data: Any = json.loads(payload)
    if not isinstance(data, dict):
        return ""

    response = data.get("response")
    if isinstance(response, str) and response:
        return response

    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        delta = choices[0].get("delta")
        if isinstance(delta, dict):
            content = delta.get("content")
            if isinstance(content, str):
                return content

    return ""
