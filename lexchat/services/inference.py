"""Inference capability interface and the development stand-in."""

import asyncio
from collections.abc import AsyncIterator, Sequence
from typing import Protocol

from lexchat.models.llm import InferenceResult, Message, ToolSchema
from lexchat.utils.logging import get_logger

logger = get_logger(__name__)


class InferenceCapability(Protocol):
    """A model that can answer a conversation either in one shot or as a stream."""

    async def complete(self, messages: Sequence[Message], tools: Sequence[ToolSchema]) -> InferenceResult:
        """Run inference once, returning text and/or requested tool calls."""
        ...

    def stream(self, messages: Sequence[Message], tools: Sequence[ToolSchema]) -> AsyncIterator[str]:
        """Run inference, yielding text increments as they are produced."""
        ...


DEVELOPMENT_CHUNKS = ("Hello from custom stream", " Testing setup locally", ". Done!")


class DevelopmentInference:
    """Canned model used for local development; never requests tools."""

    def __init__(self, chunks: Sequence[str] = DEVELOPMENT_CHUNKS, delay: float = 1.0):
        self.chunks = tuple(chunks)
        self.delay = delay

    async def complete(self, messages: Sequence[Message], tools: Sequence[ToolSchema]) -> InferenceResult:
        return InferenceResult(text="".join(self.chunks), stop_reason="end_turn", model="development")

    async def stream(self, messages: Sequence[Message], tools: Sequence[ToolSchema]) -> AsyncIterator[str]:
        logger.debug(f"Streaming {len(self.chunks)} canned chunks for {len(messages)} messages")
        for index, chunk in enumerate(self.chunks):
            if index and self.delay:
                await asyncio.sleep(self.delay)
            yield chunk
