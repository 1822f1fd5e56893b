"""Anthropic-backed inference capability with retries and context truncation."""

import asyncio
import os
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Literal

import tiktoken
from anthropic import APIError, AsyncAnthropic
from pydantic import BaseModel

from lexchat.models.llm import InferenceResult, Message, ToolCall, ToolSchema
from lexchat.utils.logging import get_logger

logger = get_logger(__name__)

TOOL_RESULT_PREFIX = "Tool result: "


class AnthropicMessage(BaseModel):
    """Message format for Anthropic API."""

    role: Literal["user", "assistant"]
    content: str


class AnthropicTool(BaseModel):
    """Tool definition for Anthropic API."""

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass
class AnthropicConfig:
    """Configuration for Anthropic API client."""

    model: str = os.getenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-20241022")
    max_tokens: int = 2048
    temperature: float = 0.1
    max_retries: int = 3
    retry_delay: float = 1.0

    # Token limits for truncation
    max_conversation_tokens: int = 200000
    token_headroom: int = 4000  # Reserve tokens for response


class AnthropicClient:
    """Inference capability backed by the Anthropic Messages API."""

    tokenizer: tiktoken.Encoding | None = None
    client: AsyncAnthropic
    config: AnthropicConfig

    def __init__(self, api_key: str | None = None, config: AnthropicConfig | None = None):
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            config: Client configuration
        """
        anthropic_api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required")

        self.client = AsyncAnthropic(api_key=anthropic_api_key)
        self.config = config or AnthropicConfig()

        try:
            # Close approximation for Claude
            self.tokenizer = tiktoken.encoding_for_model("gpt-4")
        except Exception:
            self.tokenizer = None

    async def complete(self, messages: Sequence[Message], tools: Sequence[ToolSchema]) -> InferenceResult:
        """Run a single-shot inference call and collect any requested tool calls."""
        request_params = self._build_request(messages, tools)

        logger.debug(f"Making Anthropic API call with model: {request_params['model']}")
        response = await self._request_with_retries(lambda: self.client.messages.create(**request_params))

        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(ToolCall(name=block.name, arguments=block.input))
            else:
                logger.warning(f"Unknown content block type: {block.type}")

        logger.debug(f"Response received - Stop reason: {response.stop_reason}, tool calls: {len(tool_calls)}")

        return InferenceResult(
            text="".join(text_parts),
            tool_calls=tool_calls,
            stop_reason=response.stop_reason,
            model=response.model,
        )

    async def stream(self, messages: Sequence[Message], tools: Sequence[ToolSchema]) -> AsyncIterator[str]:
        """Stream the model's answer as text increments."""
        request_params = self._build_request(messages, tools)

        logger.debug(f"Opening Anthropic stream with model: {request_params['model']}")
        async with self.client.messages.stream(**request_params) as stream:
            async for text in stream.text_stream:
                yield text

    def _build_request(self, messages: Sequence[Message], tools: Sequence[ToolSchema]) -> dict[str, Any]:
        system_prompt = "\n\n".join(msg.content for msg in messages if msg.role == "system")
        anthropic_messages = self.truncate_conversation(self.to_anthropic_messages(messages), system_prompt)
        anthropic_tools = [
            AnthropicTool(name=tool.name, description=tool.description, input_schema=tool.parameters)
            for tool in tools
        ]

        logger.debug(f"Built request with {len(anthropic_messages)} messages, {len(anthropic_tools)} tools")

        request_params: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": [msg.model_dump() for msg in anthropic_messages],
        }
        if system_prompt:
            request_params["system"] = system_prompt
        if anthropic_tools:
            request_params["tools"] = [tool.model_dump() for tool in anthropic_tools]
        return request_params

    @staticmethod
    def to_anthropic_messages(messages: Sequence[Message]) -> list[AnthropicMessage]:
        """Convert a conversation to Anthropic's alternating user/assistant turns.

        System messages are sent separately, tool results travel as user turns and
        consecutive turns of the same role are merged. The first turn must be a user
        turn, so leading assistant turns (such as a greeting) are dropped.
        """
        converted: list[AnthropicMessage] = []
        for msg in messages:
            if msg.role == "system":
                continue
            role: Literal["user", "assistant"] = "assistant" if msg.role == "assistant" else "user"
            content = TOOL_RESULT_PREFIX + msg.content if msg.role == "tool" else msg.content
            if not content:
                continue
            if not converted and role == "assistant":
                continue
            if converted and converted[-1].role == role:
                converted[-1] = AnthropicMessage(role=role, content=f"{converted[-1].content}\n\n{content}")
            else:
                converted.append(AnthropicMessage(role=role, content=content))
        return converted

    async def _request_with_retries[T](self, call: Callable[[], Awaitable[T]]) -> T:
        """Execute Anthropic API request with retry logic."""
        for attempt in range(self.config.max_retries):
            try:
                return await call()

            except APIError as e:
                status_code = getattr(e, "status_code", None)
                if status_code == 429:  # Rate limit exceeded
                    retry_after = 60
                    response = getattr(e, "response", None)
                    if response is not None and hasattr(response, "headers"):
                        retry_after = int(response.headers.get("retry-after", 60))

                    if retry_after < 120 and attempt < self.config.max_retries - 1:
                        logger.warning(f"Anthropic rate limited, retrying in {retry_after}s")
                        await asyncio.sleep(retry_after)
                        continue

                elif status_code is not None and status_code >= 500 and attempt < self.config.max_retries - 1:
                    # Server error, retry with exponential backoff
                    await asyncio.sleep(self.config.retry_delay * (2**attempt))
                    continue

                raise

        raise RuntimeError(f"Failed to complete request after {self.config.max_retries} attempts")

    def estimate_message_tokens(self, message: str) -> int:
        """Estimate token count for a single message.

        Args:
            message: Message content

        Returns:
            Estimated token count
        """
        try:
            return len(self.tokenizer.encode(message)) if self.tokenizer else len(message) // 4
        except Exception:
            # Fallback: roughly 4 characters per token
            return len(message) // 4

    def truncate_conversation(self, messages: list[AnthropicMessage], system_prompt: str) -> list[AnthropicMessage]:
        """Truncate conversation from the beginning to fit within token limits.

        Args:
            messages: Conversation messages
            system_prompt: System prompt

        Returns:
            Truncated message list that fits within limits
        """
        if not messages:
            return messages

        available_tokens = self.config.max_conversation_tokens - self.config.token_headroom
        available_tokens -= self.estimate_message_tokens(system_prompt)

        truncated_messages: list[AnthropicMessage] = []
        current_tokens = 0

        for message in reversed(messages):
            message_tokens = self.estimate_message_tokens(message.content)
            if current_tokens + message_tokens > available_tokens:
                break
            truncated_messages.insert(0, message)
            current_tokens += message_tokens

        # A truncated history must still open with a user turn
        while truncated_messages and truncated_messages[0].role != "user":
            truncated_messages.pop(0)

        if len(truncated_messages) < len(messages):
            logger.warning(
                f"Truncated conversation from {len(messages)} to {len(truncated_messages)} messages "
                f"to fit within {available_tokens} token limit"
            )

        return truncated_messages


_anthropic_client: AnthropicClient | None = None


def get_anthropic_client() -> AnthropicClient:
    """Get or create Anthropic client instance."""
    global _anthropic_client
    if _anthropic_client is None:
        _anthropic_client = AnthropicClient()
    return _anthropic_client
