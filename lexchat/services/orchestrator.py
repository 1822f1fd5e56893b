"""Bounded tool-calling loop that prepares and streams the final answer."""

from collections.abc import AsyncIterator, Sequence

from lexchat.models.llm import InferenceResult, Message, ToolCall
from lexchat.services.inference import InferenceCapability
from lexchat.tools.registry import ToolsRegistry
from lexchat.utils.logging import get_logger

logger = get_logger(__name__)

MAX_TOOL_ROUNDS = 4

SYSTEM_PROMPT = """Act as a legal helper chatbot. When a user asks a question, always search the provided \
vector database using the tool query_articles to find relevant legal articles. Carefully review the returned \
articles for relevance. Only answer if you find at least one clearly relevant article; cite it directly and \
explain how it supports your answer. If no relevant article is found, politely inform the user that you cannot \
answer due to insufficient information.
Follow these steps:
1. Search for relevant articles with query_articles using the user's question.
1.1. If no relevant articles are found, search with different keywords or broader terms.
2. Fetch the full content of any potentially relevant articles using fetch_articles_remote.
3. Review and reason through each article's content for relevance.
4. If relevant, answer based on the article(s), citing and explaining relevance.
5. If none are relevant, state you cannot answer.
Output format:
- REASONING: Your reasoning about the (ir)relevance of search results.
- ANSWER: Your final answer, or a polite refusal if no relevant information is found.
- CITATION: At least one supporting article (if applicable).
"""


def ensure_system_prompt(messages: Sequence[Message], system_prompt: str = SYSTEM_PROMPT) -> list[Message]:
    """Return a copy of ``messages`` that starts with a system message."""
    if any(msg.role == "system" for msg in messages):
        return list(messages)
    return [Message(role="system", content=system_prompt), *messages]


class ChatOrchestrator:
    """Alternates inference and tool execution, then streams the final answer.

    Every request gets its own working copy of the conversation and its own round
    counter; the inference capability and the registry are shared and stateless.
    """

    def __init__(
        self,
        inference: InferenceCapability,
        tools_registry: ToolsRegistry,
        max_tool_rounds: int = MAX_TOOL_ROUNDS,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.inference = inference
        self.tools_registry = tools_registry
        self.max_tool_rounds = max_tool_rounds
        self.system_prompt = system_prompt

    async def prepare(self, conversation: Sequence[Message]) -> tuple[list[Message], int]:
        """Run the tool rounds and return the enriched conversation and rounds used."""
        messages = ensure_system_prompt(conversation, self.system_prompt)
        tools = self.tools_registry.get_tool_schemas()

        logger.info(f"Starting tool loop with {len(messages)} messages, {len(tools)} tools")
        result: InferenceResult = await self.inference.complete(messages, tools)

        rounds = 0
        while result.tool_calls and rounds < self.max_tool_rounds:
            logger.info(f"Round {rounds + 1}/{self.max_tool_rounds}: model requested {len(result.tool_calls)} tools")
            messages.extend(await self._run_tool_calls(result.tool_calls))
            result = await self.inference.complete(messages, tools)
            rounds += 1

        if result.tool_calls:
            logger.warning(f"Tool loop reached max rounds ({self.max_tool_rounds}), forcing final answer")

        return messages, rounds

    async def _run_tool_calls(self, tool_calls: list[ToolCall]) -> list[Message]:
        tool_messages: list[Message] = []
        for call in tool_calls:
            tool_result = await self.tools_registry.execute(call)
            tool_messages.append(tool_result.to_message())
        return tool_messages

    async def start(self, conversation: Sequence[Message]) -> AsyncIterator[str]:
        """Finish the tool rounds and open the streaming call for the final answer.

        Failures during the tool rounds surface here, before any bytes are streamed.
        """
        messages, rounds = await self.prepare(conversation)
        logger.info(f"Streaming final answer after {rounds} tool rounds")
        return self.inference.stream(messages, self.tools_registry.get_tool_schemas())

    async def respond(self, conversation: Sequence[Message]) -> AsyncIterator[str]:
        """Yield the final answer's content increments for ``conversation``."""
        async for chunk in await self.start(conversation):
            yield chunk
