"""Chat client: submits the conversation and renders the streamed answer."""

import asyncio
import os
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import httpx
from cuid2 import cuid_wrapper

from lexchat.clients.display import ChatDisplay
from lexchat.clients.history import HistoryStore, InMemoryHistoryStore
from lexchat.models.llm import Message
from lexchat.models.session import ChatSession, PendingRequest
from lexchat.utils.logging import get_logger
from lexchat.utils.sse import DONE_SENTINEL, consume_events, extract_content

logger = get_logger(__name__)

cuid = cuid_wrapper()

MAX_RETRIES = 3
REQUEST_TIMEOUT_SECONDS = 30.0
REFRESH_STATUSES = frozenset({401, 500})
SESSION_TOKEN_HEADER = "Session-Token"

ERROR_MESSAGE = "Sorry, there was an error processing your request."
TIMEOUT_MESSAGE = (
    "Sorry for the slow service. Either there is a difficulty connecting to the AI service "
    "or the AI is searching a lot more documents to give a better answer."
)
INIT_ERROR_MESSAGE = "Sorry, there was an error initializing the chat session."


class ChatError(Exception):
    """Base class for failures of a whole chat exchange."""


class CredentialError(ChatError):
    """The session credential could not be obtained."""


class ChatTimeoutError(ChatError):
    """The backend did not finish answering before the deadline."""


class ChatTransportError(ChatError):
    """The backend answered with an unusable response."""


class ChatState(StrEnum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    SUCCESS = "success"
    FAILED = "failed"


class SendOutcome(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"
    MAX_RETRIES = "max_retries"
    INIT_ERROR = "init_error"
    REJECTED = "rejected"


@dataclass
class ChatClientConfig:
    """Configuration for the chat client."""

    base_url: str = field(default_factory=lambda: os.getenv("LEXCHAT_BASE_URL", "http://localhost:8000"))
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    max_retries: int = MAX_RETRIES
    chat_path: str = "/api/chat"
    token_path: str = "/api/session-token/generate"


class ChatClient:
    """Send/receive state machine for one chat widget.

    At most one submission is in flight at a time. Failures are counted per question
    text; a question that failed ``max_retries`` times is refused without contacting
    the backend until it succeeds or a new chat is started.
    """

    def __init__(
        self,
        config: ChatClientConfig | None = None,
        display: ChatDisplay | None = None,
        history_store: HistoryStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        session: ChatSession | None = None,
    ):
        """Initialize chat client.

        Args:
            config: Client configuration
            display: Surface receiving visible updates
            history_store: Persistence for completed conversations
            http_client: HTTP client to use (created from config when omitted)
            session: Existing chat session to continue
        """
        self.config = config or ChatClientConfig()
        self.display = display or ChatDisplay()
        self.history_store = history_store or InMemoryHistoryStore()
        self.http = http_client or httpx.AsyncClient(base_url=self.config.base_url, timeout=self.config.request_timeout)
        self.session = session or ChatSession.open(cuid())

        self.state = ChatState.IDLE
        self.token: str | None = None
        self.is_processing = False
        self.pending: PendingRequest | None = None
        self._response_text = ""

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    def open_session(self, session_id: str) -> ChatSession:
        """Continue a stored chat, or start a new one under ``session_id``."""
        messages = self.history_store.load(session_id)
        if messages is None:
            self.session = ChatSession.open(session_id)
        else:
            self.session = ChatSession(session_id=session_id, messages=messages)
        return self.session

    def new_chat(self) -> ChatSession:
        """Discard the current chat and its stored history, starting afresh."""
        if self.is_processing:
            raise RuntimeError("Cannot start a new chat while a message is being processed")
        self.history_store.delete(self.session.session_id)
        logger.info(f"Discarded chat session {self.session.session_id}")
        self.session = ChatSession.open(cuid())
        return self.session

    async def refresh_token(self) -> str:
        """Request a session credential, presenting the current one if any.

        Raises:
            CredentialError: If the credential endpoint fails
        """
        try:
            response = await self.http.get(
                self.config.token_path,
                headers={SESSION_TOKEN_HEADER: self.token or ""},
            )
        except httpx.HTTPError as e:
            raise CredentialError(f"Failed to get session token: {e}") from e

        if not response.is_success:
            raise CredentialError(f"Failed to get session token: HTTP {response.status_code}")

        try:
            token = response.json()["token"]
        except (ValueError, KeyError, TypeError) as e:
            raise CredentialError("Session token response is malformed") from e
        if not isinstance(token, str) or not token:
            raise CredentialError("Session token response is malformed")

        self.token = token
        return token

    async def send_message(self, text: str, is_retry: bool = False) -> SendOutcome:
        """Submit a question and stream its answer to the display.

        Args:
            text: The question; for retries, the original question text
            is_retry: Whether this resubmits a question already in the history

        Returns:
            How the submission ended
        """
        message = text if is_retry else text.strip()

        if self.session.retry_count(message) >= self.config.max_retries:
            logger.warning(f"Max retries reached for question: {message[:50]}...")
            self.display.show_max_retries_notice(message)
            return SendOutcome.MAX_RETRIES

        if not message or self.is_processing:
            return SendOutcome.REJECTED

        self.is_processing = True
        self.display.set_busy(True)
        try:
            if not self.token:
                try:
                    await self.refresh_token()
                except CredentialError as e:
                    logger.error(f"Error getting session token: {e}")
                    self.display.show_error(INIT_ERROR_MESSAGE)
                    return SendOutcome.INIT_ERROR

            return await self._process(message, is_retry)
        finally:
            self.pending = None
            self.state = ChatState.IDLE
            self.is_processing = False
            self.display.set_busy(False)

    async def _process(self, message: str, is_retry: bool) -> SendOutcome:
        if not is_retry:
            self.display.show_user_message(message)
            self.session.append(Message(role="user", content=message))

        pending = self.pending = PendingRequest(
            question=message,
            retry_count=self.session.retry_count(message),
            deadline=self._next_deadline(),
        )
        self._response_text = ""
        self.state = ChatState.SENDING
        self.display.begin_assistant_message()

        try:
            answer = await self._request_answer(pending)
            if not answer:
                raise ChatTransportError("Response stream contained no content")
        except Exception as e:
            logger.error(f"Error: {e}", exc_info=not isinstance(e, ChatError))
            return self._fail(pending, e)

        self.display.finish_assistant_message(answer)
        self.session.append(Message(role="assistant", content=answer))
        self.session.clear_retries(message)
        pending.retry_count = 0
        self.state = ChatState.SUCCESS
        self._persist()
        return SendOutcome.SUCCESS

    def _fail(self, pending: PendingRequest, error: Exception) -> SendOutcome:
        message = pending.question
        self.state = ChatState.FAILED
        if self._response_text.strip():
            self.display.finish_assistant_message(self._response_text)
        else:
            self.display.discard_assistant_message()

        pending.retry_count = self.session.record_failure(message)

        if isinstance(error, ChatTimeoutError):
            self.display.show_error(TIMEOUT_MESSAGE, retry_question=message)
            return SendOutcome.TIMEOUT

        self.display.show_error(ERROR_MESSAGE, retry_question=message)
        return SendOutcome.FAILED

    def _persist(self) -> None:
        try:
            self.history_store.save(self.session.session_id, self.session.messages)
        except OSError as e:
            logger.error(f"Failed to persist chat session {self.session.session_id}: {e}")

    def _next_deadline(self) -> float:
        return asyncio.get_running_loop().time() + self.config.request_timeout

    async def _request_answer(self, pending: PendingRequest) -> str:
        """POST the conversation, refreshing the credential once on 401/500.

        Each request is cancelled once ``pending.deadline`` passes; the refreshed
        retry starts with a new deadline.
        """
        try:
            async with asyncio.timeout_at(pending.deadline):
                async with self._open_chat_stream() as response:
                    if response.status_code not in REFRESH_STATUSES:
                        return await self._read_answer(response)
                    logger.info(f"Chat request returned {response.status_code}, refreshing session token")

            await self.refresh_token()
            pending.deadline = self._next_deadline()

            async with asyncio.timeout_at(pending.deadline):
                async with self._open_chat_stream() as response:
                    return await self._read_answer(response)
        except (TimeoutError, httpx.TimeoutException) as e:
            raise ChatTimeoutError("Chat request exceeded its deadline") from e
        except httpx.HTTPError as e:
            raise ChatTransportError(f"Chat request failed: {e}") from e

    def _open_chat_stream(self):
        return self.http.stream(
            "POST",
            self.config.chat_path,
            json={"messages": [msg.model_dump(exclude_none=True) for msg in self.session.messages]},
            headers={SESSION_TOKEN_HEADER: self.token or ""},
        )

    async def _read_answer(self, response: httpx.Response) -> str:
        if not response.is_success:
            raise ChatTransportError(f"Failed to get response: HTTP {response.status_code}")

        self.state = ChatState.STREAMING
        buffer = ""
        async for chunk in response.aiter_text():
            buffer += chunk
            events, buffer = consume_events(buffer)
            if self._apply_events(events):
                return self._response_text

        # Flush a final block the server did not terminate with a blank line
        events, _ = consume_events(buffer + "\n\n")
        self._apply_events(events)
        return self._response_text

    def _apply_events(self, events: list[str]) -> bool:
        """Append each event's content to the answer; True once the sentinel is seen."""
        for data in events:
            if data == DONE_SENTINEL:
                return True
            try:
                content = extract_content(data)
            except ValueError as e:
                logger.error(f"Error parsing SSE data as JSON: {e} {data!r}")
                continue
            if content:
                self._response_text += content
                self.display.update_assistant_message(self._response_text)
        return False
