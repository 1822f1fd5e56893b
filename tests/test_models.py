"""Tests for data models."""

import json
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from lexchat.models.conversation import ChatRequest, HealthResponse, SessionTokenResponse
from lexchat.models.llm import Message, ToolCall, ToolResult
from lexchat.models.session import GREETING, ChatSession, TokenData
from lexchat.tools.articles import FetchArticleInput, QueryArticlesInput


class TestConversationModels:
    """Tests for HTTP request/response models."""

    def test_chat_request_from_json(self):
        """Test chat request parsing from JSON."""
        json_data = '{"messages": [{"role": "user", "content": "Is a verbal lease valid?"}]}'
        request = ChatRequest.model_validate(json.loads(json_data))
        assert request.messages == [Message(role="user", content="Is a verbal lease valid?")]

    def test_chat_request_ignores_extra_message_fields(self):
        """Test that display-only fields sent by clients are ignored."""
        request = ChatRequest.model_validate(
            {"messages": [{"role": "assistant", "content": "Hi", "id": "m1", "pending": False}]}
        )
        assert request.messages[0].model_dump(exclude_none=True) == {"role": "assistant", "content": "Hi"}

    def test_chat_request_empty(self):
        """Test that a missing message list defaults to empty."""
        assert ChatRequest.model_validate({}).messages == []

    def test_chat_request_leading_system_message(self):
        """Test that a single leading system message is accepted."""
        request = ChatRequest(
            messages=[Message(role="system", content="Custom"), Message(role="user", content="Hi")]
        )
        assert [msg.role for msg in request.messages] == ["system", "user"]

    @pytest.mark.parametrize(
        "roles",
        [["user", "system"], ["user", "system", "system"], ["system", "user", "system"]],
    )
    def test_chat_request_misplaced_system_message(self, roles):
        """Test that extra or misplaced system messages are rejected."""
        with pytest.raises(ValidationError, match="system message"):
            ChatRequest(messages=[Message(role=role, content="x") for role in roles])

    def test_message_invalid_role(self):
        """Test message with invalid role."""
        with pytest.raises(ValidationError) as exc_info:
            Message(role="invalid", content="Hello")  # type: ignore
        assert "Input should be 'system', 'user', 'assistant' or 'tool'" in str(exc_info.value)

    def test_session_token_response(self):
        """Test credential response body."""
        assert SessionTokenResponse(token="abc").model_dump() == {"token": "abc"}

    def test_health_response_valid(self):
        """Test valid health response."""
        now = datetime.now(UTC)
        response = HealthResponse(status="healthy", timestamp=now, version="1.0.0")
        assert response.status == "healthy"
        assert response.timestamp == now


class TestToolModels:
    """Tests for tool call and result models."""

    def test_tool_call_arguments_shapes(self):
        """Test that both textual and structured arguments are accepted."""
        assert ToolCall(name="query_articles", arguments='{"question": "q"}').arguments == '{"question": "q"}'
        assert ToolCall(name="query_articles", arguments={"question": "q"}).arguments == {"question": "q"}
        assert ToolCall(name="query_articles").arguments is None

    def test_tool_result_success_message(self):
        """Test the tool-role message of a successful result."""
        message = ToolResult(name="query_articles", response="[]").to_message()
        assert message.role == "tool"
        assert message.name == "query_articles"
        assert json.loads(message.content) == {"name": "query_articles", "response": "[]"}

    def test_tool_result_error_message(self):
        """Test the tool-role message of a failed result."""
        result = ToolResult(name="fetch_articles_remote", error="Error executing tool: boom")
        assert result.is_error
        assert json.loads(result.to_message().content) == {
            "name": "fetch_articles_remote",
            "error": "Error executing tool: boom",
        }

    def test_query_articles_input(self):
        """Test article search input validation."""
        assert QueryArticlesInput.model_validate({"question": "notice period"}).question == "notice period"
        with pytest.raises(ValidationError):
            QueryArticlesInput.model_validate({})

    def test_fetch_article_input(self):
        """Test article fetch input validation."""
        assert FetchArticleInput.model_validate({"file_id": "file-1"}).file_id == "file-1"
        with pytest.raises(ValidationError):
            FetchArticleInput.model_validate({"file_id": 12})


class TestTokenData:
    """Tests for the decoded credential model."""

    def test_wire_aliases(self):
        """Test that the camelCase wire names are used for parsing and dumping."""
        data = TokenData.model_validate({"id": "abc", "generatedTime": 1, "expirationTime": 2})
        assert data.generated_time == 1
        assert data.expiration_time == 2
        assert json.loads(data.model_dump_json(by_alias=True)) == {
            "id": "abc",
            "generatedTime": 1,
            "expirationTime": 2,
        }

    def test_populate_by_name(self):
        """Test construction with field names."""
        data = TokenData(id="abc", generated_time=1, expiration_time=2)
        assert data.expiration_time == 2


class TestChatSession:
    """Tests for the client-side chat session (dataclass)."""

    def test_open_seeds_greeting(self):
        """Test that a new session starts with the assistant greeting."""
        session = ChatSession.open("chat-1")
        assert session.session_id == "chat-1"
        assert session.messages == [Message(role="assistant", content=GREETING)]
        assert session.retry_counts == {}

    def test_open_without_greeting(self):
        """Test that the greeting can be omitted."""
        assert ChatSession.open("chat-1", greeting=None).messages == []

    def test_retry_bookkeeping(self):
        """Test that failures are counted per question and cleared on success."""
        session = ChatSession.open("chat-1")

        assert session.record_failure("Q1") == 1
        assert session.record_failure("Q1") == 2
        assert session.record_failure("Q2") == 1
        assert session.retry_count("Q1") == 2

        session.clear_retries("Q1")

        assert session.retry_count("Q1") == 0
        assert session.retry_count("Q2") == 1

    def test_append_updates_activity(self):
        """Test that appending a message refreshes the activity timestamp."""
        session = ChatSession.open("chat-1")
        before = session.last_activity

        session.append(Message(role="user", content="Hi"))

        assert session.messages[-1].content == "Hi"
        assert session.last_activity >= before

    def test_as_dict(self):
        """Test dictionary conversion."""
        data = ChatSession.open("chat-1").as_dict()
        assert data["session_id"] == "chat-1"
        assert data["messages"] == [{"role": "assistant", "content": GREETING}]
        assert "created_at" in data
