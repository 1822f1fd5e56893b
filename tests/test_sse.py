"""Tests for SSE framing and payload extraction."""

import json

import pytest

from lexchat.utils.sse import DONE_SENTINEL, consume_events, extract_content, format_content_event, format_event


class TestConsumeEvents:
    """Tests for the incremental SSE decoder."""

    def test_single_event(self):
        """Test that one complete block yields one event and no remainder."""
        events, remainder = consume_events('data: {"response": "hi"}\n\n')
        assert events == ['{"response": "hi"}']
        assert remainder == ""

    def test_multiple_data_lines_joined_with_newline(self):
        """Test that data lines of one block are joined with newlines."""
        events, remainder = consume_events("data: a\ndata: b\n\n")
        assert events == ["a\nb"]
        assert remainder == ""

    def test_block_without_data_is_dropped(self):
        """Test that comment/padding blocks produce no events."""
        events, remainder = consume_events(": keep-alive\n\nevent: ping\n\ndata: x\n\n")
        assert events == ["x"]
        assert remainder == ""

    def test_partial_block_is_returned_as_remainder(self):
        """Test that bytes after the last delimiter are kept for the next call."""
        events, remainder = consume_events("data: one\n\ndata: tw")
        assert events == ["one"]
        assert remainder == "data: tw"

    def test_carriage_returns_are_stripped(self):
        """Test that CRLF framed streams decode like LF framed ones."""
        events, remainder = consume_events("data: one\r\n\r\ndata: two\r\n\r\n")
        assert events == ["one", "two"]
        assert remainder == ""

    def test_marker_without_space(self):
        """Test that the space after the data marker is optional."""
        events, _ = consume_events("data:compact\n\n")
        assert events == ["compact"]

    def test_only_one_leading_space_is_stripped(self):
        """Test that indentation beyond the single framing space is kept."""
        events, _ = consume_events("data:   two spaces kept\n\n")
        assert events == ["  two spaces kept"]

    def test_done_sentinel_is_an_event(self):
        """Test that the completion sentinel is delivered as a normal payload."""
        events, _ = consume_events("data: [DONE]\n\n")
        assert events == [DONE_SENTINEL]

    def test_events_before_sentinel_are_delivered(self):
        """Test that events preceding the sentinel in the same slice are kept in order."""
        events, _ = consume_events("data: a\n\ndata: b\n\ndata: [DONE]\n\n")
        assert events == ["a", "b", DONE_SENTINEL]

    def test_empty_buffer(self):
        """Test that an empty buffer yields nothing."""
        assert consume_events("") == ([], "")

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 5, 7, 13])
    def test_chunk_invariance(self, chunk_size):
        """Test that arbitrary chunking yields the same events as a single call."""
        stream = (
            'data: {"response": "Hello"}\r\n\r\n'
            ": comment\n\n"
            "data: line one\ndata: line two\n\n"
            'data: {"choices": [{"delta": {"content": " world"}}]}\n\n'
            "data: [DONE]\n\n"
        )
        expected, expected_rest = consume_events(stream)

        collected: list[str] = []
        buffer = ""
        for start in range(0, len(stream), chunk_size):
            buffer += stream[start : start + chunk_size]
            events, buffer = consume_events(buffer)
            collected.extend(events)

        assert collected == expected
        assert buffer == expected_rest


class TestFormatting:
    """Tests for SSE encoding helpers."""

    def test_format_event(self):
        """Test single-line frame encoding."""
        assert format_event(DONE_SENTINEL) == "data: [DONE]\n\n"

    def test_format_multiline_event_decodes_back(self):
        """Test that multi-line payloads are split across data lines."""
        frame = format_event("a\nb")
        assert frame == "data: a\ndata: b\n\n"
        assert consume_events(frame)[0] == ["a\nb"]

    def test_indented_multiline_payload_decodes_back(self):
        """Test that indented continuation lines survive encoding and decoding."""
        payload = "line\n    indented\n\ttabbed"
        assert consume_events(format_event(payload))[0] == [payload]

    def test_format_content_event(self):
        """Test that content increments use the response shape."""
        frame = format_content_event("text with\nnewline")
        events, _ = consume_events(frame)
        assert json.loads(events[0]) == {"response": "text with\nnewline"}


class TestExtractContent:
    """Tests for payload shape dispatch."""

    def test_response_shape(self):
        """Test the flat response field."""
        assert extract_content('{"response": "hi"}') == "hi"

    def test_delta_shape(self):
        """Test the nested choices/delta field."""
        assert extract_content('{"choices": [{"delta": {"content": "yo"}}]}') == "yo"

    def test_empty_response_falls_back_to_delta(self):
        """Test that an empty response field does not hide delta content."""
        payload = '{"response": "", "choices": [{"delta": {"content": "x"}}]}'
        assert extract_content(payload) == "x"

    @pytest.mark.parametrize(
        "payload",
        ['{"usage": {"tokens": 3}}', '{"choices": []}', '{"choices": [{"delta": {}}]}', "[1, 2]", '"text"'],
    )
    def test_unrecognized_shapes_yield_nothing(self, payload):
        """Test that unknown shapes are ignored rather than failing."""
        assert extract_content(payload) == ""

    def test_malformed_json_raises(self):
        """Test that malformed payloads raise ValueError for the caller to skip."""
        with pytest.raises(ValueError):
            extract_content("{not json")
