"""Tests for decoding agent server replies."""

import json

import pytest

from storyrelay.domain.agent_reply import (
    FunctionCallEntry,
    TextEntry,
    UnknownEntry,
    decode_entry,
    decode_reply,
    extract_send_message,
)
from storyrelay.errors import ResponseShapeError


def _send_message(text: str) -> dict:
    return {
        "function_call": {
            "name": "send_message",
            "arguments": json.dumps({"message": text}),
        }
    }


class TestDecodeEntry:
    """Tests for decode_entry."""

    def test_function_call(self):
        entry = decode_entry(_send_message("Hi"))
        assert isinstance(entry, FunctionCallEntry)
        assert entry.name == "send_message"

    def test_internal_monologue(self):
        entry = decode_entry({"internal_monologue": "User said hi."})
        assert entry == TextEntry(role="internal_monologue", text="User said hi.")

    def test_non_dict(self):
        assert decode_entry("hello") == UnknownEntry("hello")

    def test_function_call_without_name(self):
        assert isinstance(decode_entry({"function_call": {"arguments": "{}"}}), UnknownEntry)


class TestDecodeReply:
    """Tests for decode_reply."""

    def test_missing_messages_key(self):
        with pytest.raises(ResponseShapeError, match="Unexpected response format"):
            decode_reply({"usage": {}})

    def test_null_body(self):
        with pytest.raises(ResponseShapeError):
            decode_reply(None)

    def test_mixed_entries(self):
        entries = decode_reply({
            "messages": [
                {"internal_monologue": "Thinking..."},
                _send_message("Hello!"),
                {"function_return": "None", "status": "OK"},
            ]
        })
        assert [type(e) for e in entries] == [TextEntry, FunctionCallEntry, UnknownEntry]


class TestExtractSendMessage:
    """Tests for extract_send_message."""

    def test_returns_message_argument(self):
        entries = decode_reply({
            "messages": [{"internal_monologue": "..."}, _send_message("Once upon a time")]
        })
        assert extract_send_message(entries) == "Once upon a time"

    def test_first_send_message_wins(self):
        entries = [
            decode_entry(_send_message("first")),
            decode_entry(_send_message("second")),
        ]
        assert extract_send_message(entries) == "first"

    def test_other_function_ignored(self):
        entries = [FunctionCallEntry(name="archival_memory_search", arguments="{}")]
        with pytest.raises(ResponseShapeError, match="not found"):
            extract_send_message(entries)

    def test_empty_list(self):
        with pytest.raises(ResponseShapeError):
            extract_send_message([])

    def test_empty_message_is_not_an_error(self):
        assert extract_send_message([decode_entry(_send_message(""))]) == ""

    def test_unparseable_arguments(self):
        entries = [FunctionCallEntry(name="send_message", arguments="{not json")]
        with pytest.raises(ResponseShapeError, match="Unparseable"):
            extract_send_message(entries)

    def test_arguments_without_message(self):
        entries = [FunctionCallEntry(name="send_message", arguments='{"text": "Hi"}')]
        with pytest.raises(ResponseShapeError, match="no message argument"):
            extract_send_message(entries)
