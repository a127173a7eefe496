"""Decoding of agent service replies.

The agent service answers a message with a list of entries. Each entry is
decoded into one of the variants below; the user-facing reply is the
``message`` argument of the ``send_message`` function call.
"""

import json
from dataclasses import dataclass
from typing import Any

from storyrelay.errors import ResponseShapeError

SEND_MESSAGE_FUNCTION = "send_message"


@dataclass(frozen=True)
class FunctionCallEntry:
    """The agent invoked a function."""

    name: str
    arguments: str


@dataclass(frozen=True)
class TextEntry:
    """Plain text content (inner monologue, tool output, etc.)."""

    role: str
    text: str


@dataclass(frozen=True)
class UnknownEntry:
    """Anything the decoder does not recognise."""

    raw: Any


ReplyEntry = FunctionCallEntry | TextEntry | UnknownEntry


def decode_entry(raw: Any) -> ReplyEntry:
    """Decode a single entry of the ``messages`` list."""
    if not isinstance(raw, dict):
        return UnknownEntry(raw)

    function_call = raw.get("function_call")
    if isinstance(function_call, dict) and isinstance(function_call.get("name"), str):
        arguments = function_call.get("arguments")
        return FunctionCallEntry(
            name=function_call["name"],
            arguments=arguments if isinstance(arguments, str) else "",
        )

    for key in ("internal_monologue", "assistant_message", "content", "text"):
        value = raw.get(key)
        if isinstance(value, str):
            return TextEntry(role=raw.get("role", key), text=value)

    return UnknownEntry(raw)


def decode_reply(payload: Any) -> list[ReplyEntry]:
    """Decode a full send-message response body.

    Raises:
        ResponseShapeError: If the body carries no ``messages`` list.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("messages"), list):
        raise ResponseShapeError("agent", "Unexpected response format")
    return [decode_entry(raw) for raw in payload["messages"]]


def extract_send_message(entries: list[ReplyEntry]) -> str:
    """Return the text the agent sent to the user.

    Raises:
        ResponseShapeError: If no ``send_message`` call is present or its
            arguments do not carry a string ``message``.
    """
    call = next(
        (
            e
            for e in entries
            if isinstance(e, FunctionCallEntry) and e.name == SEND_MESSAGE_FUNCTION
        ),
        None,
    )
    if call is None or not call.arguments:
        raise ResponseShapeError("agent", "Assistant message not found in the response")

    try:
        arguments = json.loads(call.arguments)
    except json.JSONDecodeError as e:
        raise ResponseShapeError(
            "agent", "Unparseable send_message arguments", str(e)
        ) from e

    message = arguments.get("message") if isinstance(arguments, dict) else None
    if not isinstance(message, str):
        raise ResponseShapeError("agent", "send_message call has no message argument")
    return message
