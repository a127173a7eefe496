"""Chat message domain entity."""

from dataclasses import dataclass
from typing import Literal

Role = Literal["user", "assistant", "system"]


@dataclass(frozen=True)
class ChatMessage:
    """A single chat turn. Never persisted by the backend."""

    role: Role
    content: str
