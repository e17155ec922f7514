"""Conversation and message data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

DEFAULT_TITLE = "Nueva conversación"
TITLE_MAX_CHARS = 50
TITLE_ELLIPSIS = "..."

# Wire format for one turn sent to the completion endpoint.
HistoryItem = dict[str, str]

_last_timestamp: datetime | None = None


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"


def new_id() -> str:
    """Return a random identifier that does not depend on the clock."""
    return uuid4().hex


def now() -> datetime:
    """Return the current UTC instant, never earlier than the previous call.

    Wall clocks can step backwards; clamping keeps message timestamps
    non-decreasing in insertion order.
    """
    global _last_timestamp
    current = datetime.now(UTC)
    if _last_timestamp is not None and current < _last_timestamp:
        current = _last_timestamp
    _last_timestamp = current
    return current


def derive_title(
    text: str, limit: int = TITLE_MAX_CHARS, marker: str = TITLE_ELLIPSIS
) -> str:
    """Build a conversation title from the first message of a thread."""
    if len(text) > limit:
        return text[:limit] + marker
    return text


@dataclass(frozen=True)
class Message:
    """A single turn in a conversation. Never mutated after creation."""

    content: str
    role: Role
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=now)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(content=content, role=Role.USER)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(content=content, role=Role.ASSISTANT)

    def to_history_item(self) -> HistoryItem:
        return {"role": self.role.value, "content": self.content}


@dataclass
class Conversation:
    """A titled, append-only log of messages.

    ``messages`` is a tuple so that callers holding a reference cannot append
    behind the store's back; ``ConversationStore`` replaces it on every append.
    """

    title: str = DEFAULT_TITLE
    messages: tuple[Message, ...] = ()
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=now)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def history(self) -> list[HistoryItem]:
        """Return the ordered ``{role, content}`` context for a completion request."""
        return [message.to_history_item() for message in self.messages]
