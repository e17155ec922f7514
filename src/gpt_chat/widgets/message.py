"""One chat turn rendered as a bubble."""

from __future__ import annotations

from typing import Any

from rich.markdown import Markdown
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Label, Static

from ..models import Message, Role

ROLE_LABELS = {Role.USER: "Tú", Role.ASSISTANT: "Asistente"}


class MessageBubble(Vertical):
    """Role, time and body of a single message.

    Assistant replies are rendered as Markdown; user text is shown as typed.
    """

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
    }
    MessageBubble > .bubble-meta {
        color: $text-muted;
    }
    MessageBubble > .bubble-body {
        height: auto;
    }
    """

    def __init__(self, message: Message, show_timestamp: bool = True, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.message = message
        self.show_timestamp = show_timestamp
        self.add_class(f"message-{message.role.value}")

    @property
    def role_prefix(self) -> str:
        return ROLE_LABELS[self.message.role]

    def _compose_header(self) -> str:
        if not self.show_timestamp:
            return self.role_prefix
        local_time = self.message.timestamp.astimezone()
        return f"{self.role_prefix}  {local_time:%H:%M}"

    def compose(self) -> ComposeResult:
        yield Label(self._compose_header(), classes="bubble-meta")
        body = self.message.content.rstrip()
        if self.message.role is Role.ASSISTANT:
            yield Static(Markdown(body), classes="bubble-body")
        else:
            yield Static(Text(body), classes="bubble-body")
