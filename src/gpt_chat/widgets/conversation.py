"""Scrollable view of the current conversation."""

from __future__ import annotations

import asyncio
from typing import Any

from textual.containers import VerticalScroll
from textual.widgets import Static

from ..models import Conversation
from .message import MessageBubble

WELCOME_TEXT = (
    "[b]GPTTerm[/b]\n\n"
    "Selecciona una conversación o crea una nueva para empezar"
)
MISSING_KEY_TEXT = "⚠️ Configura tu API key de OpenAI en Configuración"
TYPING_TEXT = "Escribiendo…"


class ConversationView(VerticalScroll):
    """Host the message bubbles of one conversation, or the welcome panel."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._render_lock = asyncio.Lock()

    async def show(
        self,
        conversation: Conversation | None,
        *,
        busy: bool = False,
        has_credential: bool = True,
    ) -> None:
        """Re-render from scratch; conversations are small and append-only."""
        async with self._render_lock:
            await self.remove_children()
            if conversation is None:
                widgets: list[Static] = [Static(WELCOME_TEXT, id="welcome")]
                if not has_credential:
                    widgets.append(Static(MISSING_KEY_TEXT, id="api-warning"))
                await self.mount_all(widgets)
                return

            bubbles = [MessageBubble(message) for message in conversation.messages]
            await self.mount_all(bubbles)
            if busy:
                await self.mount(Static(TYPING_TEXT, id="typing-indicator"))
            self.scroll_end(animate=False)
