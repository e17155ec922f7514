"""Sidebar list of conversations."""

from __future__ import annotations

from collections.abc import Sequence

from rich.text import Text
from textual.widgets import OptionList
from textual.widgets.option_list import Option

from ..models import Conversation


class ConversationList(OptionList):
    """Selectable conversation titles, newest first."""

    def set_conversations(
        self, conversations: Sequence[Conversation], current_id: str | None
    ) -> None:
        self.clear_options()
        self.add_options(
            [Option(Text(conversation.title), id=conversation.id) for conversation in conversations]
        )
        for index, conversation in enumerate(conversations):
            if conversation.id == current_id:
                self.highlighted = index
                break
        else:
            self.highlighted = None
