"""In-memory ownership of conversations and the current selection."""

from __future__ import annotations

import logging

from .exceptions import ConversationNotFoundError
from .models import DEFAULT_TITLE, Conversation, Message

LOGGER = logging.getLogger(__name__)


class ConversationStore:
    """Own the ordered conversation collection and which one is current.

    Newest conversations sit at the head. Activity never reorders the
    collection. Every mutation goes through the methods below; the collection
    itself is only ever handed out as a tuple snapshot.
    """

    def __init__(self, default_title: str = DEFAULT_TITLE) -> None:
        self.default_title = default_title
        self._conversations: list[Conversation] = []
        self._current_id: str | None = None

    @property
    def conversations(self) -> tuple[Conversation, ...]:
        """Return all conversations, newest first."""
        return tuple(self._conversations)

    @property
    def current_id(self) -> str | None:
        return self._current_id

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        if not isinstance(conversation_id, str):
            return False
        return self.get(conversation_id) is not None

    def get(self, conversation_id: str) -> Conversation | None:
        """Return the conversation with ``conversation_id`` or ``None``."""
        for conversation in self._conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    def current(self) -> Conversation | None:
        """Return the selected conversation, if any."""
        if self._current_id is None:
            return None
        return self.get(self._current_id)

    def create(self, title: str | None = None) -> Conversation:
        """Insert an empty conversation at the head and make it current."""
        conversation = Conversation(title=title or self.default_title)
        self._conversations.insert(0, conversation)
        self._current_id = conversation.id
        LOGGER.info(
            "store.conversation.created",
            extra={
                "event": "store.conversation.created",
                "conversation_id": conversation.id,
            },
        )
        return conversation

    def select(self, conversation_id: str) -> Conversation:
        """Make ``conversation_id`` current.

        Unknown ids are rejected and the selection is left unchanged, so the
        current reference can never dangle.
        """
        conversation = self.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(
                f"Conversation {conversation_id!r} does not exist."
            )
        self._current_id = conversation.id
        return conversation

    def delete(self, conversation_id: str) -> bool:
        """Remove a conversation; returns False when the id is unknown."""
        conversation = self.get(conversation_id)
        if conversation is None:
            return False
        self._conversations.remove(conversation)
        if self._current_id == conversation_id:
            self._current_id = None
        LOGGER.info(
            "store.conversation.deleted",
            extra={
                "event": "store.conversation.deleted",
                "conversation_id": conversation_id,
            },
        )
        return True

    def rename(self, conversation_id: str, title: str) -> bool:
        conversation = self.get(conversation_id)
        if conversation is None:
            return False
        conversation.title = title
        return True

    def append_message(self, conversation_id: str, message: Message) -> bool:
        """Append ``message`` to one conversation, leaving all others untouched.

        Appending to a conversation that no longer exists (deleted while a
        request was in flight) is a silent no-op and returns False.
        """
        conversation = self.get(conversation_id)
        if conversation is None:
            LOGGER.debug(
                "store.message.discarded",
                extra={
                    "event": "store.message.discarded",
                    "conversation_id": conversation_id,
                    "role": message.role.value,
                },
            )
            return False
        conversation.messages = (*conversation.messages, message)
        return True
