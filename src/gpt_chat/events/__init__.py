"""Publish/subscribe notifications from the chat core to front-ends."""

from .bus import Event, EventBus
from .names import (
    CONVERSATION_CREATED,
    CONVERSATION_DELETED,
    MESSAGE_APPENDED,
    SEND_COMPLETED,
    SEND_FAILED,
    SEND_STARTED,
)

__all__ = [
    "CONVERSATION_CREATED",
    "CONVERSATION_DELETED",
    "Event",
    "EventBus",
    "MESSAGE_APPENDED",
    "SEND_COMPLETED",
    "SEND_FAILED",
    "SEND_STARTED",
]
