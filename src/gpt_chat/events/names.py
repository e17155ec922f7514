"""Event names published by the chat core."""

from __future__ import annotations

CONVERSATION_CREATED = "conversation.created"
CONVERSATION_DELETED = "conversation.deleted"
MESSAGE_APPENDED = "message.appended"
SEND_STARTED = "send.started"
SEND_FAILED = "send.failed"
SEND_COMPLETED = "send.completed"
