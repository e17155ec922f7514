"""Widget exports for the gpt_chat UI."""

from .conversation import ConversationView
from .message import MessageBubble
from .sidebar import ConversationList

__all__ = ["ConversationList", "ConversationView", "MessageBubble"]
