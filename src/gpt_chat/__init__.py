"""Top-level package for gptterm."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import GptChatApp
    from .config import ensure_config_dir, load_config
    from .conversation_store import ConversationStore
    from .exceptions import (
        ConfigValidationError,
        ConversationNotFoundError,
        CredentialStoreError,
        GptChatError,
        MalformedResponseError,
        TransportError,
    )
    from .models import Conversation, Message, Role
    from .orchestrator import SendOrchestrator, SendResult
    from .session import ChatSession
    from .transport import OpenAITransport

__all__ = [
    "ChatSession",
    "ConfigValidationError",
    "Conversation",
    "ConversationNotFoundError",
    "ConversationStore",
    "CredentialStoreError",
    "GptChatApp",
    "GptChatError",
    "MalformedResponseError",
    "Message",
    "OpenAITransport",
    "Role",
    "SendOrchestrator",
    "SendResult",
    "TransportError",
    "ensure_config_dir",
    "load_config",
]

_EXPORTS: dict[str, str] = {
    "ChatSession": "session",
    "ConfigValidationError": "exceptions",
    "Conversation": "models",
    "ConversationNotFoundError": "exceptions",
    "ConversationStore": "conversation_store",
    "CredentialStoreError": "exceptions",
    "GptChatApp": "app",
    "GptChatError": "exceptions",
    "MalformedResponseError": "exceptions",
    "Message": "models",
    "OpenAITransport": "transport",
    "Role": "models",
    "SendOrchestrator": "orchestrator",
    "SendResult": "orchestrator",
    "TransportError": "exceptions",
    "ensure_config_dir": "config",
    "load_config": "config",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols so the core stays importable without loading the UI."""
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(f".{module_name}", __name__), name)
