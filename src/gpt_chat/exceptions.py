"""Domain exception hierarchy for the GPT chat client."""

from __future__ import annotations


class GptChatError(RuntimeError):
    """Base class for all domain-level chat errors."""


class TransportError(GptChatError):
    """Raised when the completion endpoint cannot produce a reply.

    ``status`` carries the HTTP status code when the server answered, and is
    ``None`` for connection failures and timeouts.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is None:
            return base
        return f"HTTP {self.status}: {base}"


class MalformedResponseError(TransportError):
    """Raised when a successful response does not contain a completion."""


class CredentialStoreError(GptChatError):
    """Raised when the API key cannot be written to persistent storage."""


class ConversationNotFoundError(GptChatError):
    """Raised when selecting a conversation id that does not exist."""


class ConfigValidationError(GptChatError):
    """Raised when configuration cannot be validated safely."""
