"""Turn one submitted text into a reconciled user/assistant exchange."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging
import time

from .conversation_store import ConversationStore
from .events import (
    CONVERSATION_CREATED,
    MESSAGE_APPENDED,
    SEND_COMPLETED,
    SEND_FAILED,
    SEND_STARTED,
    EventBus,
)
from .exceptions import TransportError
from .models import (
    TITLE_ELLIPSIS,
    TITLE_MAX_CHARS,
    Conversation,
    HistoryItem,
    Message,
    Role,
    derive_title,
)
from .transport import ChatTransport

LOGGER = logging.getLogger(__name__)

FAILURE_MESSAGE = (
    "Lo siento, hubo un error al procesar tu mensaje. "
    "Verifica tu API key y conexión."
)


@dataclass(frozen=True)
class SendResult:
    """Outcome of one ``SendOrchestrator.send`` call.

    ``assistant_message`` is ``None`` only when the conversation vanished
    before a request could be issued. ``discarded`` is True whenever the
    assistant turn could not be appended because the conversation was
    deleted mid-flight.
    """

    conversation_id: str
    user_message: Message
    assistant_message: Message | None
    error: TransportError | None = None
    discarded: bool = False

    @property
    def failed(self) -> bool:
        return self.error is not None


def _pair_turns(messages: tuple[Message, ...]) -> list[Message]:
    """Interleave user and assistant turns as user, reply, user, reply."""
    users = [m for m in messages if m.role is Role.USER]
    replies = [m for m in messages if m.role is Role.ASSISTANT]
    paired: list[Message] = []
    for index, user in enumerate(users):
        paired.append(user)
        if index < len(replies):
            paired.append(replies[index])
    paired.extend(replies[len(users):])
    return paired


class SendOrchestrator:
    """Drive optimistic append, remote completion, and reconciliation.

    Every send appends its user turn immediately. With ``serialize_sends``
    enabled, sends that target the same conversation then queue behind each
    other: a pending send builds its request only after the previous exchange
    has reconciled, and that request leaves out the user turns of sends still
    waiting behind it, so each payload reads user, assistant, ..., user. With
    it disabled, concurrent sends request at once and a payload may carry
    another in-flight send's user turn.
    """

    def __init__(
        self,
        store: ConversationStore,
        transport: ChatTransport,
        *,
        failure_message: str = FAILURE_MESSAGE,
        title_max_chars: int = TITLE_MAX_CHARS,
        title_ellipsis: str = TITLE_ELLIPSIS,
        serialize_sends: bool = True,
        event_bus: EventBus | None = None,
    ) -> None:
        self.store = store
        self.transport = transport
        self.failure_message = failure_message
        self.title_max_chars = title_max_chars
        self.title_ellipsis = title_ellipsis
        self.serialize_sends = serialize_sends
        self.event_bus = event_bus or EventBus()
        self._in_flight = 0
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: dict[str, int] = {}
        self._unsent: set[str] = set()

    @property
    def busy(self) -> bool:
        """True while any send is awaiting its response."""
        return self._in_flight > 0

    def pending(self, conversation_id: str) -> int:
        """Return how many serialized sends hold or wait for a conversation."""
        return self._pending.get(conversation_id, 0)

    async def send(self, text: str, credential: str | None) -> SendResult | None:
        """Append ``text`` as a user turn and reconcile the assistant reply.

        Returns ``None`` without touching any state when ``text`` is blank or
        no credential is available. Transport failures are never raised; they
        become a synthetic assistant message carrying ``failure_message``.
        """
        if not text.strip() or not credential:
            LOGGER.debug(
                "orchestrator.send.rejected",
                extra={
                    "event": "orchestrator.send.rejected",
                    "reason": "empty_text" if not text.strip() else "no_credential",
                },
            )
            return None

        conversation = await self._resolve_target(text)
        conversation_id = conversation.id
        user_message = Message.user(text)

        self._in_flight += 1
        try:
            if not self.store.append_message(conversation_id, user_message):
                # Deleted by a subscriber of the creation event.
                result = self._discard(conversation_id, user_message, "before_append")
            else:
                if self.serialize_sends:
                    self._unsent.add(user_message.id)
                try:
                    await self._publish_appended(conversation_id, user_message)
                    if self.serialize_sends:
                        async with self._sequence(conversation_id):
                            self._unsent.discard(user_message.id)
                            result = await self._exchange(
                                conversation_id, user_message, credential
                            )
                    else:
                        result = await self._exchange(
                            conversation_id, user_message, credential
                        )
                finally:
                    self._unsent.discard(user_message.id)
        finally:
            self._in_flight -= 1

        if result.error is not None:
            await self.event_bus.publish(
                SEND_FAILED,
                {
                    "conversation_id": result.conversation_id,
                    "error": str(result.error),
                    "status": result.error.status,
                },
                source="orchestrator",
            )
        await self.event_bus.publish(
            SEND_COMPLETED,
            {
                "conversation_id": result.conversation_id,
                "failed": result.failed,
                "discarded": result.discarded,
            },
            source="orchestrator",
        )
        return result

    async def _resolve_target(self, text: str) -> Conversation:
        current = self.store.current()
        if current is not None:
            return current
        conversation = self.store.create()
        self.store.rename(
            conversation.id,
            derive_title(text, self.title_max_chars, self.title_ellipsis),
        )
        await self.event_bus.publish(
            CONVERSATION_CREATED,
            {"conversation_id": conversation.id, "title": conversation.title},
            source="orchestrator",
        )
        return conversation

    @asynccontextmanager
    async def _sequence(self, conversation_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._pending[conversation_id] = self._pending.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._pending[conversation_id] - 1
            if remaining:
                self._pending[conversation_id] = remaining
            else:
                del self._pending[conversation_id]
                self._locks.pop(conversation_id, None)

    def _history_for(self, conversation: Conversation, own: Message) -> list[HistoryItem]:
        """Context for ``own``: earlier exchanges, then ``own`` as the last turn.

        Serialized replies land in send order while later user turns are
        already stored, so each user turn is paired with the next reply
        instead of following store order. User turns of sends still waiting
        for the lock are left out; they are requested, with their own
        context, once their turn comes.
        """
        messages = conversation.messages
        if self.serialize_sends:
            messages = _pair_turns(messages)
        earlier = [
            message.to_history_item()
            for message in messages
            if message.id != own.id and message.id not in self._unsent
        ]
        return [*earlier, own.to_history_item()]

    def _discard(self, conversation_id: str, user_message: Message, stage: str) -> SendResult:
        LOGGER.info(
            "orchestrator.send.discarded",
            extra={
                "event": "orchestrator.send.discarded",
                "conversation_id": conversation_id,
                "stage": stage,
            },
        )
        return SendResult(
            conversation_id=conversation_id,
            user_message=user_message,
            assistant_message=None,
            discarded=True,
        )

    async def _exchange(
        self, conversation_id: str, user_message: Message, credential: str
    ) -> SendResult:
        conversation = self.store.get(conversation_id)
        if conversation is None:
            # Deleted while this send was pending behind another one.
            return self._discard(conversation_id, user_message, "before_request")
        history = self._history_for(conversation, user_message)
        await self.event_bus.publish(
            SEND_STARTED, {"conversation_id": conversation_id}, source="orchestrator"
        )
        LOGGER.info(
            "orchestrator.send.start",
            extra={
                "event": "orchestrator.send.start",
                "conversation_id": conversation_id,
                "messages": len(history),
            },
        )
        started = time.monotonic()
        error: TransportError | None = None
        try:
            completion = await self.transport.complete(history, credential)
            assistant_message = Message.assistant(completion)
        except Exception as exc:  # noqa: BLE001 - every failure becomes a visible reply.
            error = self._map_exception(exc)
            assistant_message = Message.assistant(self.failure_message)
            LOGGER.warning(
                "orchestrator.send.failed",
                extra={
                    "event": "orchestrator.send.failed",
                    "conversation_id": conversation_id,
                    "status": error.status,
                    "error_type": type(exc).__name__,
                },
            )

        appended = self.store.append_message(conversation_id, assistant_message)
        if appended:
            await self._publish_appended(conversation_id, assistant_message)
        LOGGER.info(
            "orchestrator.send.complete",
            extra={
                "event": "orchestrator.send.complete",
                "conversation_id": conversation_id,
                "failed": error is not None,
                "discarded": not appended,
                "elapsed_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return SendResult(
            conversation_id=conversation_id,
            user_message=user_message,
            assistant_message=assistant_message,
            error=error,
            discarded=not appended,
        )

    @staticmethod
    def _map_exception(exc: Exception) -> TransportError:
        if isinstance(exc, TransportError):
            return exc
        return TransportError(f"Completion request failed: {exc}")

    async def _publish_appended(self, conversation_id: str, message: Message) -> None:
        await self.event_bus.publish(
            MESSAGE_APPENDED,
            {
                "conversation_id": conversation_id,
                "message_id": message.id,
                "role": message.role.value,
            },
            source="orchestrator",
        )
