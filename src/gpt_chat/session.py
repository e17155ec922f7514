"""Public surface of the chat core for presentation layers."""

from __future__ import annotations

from typing import Any

from .conversation_store import ConversationStore
from .credentials import CredentialProvider, JsonFileKeyValueStore, KeyValueStore
from .events import CONVERSATION_CREATED, CONVERSATION_DELETED, EventBus
from .models import Conversation
from .orchestrator import SendOrchestrator, SendResult
from .transport import ChatTransport, OpenAITransport


class ChatSession:
    """Bundle the store, orchestrator and credentials behind one facade.

    Front-ends read ``conversations``, ``current``, ``busy`` and
    ``has_credential`` and call ``create``, ``select``, ``delete``, ``send``
    and ``save_credential``. There is no other way to mutate chat state.
    """

    def __init__(
        self,
        transport: ChatTransport,
        credentials: CredentialProvider,
        *,
        store: ConversationStore | None = None,
        event_bus: EventBus | None = None,
        **orchestrator_options: Any,
    ) -> None:
        self.events = event_bus or EventBus()
        self._store = store or ConversationStore()
        self._credentials = credentials
        self._transport = transport
        self._orchestrator = SendOrchestrator(
            self._store, transport, event_bus=self.events, **orchestrator_options
        )

    @classmethod
    def from_config(
        cls,
        config: dict[str, dict[str, Any]],
        *,
        transport: ChatTransport | None = None,
        key_value_store: KeyValueStore | None = None,
    ) -> ChatSession:
        """Build a session from a validated ``load_config`` mapping."""
        api = config["api"]
        chat = config["chat"]
        creds = config["credentials"]
        if transport is None:
            transport = OpenAITransport(
                base_url=str(api["base_url"]),
                model=str(api["model"]),
                max_tokens=int(api["max_tokens"]),
                temperature=float(api["temperature"]),
                timeout=float(api["timeout"]),
            )
        store = key_value_store or JsonFileKeyValueStore(str(creds["path"]))
        return cls(
            transport,
            CredentialProvider(store, key=str(creds["key"])),
            store=ConversationStore(default_title=str(chat["default_title"])),
            failure_message=str(chat["failure_message"]),
            title_max_chars=int(chat["title_max_chars"]),
            title_ellipsis=str(chat["title_ellipsis"]),
            serialize_sends=bool(chat["serialize_sends"]),
        )

    @property
    def conversations(self) -> tuple[Conversation, ...]:
        return self._store.conversations

    @property
    def current(self) -> Conversation | None:
        return self._store.current()

    @property
    def busy(self) -> bool:
        return self._orchestrator.busy

    @property
    def has_credential(self) -> bool:
        return self._credentials.has_credential()

    def pending(self, conversation_id: str) -> int:
        return self._orchestrator.pending(conversation_id)

    async def create(self) -> Conversation:
        conversation = self._store.create()
        await self.events.publish(
            CONVERSATION_CREATED,
            {"conversation_id": conversation.id, "title": conversation.title},
            source="session",
        )
        return conversation

    def select(self, conversation_id: str) -> Conversation:
        return self._store.select(conversation_id)

    async def delete(self, conversation_id: str) -> bool:
        deleted = self._store.delete(conversation_id)
        if deleted:
            await self.events.publish(
                CONVERSATION_DELETED, {"conversation_id": conversation_id}, source="session"
            )
        return deleted

    async def send(self, text: str) -> SendResult | None:
        """Send ``text`` with the stored API key; see ``SendOrchestrator.send``."""
        return await self._orchestrator.send(text, self._credentials.load())

    def save_credential(self, value: str) -> None:
        """Persist the API key; raises ``CredentialStoreError`` on failure."""
        self._credentials.save(value.strip())

    def load_credential(self) -> str | None:
        return self._credentials.load()

    async def aclose(self) -> None:
        closer = getattr(self._transport, "aclose", None)
        if closer is not None:
            await closer()
