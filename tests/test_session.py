"""Tests for the chat session facade."""

from __future__ import annotations

from copy import deepcopy
import unittest

from gpt_chat.config import DEFAULT_CONFIG
from gpt_chat.credentials import (
    DEFAULT_CREDENTIAL_KEY,
    CredentialProvider,
    MemoryKeyValueStore,
)
from gpt_chat.events import CONVERSATION_CREATED, CONVERSATION_DELETED, Event
from gpt_chat.exceptions import ConversationNotFoundError, CredentialStoreError
from gpt_chat.session import ChatSession
from gpt_chat.transport import OpenAITransport


class EchoTransport:
    def __init__(self) -> None:
        self.closed = False

    async def complete(self, history: list[dict[str, str]], credential: str) -> str:  # noqa: ARG002
        return f"eco: {history[-1]['content']}"

    async def aclose(self) -> None:
        self.closed = True


class _ReadOnlyStore(MemoryKeyValueStore):
    def set(self, key: str, value: str) -> None:  # noqa: ARG002
        raise PermissionError("read-only")


class ChatSessionTests(unittest.IsolatedAsyncioTestCase):
    """Validate the facade that front-ends drive."""

    def _session(self, key: str | None = "sk-test") -> ChatSession:
        initial = {DEFAULT_CREDENTIAL_KEY: key} if key else {}
        return ChatSession(
            EchoTransport(), CredentialProvider(MemoryKeyValueStore(initial))
        )

    async def test_send_uses_stored_credential(self) -> None:
        session = self._session()
        result = await session.send("Hola")
        assert result is not None
        self.assertEqual(result.assistant_message.content, "eco: Hola")  # type: ignore[union-attr]
        self.assertEqual(len(session.conversations), 1)
        self.assertFalse(session.busy)
        self.assertEqual(session.pending(result.conversation_id), 0)

    async def test_send_without_credential_is_noop(self) -> None:
        session = self._session(key=None)
        self.assertFalse(session.has_credential)
        self.assertIsNone(await session.send("Hola"))
        self.assertEqual(session.conversations, ())

    async def test_saving_credential_enables_sending(self) -> None:
        session = self._session(key=None)
        session.save_credential("  sk-new  ")
        self.assertTrue(session.has_credential)
        self.assertEqual(session.load_credential(), "sk-new")
        self.assertIsNotNone(await session.send("Hola"))

    async def test_save_failure_is_reported(self) -> None:
        session = ChatSession(EchoTransport(), CredentialProvider(_ReadOnlyStore()))
        with self.assertLogs("gpt_chat.credentials", level="ERROR"):
            with self.assertRaises(CredentialStoreError):
                session.save_credential("sk-test")

    async def test_create_select_delete_publish_events(self) -> None:
        session = self._session()
        seen: list[Event] = []
        session.events.subscribe(CONVERSATION_CREATED, seen.append)
        session.events.subscribe(CONVERSATION_DELETED, seen.append)

        first = await session.create()
        second = await session.create()
        self.assertEqual(session.current.id, second.id)  # type: ignore[union-attr]
        session.select(first.id)
        self.assertEqual(session.current.id, first.id)  # type: ignore[union-attr]
        self.assertTrue(await session.delete(first.id))
        self.assertFalse(await session.delete(first.id))
        self.assertIsNone(session.current)

        self.assertEqual(
            [event.name for event in seen],
            [CONVERSATION_CREATED, CONVERSATION_CREATED, CONVERSATION_DELETED],
        )

    async def test_select_unknown_raises(self) -> None:
        session = self._session()
        with self.assertRaises(ConversationNotFoundError):
            session.select("missing")

    async def test_aclose_closes_transport(self) -> None:
        transport = EchoTransport()
        session = ChatSession(transport, CredentialProvider(MemoryKeyValueStore()))
        await session.aclose()
        self.assertTrue(transport.closed)

    async def test_from_config_wires_sections(self) -> None:
        config = deepcopy(DEFAULT_CONFIG)
        config["chat"]["default_title"] = "New chat"
        config["chat"]["failure_message"] = "Sorry"
        config["credentials"]["key"] = "custom_key"
        store = MemoryKeyValueStore({"custom_key": "sk-config"})
        session = ChatSession.from_config(
            config, transport=EchoTransport(), key_value_store=store
        )
        self.assertTrue(session.has_credential)
        self.assertEqual((await session.create()).title, "New chat")

    async def test_from_config_builds_http_transport(self) -> None:
        config = deepcopy(DEFAULT_CONFIG)
        config["api"]["model"] = "gpt-4o-mini"
        session = ChatSession.from_config(config, key_value_store=MemoryKeyValueStore())
        transport = session._transport
        self.assertIsInstance(transport, OpenAITransport)
        self.assertEqual(transport.model, "gpt-4o-mini")  # type: ignore[attr-defined]
        await session.aclose()


if __name__ == "__main__":
    unittest.main()
