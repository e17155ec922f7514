"""Unit tests for individual widget classes."""

from __future__ import annotations

import unittest

from gpt_chat.models import Conversation, Message

try:
    from textual.app import App, ComposeResult

    from gpt_chat.widgets.conversation import ConversationView
    from gpt_chat.widgets.message import MessageBubble
    from gpt_chat.widgets.sidebar import ConversationList
except ModuleNotFoundError:
    App = None  # type: ignore[assignment,misc]
    ConversationView = None  # type: ignore[assignment,misc]
    MessageBubble = None  # type: ignore[assignment,misc]
    ConversationList = None  # type: ignore[assignment,misc]


@unittest.skipIf(MessageBubble is None, "textual is not installed")
class MessageBubbleTests(unittest.TestCase):
    """Validate MessageBubble labels and classes."""

    def test_user_role_class_and_prefix(self) -> None:
        bubble = MessageBubble(Message.user("hola"))
        self.assertIn("message-user", bubble.classes)
        self.assertEqual(bubble.role_prefix, "Tú")

    def test_assistant_role_class_and_prefix(self) -> None:
        bubble = MessageBubble(Message.assistant("hola"))
        self.assertIn("message-assistant", bubble.classes)
        self.assertEqual(bubble.role_prefix, "Asistente")

    def test_header_without_timestamp(self) -> None:
        bubble = MessageBubble(Message.user("hola"), show_timestamp=False)
        self.assertEqual(bubble._compose_header(), "Tú")

    def test_header_with_timestamp(self) -> None:
        message = Message.user("hola")
        bubble = MessageBubble(message)
        expected = message.timestamp.astimezone().strftime("%H:%M")
        self.assertTrue(bubble._compose_header().endswith(expected))


@unittest.skipIf(ConversationView is None, "textual is not installed")
class ConversationWidgetsTests(unittest.IsolatedAsyncioTestCase):
    """Mount the conversation widgets in a throwaway app."""

    def _app(self) -> App:
        class _TestApp(App[None]):
            def compose(self) -> ComposeResult:
                yield ConversationList(id="list")
                yield ConversationView(id="view")

        return _TestApp()

    async def test_welcome_panel_and_missing_key_warning(self) -> None:
        app = self._app()
        async with app.run_test() as pilot:
            view = app.query_one(ConversationView)
            await view.show(None, has_credential=False)
            await pilot.pause()
            self.assertEqual(len(view.query("#welcome")), 1)
            self.assertEqual(len(view.query("#api-warning")), 1)
            await view.show(None, has_credential=True)
            await pilot.pause()
            self.assertEqual(len(view.query("#api-warning")), 0)

    async def test_bubbles_and_typing_indicator(self) -> None:
        app = self._app()
        conversation = Conversation(
            messages=(Message.user("Hola"), Message.assistant("¡Hola!"))
        )
        async with app.run_test() as pilot:
            view = app.query_one(ConversationView)
            await view.show(conversation, busy=True)
            await pilot.pause()
            self.assertEqual(len(view.query(MessageBubble)), 2)
            self.assertEqual(len(view.query("#typing-indicator")), 1)
            await view.show(conversation, busy=False)
            await pilot.pause()
            self.assertEqual(len(view.query("#typing-indicator")), 0)

    async def test_sidebar_highlights_current(self) -> None:
        app = self._app()
        first = Conversation(title="Primera")
        second = Conversation(title="Segunda")
        async with app.run_test() as pilot:
            sidebar = app.query_one(ConversationList)
            sidebar.set_conversations([second, first], first.id)
            await pilot.pause()
            self.assertEqual(sidebar.option_count, 2)
            self.assertEqual(sidebar.highlighted, 1)
            sidebar.set_conversations([second, first], None)
            await pilot.pause()
            self.assertIsNone(sidebar.highlighted)


if __name__ == "__main__":
    unittest.main()
