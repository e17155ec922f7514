"""Terminal front-end for multi-conversation chat with a completion service."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Footer, Header, Input, OptionList

from .config import load_config
from .events import (
    CONVERSATION_CREATED,
    CONVERSATION_DELETED,
    MESSAGE_APPENDED,
    SEND_COMPLETED,
    SEND_FAILED,
    SEND_STARTED,
    Event,
)
from .exceptions import ConversationNotFoundError, CredentialStoreError
from .logging_utils import configure_logging
from .screens import ApiKeyScreen, InfoScreen
from .session import ChatSession
from .widgets import ConversationList, ConversationView

LOGGER = logging.getLogger(__name__)


class GptChatApp(App[None]):
    """Sidebar of conversations, the current thread, and an input row."""

    CSS = """
    Screen {
        layout: vertical;
        background: $background;
    }

    #body {
        height: 1fr;
    }

    #sidebar {
        width: 32;
        border-right: solid $panel;
        background: $surface;
    }

    #new_button {
        width: 100%;
        margin: 0 0 1 0;
    }

    #conversation_list {
        height: 1fr;
    }

    #main {
        width: 1fr;
    }

    #conversation {
        height: 1fr;
        padding: 1;
    }

    #input_row {
        height: auto;
        padding: 0 1 1 1;
        border-top: solid $panel;
    }

    #message_input {
        width: 1fr;
    }

    #send_button {
        margin-left: 1;
        min-width: 10;
    }

    MessageBubble {
        width: 85%;
        margin: 1 0;
        padding: 1 2;
        border: round $panel;
    }

    .message-user {
        background: $primary;
    }

    .message-assistant {
        background: $surface;
    }

    #typing-indicator, #api-warning {
        color: $warning;
    }
    """

    DEFAULT_ACTION_DESCRIPTIONS: dict[str, str] = {
        "new_conversation": "Nueva",
        "delete_conversation": "Eliminar",
        "settings": "Configuración",
        "quit": "Salir",
    }

    def __init__(
        self,
        config: dict[str, dict[str, Any]] | None = None,
        session: ChatSession | None = None,
        config_path: Path | None = None,
    ) -> None:
        if config is None:
            config = load_config(config_path)
            configure_logging(config["logging"])
        self.config = config
        self.session = session or ChatSession.from_config(config)
        self._binding_specs = self._binding_specs_from_config(config)
        super().__init__()
        self._w_sidebar: ConversationList | None = None
        self._w_conversation: ConversationView | None = None
        self._w_input: Input | None = None
        self._w_send: Button | None = None

    @classmethod
    def _binding_specs_from_config(
        cls, config: dict[str, dict[str, Any]]
    ) -> list[Binding]:
        keybinds = config.get("keybinds", {})
        bindings: list[Binding] = []
        for action_name, description in cls.DEFAULT_ACTION_DESCRIPTIONS.items():
            binding_key = keybinds.get(action_name)
            if isinstance(binding_key, str) and binding_key.strip():
                bindings.append(
                    Binding(
                        key=binding_key.strip(),
                        action=action_name,
                        description=description,
                        show=True,
                    )
                )
        return bindings

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="body"):
            with Vertical(id="sidebar"):
                yield Button("+ Nueva conversación", id="new_button", variant="primary")
                yield ConversationList(id="conversation_list")
            with Vertical(id="main"):
                yield ConversationView(id="conversation")
                with Horizontal(id="input_row"):
                    yield Input(
                        placeholder="Escribe tu mensaje aquí...", id="message_input"
                    )
                    yield Button("Enviar", id="send_button", variant="success")
        yield Footer()

    async def on_mount(self) -> None:
        self.title = str(self.config["app"]["title"])
        for binding in self._binding_specs:
            self.bind(
                binding.key,
                binding.action,
                description=binding.description,
                show=binding.show,
            )
        # Cached so refreshes still reach the main screen while a modal is open.
        self._w_sidebar = self.query_one(ConversationList)
        self._w_conversation = self.query_one(ConversationView)
        self._w_input = self.query_one("#message_input", Input)
        self._w_send = self.query_one("#send_button", Button)

        events = self.session.events
        for name in (
            CONVERSATION_CREATED,
            CONVERSATION_DELETED,
            MESSAGE_APPENDED,
            SEND_STARTED,
            SEND_COMPLETED,
        ):
            events.subscribe(name, self._on_chat_event)
        events.subscribe(SEND_FAILED, self._on_send_failed)
        await self.refresh_view()
        self._w_input.focus()

    async def refresh_view(self) -> None:
        """Re-render the sidebar, the current thread and input affordances."""
        if self._w_conversation is None:
            return
        session = self.session
        current = session.current
        has_credential = session.has_credential
        self._w_sidebar.set_conversations(  # type: ignore[union-attr]
            session.conversations, current.id if current else None
        )
        await self._w_conversation.show(
            current, busy=session.busy, has_credential=has_credential
        )
        blocked = session.busy or not has_credential
        self._w_input.disabled = blocked  # type: ignore[union-attr]
        self._w_send.disabled = blocked  # type: ignore[union-attr]
        if not has_credential:
            self.sub_title = "Configura tu API key (Configuración)"
        elif session.busy:
            self.sub_title = "Esperando respuesta..."
        else:
            self.sub_title = str(self.config["api"]["model"])

    async def _on_chat_event(self, _event: Event) -> None:
        await self.refresh_view()

    def _on_send_failed(self, event: Event) -> None:
        LOGGER.info(
            "app.send.failed_alert",
            extra={"event": "app.send.failed_alert", "status": event.data.get("status")},
        )
        self.push_screen(InfoScreen("Error", "Error al enviar mensaje"))

    def submit_message(self) -> None:
        """Hand the input text to the chat session in a background worker."""
        input_widget = self._w_input or self.query_one("#message_input", Input)
        text = input_widget.value
        if not text.strip() or self.session.busy or not self.session.has_credential:
            return
        input_widget.value = ""
        self.run_worker(self._send(text), group="send", exclusive=False)

    async def _send(self, text: str) -> None:
        await self.session.send(text)
        await self.refresh_view()
        if not self.session.busy and self._w_input is not None:
            self._w_input.focus()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "message_input":
            self.submit_message()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send_button":
            self.submit_message()
        elif event.button.id == "new_button":
            await self.action_new_conversation()

    async def on_option_list_option_selected(
        self, event: OptionList.OptionSelected
    ) -> None:
        if event.option_list.id != "conversation_list" or event.option.id is None:
            return
        try:
            self.session.select(event.option.id)
        except ConversationNotFoundError:
            LOGGER.warning(
                "app.select.unknown",
                extra={"event": "app.select.unknown", "conversation_id": event.option.id},
            )
        await self.refresh_view()

    async def action_new_conversation(self) -> None:
        await self.session.create()

    async def action_delete_conversation(self) -> None:
        current = self.session.current
        if current is not None:
            await self.session.delete(current.id)

    def action_settings(self) -> None:
        self.push_screen(
            ApiKeyScreen(self.session.load_credential() or ""),
            self._on_api_key_dismissed,
        )

    async def _on_api_key_dismissed(self, value: str | None) -> None:
        if value is None:
            return
        try:
            self.session.save_credential(value)
        except CredentialStoreError:
            self.push_screen(InfoScreen("Error", "No se pudo guardar la API Key"))
            return
        self.notify("API Key guardada correctamente", title="Éxito")
        await self.refresh_view()

    async def action_quit(self) -> None:
        await self.session.aclose()
        self.exit()
