"""Modal screens: the API key dialog and one-shot alerts."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static


class InfoScreen(ModalScreen[None]):
    """Titled message with a single OK button."""

    BINDINGS = [
        Binding("escape", "close", "Cerrar", show=False),
        Binding("enter", "close", "Cerrar", show=False),
    ]

    DEFAULT_CSS = """
    InfoScreen {
        align: center middle;
    }
    InfoScreen > #alert {
        width: 60;
        height: auto;
        padding: 1 2;
        border: thick $error;
        background: $surface;
    }
    InfoScreen #alert-title {
        text-style: bold;
        margin-bottom: 1;
    }
    InfoScreen #alert-buttons {
        height: auto;
        align-horizontal: right;
        margin-top: 1;
    }
    """

    def __init__(self, title: str, text: str) -> None:
        super().__init__()
        self.alert_title = title
        self.alert_text = text

    def compose(self) -> ComposeResult:
        with Vertical(id="alert"):
            yield Label(self.alert_title, id="alert-title", markup=False)
            yield Static(self.alert_text, id="alert-body", markup=False)
            with Horizontal(id="alert-buttons"):
                yield Button("OK", id="alert-ok", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.action_close()

    def action_close(self) -> None:
        self.dismiss(None)


class ApiKeyScreen(ModalScreen[str | None]):
    """Ask for the API key; dismisses with the entered text, or ``None`` on cancel."""

    BINDINGS = [Binding("escape", "cancel", "Cancelar", show=False)]

    DEFAULT_CSS = """
    ApiKeyScreen {
        align: center middle;
    }
    ApiKeyScreen > #settings {
        width: 64;
        height: auto;
        padding: 1 2;
        border: thick $primary;
        background: $surface;
    }
    ApiKeyScreen #settings-title {
        text-style: bold;
        margin-bottom: 1;
    }
    ApiKeyScreen #api-key-input {
        margin: 1 0;
    }
    ApiKeyScreen #settings-buttons {
        height: auto;
        align-horizontal: right;
    }
    ApiKeyScreen #settings-buttons Button {
        margin-left: 1;
    }
    """

    def __init__(self, current_value: str = "") -> None:
        super().__init__()
        self.current_value = current_value

    def compose(self) -> ComposeResult:
        with Vertical(id="settings"):
            yield Label("Configuración", id="settings-title")
            yield Label("API Key de OpenAI:")
            yield Input(
                value=self.current_value,
                placeholder="sk-...",
                password=True,
                id="api-key-input",
            )
            with Horizontal(id="settings-buttons"):
                yield Button("Cancelar", id="settings-cancel")
                yield Button("Guardar", id="settings-save", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#api-key-input", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "settings-save":
            self.action_save()
        else:
            self.action_cancel()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.action_save()

    def action_save(self) -> None:
        self.dismiss(self.query_one("#api-key-input", Input).value)

    def action_cancel(self) -> None:
        self.dismiss(None)
