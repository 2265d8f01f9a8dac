"""Modal screens for settings and export format selection."""

from __future__ import annotations

from pydantic import ValidationError
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, OptionList, Select, Static, Switch

from .persistence import EXPORT_FORMATS
from .settings import SUPPORTED_MODELS, Settings


class SettingsScreen(ModalScreen[Settings | None]):
    """Edit the API key, model, sampling options, theme and auto-save."""

    CSS = """
    SettingsScreen {
        align: center middle;
    }

    #settings-dialog {
        width: 64;
        height: auto;
        padding: 1 2;
        border: round $panel;
        background: $surface;
    }

    #settings-title {
        padding-bottom: 1;
        text-style: bold;
    }

    .settings-row {
        height: auto;
        margin-bottom: 1;
    }

    #settings-api-key {
        width: 1fr;
    }

    #settings-message {
        height: auto;
    }

    #settings-message.error {
        color: $error;
    }

    #settings-actions {
        height: 3;
        align: right middle;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Close", show=False)]

    def __init__(self, settings: Settings) -> None:
        super().__init__()
        self._settings = settings

    def compose(self) -> ComposeResult:
        with Container(id="settings-dialog"):
            yield Static("Settings", id="settings-title")
            yield Label("Gemini API Key")
            with Horizontal(classes="settings-row"):
                yield Input(
                    value=self._settings.credential,
                    placeholder="Enter your API key",
                    password=True,
                    id="settings-api-key",
                )
                yield Button("Show", id="toggle-api-key")
            yield Label("Model")
            yield Select(
                [(f"{o.label} - {o.description}", o.value) for o in SUPPORTED_MODELS],
                value=self._settings.model,
                allow_blank=False,
                id="settings-model",
                classes="settings-row",
            )
            yield Label("Temperature (0-1)")
            yield Input(
                value=str(self._settings.temperature),
                id="settings-temperature",
                classes="settings-row",
            )
            yield Label("Max output tokens")
            yield Input(
                value=str(self._settings.max_output_tokens),
                id="settings-max-tokens",
                classes="settings-row",
            )
            yield Label("Theme")
            yield Select(
                [("Dark", "dark"), ("Light", "light")],
                value=self._settings.theme,
                allow_blank=False,
                id="settings-theme",
                classes="settings-row",
            )
            with Horizontal(classes="settings-row"):
                yield Label("Save conversation automatically ")
                yield Switch(value=self._settings.auto_persist, id="settings-auto-persist")
            yield Static("", id="settings-message")
            with Horizontal(id="settings-actions"):
                yield Button("Cancel", id="settings-cancel")
                yield Button("Save", id="settings-save", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#settings-api-key", Input).focus()

    def build_settings(self) -> Settings:
        """Read the form into a validated ``Settings``; raise ``ValueError`` otherwise."""
        credential = self.query_one("#settings-api-key", Input).value.strip()
        if not credential:
            raise ValueError("Please enter your API key")
        try:
            temperature = float(self.query_one("#settings-temperature", Input).value)
            max_tokens = int(self.query_one("#settings-max-tokens", Input).value)
        except ValueError as exc:
            raise ValueError("Temperature and max tokens must be numbers.") from exc
        try:
            return Settings(
                credential=credential,
                model=self.query_one("#settings-model", Select).value,
                temperature=temperature,
                max_output_tokens=max_tokens,
                theme=self.query_one("#settings-theme", Select).value,
                auto_persist=self.query_one("#settings-auto-persist", Switch).value,
            )
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise ValueError(f"Invalid {field}: {first.get('msg', 'invalid value')}") from exc

    def _show_error(self, text: str) -> None:
        message = self.query_one("#settings-message", Static)
        message.update(text)
        message.add_class("error")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "toggle-api-key":
            event.stop()
            field = self.query_one("#settings-api-key", Input)
            field.password = not field.password
            event.button.label = "Show" if field.password else "Hide"
        elif button_id == "settings-save":
            event.stop()
            try:
                settings = self.build_settings()
            except ValueError as exc:
                self._show_error(str(exc))
                return
            self.dismiss(settings)
        elif button_id == "settings-cancel":
            event.stop()
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ExportFormatScreen(ModalScreen[str | None]):
    """Modal picker for the conversation export format."""

    CSS = """
    ExportFormatScreen {
        align: center middle;
    }

    #export-dialog {
        width: 40;
        max-height: 14;
        padding: 1 2;
        border: round $panel;
        background: $surface;
    }

    #export-title {
        padding-bottom: 1;
        text-style: bold;
    }

    #export-help {
        padding-top: 1;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Close", show=False)]

    def __init__(self, formats: tuple[str, ...] = EXPORT_FORMATS) -> None:
        super().__init__()
        self._formats = formats

    def compose(self) -> ComposeResult:
        with Container(id="export-dialog"):
            yield Static("Export conversation", id="export-title")
            yield OptionList(*self._formats, id="export-options")
            yield Static("Enter/click to export | Esc to cancel", id="export-help")

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        selected = event.option_index
        if 0 <= selected < len(self._formats):
            self.dismiss(self._formats[selected])

    def action_cancel(self) -> None:
        self.dismiss(None)
