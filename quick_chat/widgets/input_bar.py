"""Input row with the prompt field, model picker and action buttons."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.message import Message
from textual.widgets import Button, Input, Select

from ..settings import DEFAULT_MODEL, SUPPORTED_MODELS


class InputBar(Horizontal):
    """Prompt input plus send, clear and settings buttons."""

    class ClearRequested(Message):
        """Posted when the user clicks the clear button."""

    class SettingsRequested(Message):
        """Posted when the user clicks the settings button."""

    def __init__(self, model: str = DEFAULT_MODEL, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self._model = model

    def compose(self) -> ComposeResult:
        yield Input(placeholder="Ask anything...", id="chat_input")
        yield Select(
            [(option.label, option.value) for option in SUPPORTED_MODELS],
            value=self._model,
            allow_blank=False,
            id="model_select",
        )
        yield Button("Send", id="send_button", variant="success")
        yield Button("Clear", id="clear_button", variant="default")
        yield Button("⚙", id="settings_button", variant="default")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Forward clear/settings clicks as messages; send bubbles up unchanged."""
        if event.button.id == "clear_button":
            event.stop()
            self.post_message(self.ClearRequested())
        elif event.button.id == "settings_button":
            event.stop()
            self.post_message(self.SettingsRequested())
