"""Main Textual application for the quick chat overlay."""

from __future__ import annotations

import asyncio
from datetime import datetime
import logging
from pathlib import Path
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Button, Footer, Header, Input, Select

from .completion import CompletionClient
from .config import load_config
from .exceptions import UIBindingError
from .formatter import MessageFormatter
from .logging_utils import configure_logging
from .models import Message
from .persistence import ChatPersistence, normalize_export_format
from .screens import ExportFormatScreen, SettingsScreen
from .session import NotificationKind, SessionController
from .settings import Settings
from .task_manager import TaskManager
from .ui_bindings import QuickChatWidgets
from .widgets.conversation import ConversationView
from .widgets.input_bar import InputBar
from .widgets.waiting import WaitingIndicator

LOGGER = logging.getLogger(__name__)

_SEVERITY: dict[str, str] = {
    "info": "information",
    "success": "information",
    "warning": "warning",
    "error": "error",
}

_TEXTUAL_THEMES: dict[str, str] = {
    "dark": "textual-dark",
    "light": "textual-light",
}

_EXPORT_SUFFIXES: dict[str, str] = {
    "json": "json",
    "text": "txt",
    "markdown": "md",
}


class QuickChatApp(App[None]):
    """Single-conversation chat window backed by the Gemini API."""

    CSS = """
    Screen {
        layout: vertical;
        background: $background;
    }

    #app-root {
        layout: vertical;
        width: 100%;
        height: 1fr;
        background: $background;
    }

    Header {
        border-bottom: solid $panel;
        background: $surface;
    }

    Footer {
        border-top: solid $panel;
        background: $surface;
    }

    #conversation {
        height: 1fr;
        padding: 1;
    }

    InputBar {
        height: auto;
        padding: 0 1 1 1;
        border-top: solid $panel;
        background: $surface;
    }

    #chat_input {
        width: 1fr;
    }

    #model_select {
        width: 28;
        margin-left: 1;
    }

    #send_button, #clear_button {
        margin-left: 1;
        min-width: 8;
    }

    #settings_button {
        margin-left: 1;
        min-width: 5;
    }

    MessageBubble {
        width: 85%;
        margin: 1 0;
        padding: 1 2;
        border: round $panel;
    }

    .message-user {
        align-horizontal: right;
        background: $primary;
    }

    .message-assistant {
        align-horizontal: left;
        background: $surface;
    }
    """

    DEFAULT_ACTION_DESCRIPTIONS: dict[str, str] = {
        "clear_conversation": "Clear",
        "open_settings": "Settings",
        "export_conversation": "Export",
        "hide": "Hide",
    }

    def __init__(
        self,
        config_path: Path | None = None,
        client: CompletionClient | None = None,
    ) -> None:
        self.config = load_config(config_path)
        configure_logging(self.config["logging"])
        self.window_title = str(self.config["app"]["title"])

        completion_cfg = self.config["completion"]
        self.client = client or CompletionClient(
            max_attempts=int(completion_cfg["max_attempts"]),
            base_delay=float(completion_cfg["retry_base_delay_seconds"]),
        )
        self.storage_directory = Path(
            str(self.config["storage"]["directory"])
        ).expanduser()
        self.persistence = ChatPersistence.from_directory(self.storage_directory)
        self.controller = SessionController(
            presenter=self,
            client=self.client,
            persistence=self.persistence,
            formatter=MessageFormatter(),
        )
        self._task_manager = TaskManager()
        self._widgets: QuickChatWidgets | None = None
        self._binding_specs = self._binding_specs_from_config(self.config)
        super().__init__()

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

    @property
    def bound_widgets(self) -> QuickChatWidgets:
        if self._widgets is None:
            raise UIBindingError(["widgets are not mounted yet"])
        return self._widgets

    @property
    def show_timestamps(self) -> bool:
        return bool(self.config["ui"]["show_timestamps"])

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="app-root"):
            yield ConversationView(id="conversation")
            yield WaitingIndicator(id="waiting_indicator")
            yield InputBar(id="input_bar")
        yield Footer()

    async def on_mount(self) -> None:
        """Bind widgets and keys, then restore the persisted session."""
        self.title = self.window_title
        try:
            self._widgets = QuickChatWidgets.bind(self)
        except UIBindingError as exc:
            LOGGER.error(
                "app.bindings.missing",
                extra={"event": "app.bindings.missing", "missing": exc.missing},
            )
            raise
        for binding in self._binding_specs:
            self.bind(
                binding.key,
                binding.action,
                description=binding.description,
                show=binding.show,
            )

        self.controller.start()
        self.bound_widgets.model_select.value = self.controller.settings.model
        self.sub_title = f"Model: {self.controller.settings.model}"
        self.bound_widgets.input.focus()

    async def on_unmount(self) -> None:
        """Cancel outstanding requests during shutdown."""
        await self._task_manager.cancel_all()

    # Presenter

    def render_message(self, message: Message, html: str) -> None:
        """Mount a bubble rendering ``message.content`` as Rich markdown.

        ``html`` is unused here since a terminal cannot display it.
        """
        timestamp = ""
        if self.show_timestamps:
            timestamp = MessageFormatter.format_timestamp(message.created_at)
        self.bound_widgets.conversation.add_message(message, timestamp=timestamp)

    def set_waiting(self, waiting: bool) -> None:
        self.bound_widgets.waiting.set_waiting(waiting)
        self.bound_widgets.send_button.disabled = waiting

    def show_notification(self, text: str, kind: NotificationKind) -> None:
        self.notify(
            text,
            severity=_SEVERITY.get(kind, "information"),  # type: ignore[arg-type]
            timeout=float(self.config["ui"]["notification_seconds"]),
        )

    def clear_messages(self) -> None:
        self.bound_widgets.conversation.clear()

    def request_settings(self) -> None:
        if isinstance(self.screen, SettingsScreen):
            return
        self.push_screen(
            SettingsScreen(self.controller.settings),
            callback=self._on_settings_dismissed,
        )

    def apply_theme(self, theme: str) -> None:
        self.theme = _TEXTUAL_THEMES.get(theme, _TEXTUAL_THEMES["dark"])

    # Events

    def _submit_input(self) -> asyncio.Task[Any] | None:
        input_widget = self.bound_widgets.input
        text = input_widget.value
        if self.controller.is_waiting:
            return None
        if text.strip() and self.controller.settings.has_credential:
            input_widget.value = ""
        return self._task_manager.spawn(self.controller.on_submit(text))

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "chat_input":
            self._submit_input()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send_button":
            self._submit_input()

    async def on_input_bar_clear_requested(self, _event: InputBar.ClearRequested) -> None:
        await self.action_clear_conversation()

    def on_input_bar_settings_requested(
        self, _event: InputBar.SettingsRequested
    ) -> None:
        self.action_open_settings()

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id != "model_select":
            return
        value = event.value
        if not isinstance(value, str) or value == self.controller.settings.model:
            return
        if self.controller.on_model_change(value):
            self.sub_title = f"Model: {value}"

    def _on_settings_dismissed(self, settings: Settings | None) -> None:
        if settings is None:
            return
        if self.controller.on_settings_save(settings):
            self.bound_widgets.model_select.value = settings.model
            self.sub_title = f"Model: {settings.model}"

    def _on_export_format_selected(self, fmt: str | None) -> None:
        if fmt is None:
            return
        self.export_to_file(fmt)

    def export_to_file(self, fmt: str) -> Path | None:
        """Write the current conversation under ``<storage>/exports``."""
        content = self.controller.on_export_request(fmt)
        if content is None:
            return None
        normalized = normalize_export_format(fmt) or fmt
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        target = (
            self.storage_directory
            / "exports"
            / f"quick-chat-{stamp}.{_EXPORT_SUFFIXES.get(normalized, 'txt')}"
        )
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            LOGGER.warning(
                "app.export.failed",
                extra={"event": "app.export.failed", "path": str(target), "error": str(exc)},
            )
            self.show_notification("Failed to export conversation.", "error")
            return None
        LOGGER.info(
            "app.export.written",
            extra={"event": "app.export.written", "path": str(target), "format": normalized},
        )
        self.show_notification(f"Conversation exported: {target}", "success")
        return target

    # Actions

    async def action_clear_conversation(self) -> None:
        await self.controller.on_clear()
        self.bound_widgets.input.focus()

    def action_open_settings(self) -> None:
        self.request_settings()

    def action_export_conversation(self) -> None:
        self.push_screen(ExportFormatScreen(), callback=self._on_export_format_selected)

    def action_hide(self) -> None:
        self.exit()
