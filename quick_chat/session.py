"""Session controller orchestrating input, completion, rendering and persistence."""

from __future__ import annotations

import asyncio
import logging
from typing import Literal, Protocol

from pydantic import ValidationError

from .completion import CompletionClient, validate_message
from .exceptions import (
    CompletionError,
    MessageValidationError,
    NoCredentialError,
)
from .formatter import MessageFormatter
from .models import Message
from .persistence import ChatPersistence
from .settings import DEFAULT_SETTINGS, Settings
from .state import SessionState, StateManager

LOGGER = logging.getLogger(__name__)

NotificationKind = Literal["info", "success", "warning", "error"]


class Presenter(Protocol):
    """UI side of the presentation boundary."""

    def render_message(self, message: Message, html: str) -> None:
        """Show ``message``; ``html`` is the sanitized formatter output.

        Front ends that cannot display HTML, such as the terminal app, may
        ignore ``html`` and render ``message.content`` themselves.
        """
        ...

    def set_waiting(self, waiting: bool) -> None: ...

    def show_notification(self, text: str, kind: NotificationKind) -> None: ...

    def clear_messages(self) -> None: ...

    def request_settings(self) -> None: ...

    def apply_theme(self, theme: str) -> None: ...


class SessionController:
    """Own the conversation log and drive one exchange at a time.

    The log is only mutated from this object's handlers. Each in-flight
    request is tagged with the generation counter current at submission; a
    clear bumps the counter so a late result is dropped instead of being
    appended to the fresh log.
    """

    def __init__(
        self,
        presenter: Presenter,
        client: CompletionClient,
        persistence: ChatPersistence,
        formatter: MessageFormatter | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.presenter = presenter
        self.client = client
        self.persistence = persistence
        self.formatter = formatter or MessageFormatter()
        self.settings = settings or DEFAULT_SETTINGS
        self.state = StateManager()
        self._messages: list[Message] = []
        self._generation = 0

    @property
    def messages(self) -> list[Message]:
        """Return a shallow copy of the conversation log."""
        return list(self._messages)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_waiting(self) -> bool:
        return self.state.current == SessionState.AWAITING_RESPONSE

    def start(self) -> None:
        """Load persisted settings and conversation and render them."""
        self.settings = self.persistence.load_settings()
        self.presenter.apply_theme(self.settings.theme)
        if self.settings.auto_persist:
            for message in self.persistence.load_conversation():
                self._messages.append(message)
                self._render(message)
        LOGGER.info(
            "session.started",
            extra={
                "event": "session.started",
                "model": self.settings.model,
                "restored_messages": len(self._messages),
            },
        )
        if not self.settings.has_credential:
            self.presenter.show_notification(str(NoCredentialError()), "warning")
            self.presenter.request_settings()

    def _render(self, message: Message) -> None:
        self.presenter.render_message(message, self.formatter.format(message.content))

    def _append(self, message: Message) -> None:
        self._messages.append(message)
        self._render(message)
        if self.settings.auto_persist:
            self.persistence.save_conversation(self._messages)

    async def _transition(self, new_state: SessionState) -> None:
        await self.state.transition_to(new_state)
        LOGGER.info(
            "session.state.transition",
            extra={"event": "session.state.transition", "to_state": new_state.value},
        )

    async def on_submit(self, text: str) -> Message | None:
        """Handle a user submission; return the assistant message appended, if any."""
        try:
            prompt = validate_message(text)
        except MessageValidationError as exc:
            self.presenter.show_notification(str(exc), "warning")
            return None

        if not self.settings.has_credential:
            LOGGER.info(
                "session.submit.no_credential",
                extra={"event": "session.submit.no_credential"},
            )
            self.presenter.show_notification(str(NoCredentialError()), "error")
            self.presenter.request_settings()
            return None

        if not await self.state.transition_if(
            SessionState.IDLE, SessionState.AWAITING_RESPONSE
        ):
            LOGGER.info(
                "session.submit.rejected",
                extra={"event": "session.submit.rejected", "reason": "awaiting_response"},
            )
            return None

        generation = self._generation
        LOGGER.info(
            "session.state.transition",
            extra={
                "event": "session.state.transition",
                "to_state": SessionState.AWAITING_RESPONSE.value,
                "generation": generation,
            },
        )
        self._append(Message.user(prompt))
        self.presenter.set_waiting(True)

        try:
            reply = await self.client.send(prompt, self.settings)
        except asyncio.CancelledError:
            if generation == self._generation:
                self.presenter.set_waiting(False)
                await self._transition(SessionState.IDLE)
            raise
        except CompletionError as exc:
            return await self._settle(generation, Message.assistant(str(exc)), exc)
        return await self._settle(generation, Message.assistant(reply))

    async def _settle(
        self,
        generation: int,
        message: Message,
        error: CompletionError | None = None,
    ) -> Message | None:
        if generation != self._generation:
            LOGGER.info(
                "session.response.stale",
                extra={
                    "event": "session.response.stale",
                    "generation": generation,
                    "current_generation": self._generation,
                },
            )
            return None

        self._append(message)
        self.presenter.set_waiting(False)
        if error is not None:
            LOGGER.warning(
                "session.response.failed",
                extra={"event": "session.response.failed", "error_type": error.kind},
            )
            self.presenter.show_notification(str(error), "error")
            if isinstance(error, NoCredentialError):
                self.presenter.request_settings()
        await self._transition(SessionState.IDLE)
        return message

    async def on_clear(self) -> None:
        """Empty the log in any state and return to ``IDLE``."""
        self._generation += 1
        if self.settings.auto_persist and self._messages:
            self.persistence.archive_conversation(self._messages)
        self._messages = []
        self.persistence.clear_conversation()
        self.presenter.clear_messages()
        self.presenter.set_waiting(False)
        await self._transition(SessionState.IDLE)

    def on_settings_save(self, settings: Settings) -> bool:
        """Apply and persist new settings; an API key is required."""
        if not settings.has_credential:
            self.presenter.show_notification("Please enter your API key", "error")
            return False
        self.settings = settings
        self.persistence.save_settings(settings)
        if settings.auto_persist:
            self.persistence.save_conversation(self._messages)
        self.presenter.apply_theme(settings.theme)
        self.presenter.show_notification("Settings saved successfully!", "success")
        LOGGER.info(
            "session.settings.saved",
            extra={"event": "session.settings.saved", "model": settings.model},
        )
        return True

    def on_model_change(self, model: str) -> bool:
        """Switch the active model and persist the selection."""
        try:
            updated = Settings.model_validate(
                {**self.settings.model_dump(), "model": model}
            )
        except ValidationError:
            self.presenter.show_notification(f"Unsupported model: {model}", "error")
            return False
        self.settings = updated
        self.persistence.save_settings(updated)
        LOGGER.info(
            "session.model.changed",
            extra={"event": "session.model.changed", "model": updated.model},
        )
        return True

    def on_export_request(self, fmt: str) -> str | None:
        """Export the current log; unsupported formats notify and return ``None``."""
        exported = self.persistence.export_conversation(self._messages, fmt)
        if exported is None:
            self.presenter.show_notification(f"Unsupported export format: {fmt}", "error")
        return exported
