"""Settings and conversation persistence with save/load/export workflows."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
import json
import logging
from pathlib import Path
from typing import Any

from .exceptions import PersistenceError
from .models import Message, Role
from .obfuscation import deobfuscate, obfuscate
from .settings import DEFAULT_SETTINGS, Settings, coerce_settings
from .store import KeyValueStore

LOGGER = logging.getLogger(__name__)

SETTINGS_KEY = "quick-chat-settings"
CURRENT_CONVERSATION_KEY = "quick-chat-current"
CONVERSATION_HISTORY_KEY = "quick-chat-conversations"

MAX_ARCHIVED_CONVERSATIONS = 50

EXPORT_FORMATS = ("json", "text", "markdown")
_FORMAT_ALIASES = {"txt": "text", "md": "markdown"}

_OBFUSCATED_MARKER = "_obfuscated"


def _display_timestamp(moment: datetime) -> str:
    return moment.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def normalize_export_format(fmt: str) -> str | None:
    """Map a user-supplied export format to its canonical name, or ``None``."""
    candidate = fmt.strip().lower()
    candidate = _FORMAT_ALIASES.get(candidate, candidate)
    return candidate if candidate in EXPORT_FORMATS else None


def _decode_messages(payload: Any) -> list[Message]:
    if not isinstance(payload, list):
        return []
    messages: list[Message] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        try:
            messages.append(Message.from_dict(item))
        except ValueError:
            LOGGER.debug(
                "persistence.message.skipped",
                extra={"event": "persistence.message.skipped"},
            )
    return messages


class ChatPersistence:
    """Persist settings and the conversation log through a key/value store.

    Write operations report success as a boolean and read operations are
    total: every failure is logged and degrades to defaults or an empty log.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    @classmethod
    def from_directory(cls, directory: str | Path) -> ChatPersistence:
        return cls(KeyValueStore(directory))

    def _log_failure(self, event: str, exc: Exception) -> None:
        LOGGER.warning(event, extra={"event": event, "reason": str(exc)})

    def save_settings(self, settings: Settings) -> bool:
        """Persist settings with the credential obfuscated."""
        payload: dict[str, Any] = settings.model_dump()
        if settings.credential:
            payload["credential"] = obfuscate(settings.credential)
            payload[_OBFUSCATED_MARKER] = True
        try:
            self.store.set(SETTINGS_KEY, payload)
        except PersistenceError as exc:
            self._log_failure("persistence.settings.save_failed", exc)
            return False
        return True

    def load_settings(self) -> Settings:
        """Load settings, merging recoverable fields over the defaults."""
        try:
            payload = self.store.get(SETTINGS_KEY)
        except PersistenceError as exc:
            self._log_failure("persistence.settings.load_failed", exc)
            return DEFAULT_SETTINGS
        if not isinstance(payload, dict):
            return DEFAULT_SETTINGS

        raw = dict(payload)
        obfuscated = bool(raw.pop(_OBFUSCATED_MARKER, False))
        credential = raw.get("credential")
        if obfuscated and isinstance(credential, str):
            raw["credential"] = deobfuscate(credential)
        return coerce_settings(raw)

    def save_conversation(self, messages: Sequence[Message]) -> bool:
        """Persist the ordered conversation log."""
        try:
            self.store.set(
                CURRENT_CONVERSATION_KEY, [message.to_dict() for message in messages]
            )
        except PersistenceError as exc:
            self._log_failure("persistence.conversation.save_failed", exc)
            return False
        return True

    def load_conversation(self) -> list[Message]:
        """Load the persisted log; malformed data yields an empty list."""
        try:
            payload = self.store.get(CURRENT_CONVERSATION_KEY)
        except PersistenceError as exc:
            self._log_failure("persistence.conversation.load_failed", exc)
            return []
        return _decode_messages(payload)

    def clear_conversation(self) -> bool:
        """Remove the persisted conversation log."""
        try:
            self.store.delete(CURRENT_CONVERSATION_KEY)
        except PersistenceError as exc:
            self._log_failure("persistence.conversation.clear_failed", exc)
            return False
        return True

    def load_conversation_history(self) -> list[dict[str, Any]]:
        """Return archived conversations, oldest first.

        Each entry is ``{"archived_at": datetime, "messages": list[Message]}``.
        """
        try:
            payload = self.store.get(CONVERSATION_HISTORY_KEY)
        except PersistenceError as exc:
            self._log_failure("persistence.history.load_failed", exc)
            return []
        if not isinstance(payload, list):
            return []
        history: list[dict[str, Any]] = []
        for entry in payload:
            if not isinstance(entry, dict):
                continue
            try:
                archived_at = datetime.fromisoformat(str(entry.get("archived_at")))
            except ValueError:
                continue
            messages = _decode_messages(entry.get("messages"))
            if messages:
                history.append({"archived_at": archived_at, "messages": messages})
        return history

    def archive_conversation(self, messages: Sequence[Message]) -> bool:
        """Append a snapshot of ``messages`` to the bounded conversation history."""
        if not messages:
            return True
        try:
            payload = self.store.get(CONVERSATION_HISTORY_KEY)
        except PersistenceError as exc:
            self._log_failure("persistence.history.load_failed", exc)
            payload = None
        entries = [entry for entry in payload or [] if isinstance(entry, dict)]
        entries.append(
            {
                "archived_at": datetime.now(UTC).isoformat(),
                "messages": [message.to_dict() for message in messages],
            }
        )
        try:
            self.store.set(CONVERSATION_HISTORY_KEY, entries[-MAX_ARCHIVED_CONVERSATIONS:])
        except PersistenceError as exc:
            self._log_failure("persistence.history.save_failed", exc)
            return False
        return True

    def export_conversation(
        self,
        messages: Sequence[Message],
        fmt: str,
        exported_at: datetime | None = None,
    ) -> str | None:
        """Render ``messages`` as json, text or markdown; ``None`` when unsupported."""
        normalized = normalize_export_format(fmt)
        if normalized is None:
            LOGGER.warning(
                "persistence.export.unsupported",
                extra={"event": "persistence.export.unsupported", "format": fmt},
            )
            return None

        if normalized == "json":
            return json.dumps(
                [message.to_dict() for message in messages],
                ensure_ascii=False,
                indent=2,
            )

        if normalized == "text":
            return "\n".join(
                f"[{_display_timestamp(message.created_at)}] "
                f"{message.role.label}: {message.content}"
                for message in messages
            )

        moment = exported_at or datetime.now(UTC)
        lines = [
            "# Conversation Export",
            "",
            f"*Exported on {_display_timestamp(moment)}*",
            "",
            "---",
            "",
        ]
        for message in messages:
            role = "**You**" if message.role is Role.USER else "**AI Assistant**"
            lines.append(f"### {role} *({_display_timestamp(message.created_at)})*")
            lines.append("")
            lines.append(message.content)
            lines.append("")
            lines.append("---")
            lines.append("")
        return "\n".join(lines)
