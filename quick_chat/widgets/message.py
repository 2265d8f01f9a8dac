"""Message bubble widget for conversation rendering."""

from __future__ import annotations

from typing import Any

from rich.markdown import Markdown
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Static

from ..models import Message, Role


class MessageBubble(Vertical):
    """Render a single chat message with role and optional timestamp."""

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
    }
    MessageBubble > #header-block {
        padding: 0;
        color: $text-muted;
    }
    MessageBubble > #content-block {
        height: auto;
    }
    """

    def __init__(self, message: Message, timestamp: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.message = message
        self.timestamp = timestamp
        self.add_class(f"role-{message.role.value}")

    @property
    def role_prefix(self) -> str:
        """Return a human-friendly role label."""
        return "You" if self.message.role is Role.USER else "Assistant"

    def _compose_header(self) -> str:
        if self.timestamp:
            return f"**{self.role_prefix}**  _{self.timestamp}_"
        return f"**{self.role_prefix}**"

    def compose(self) -> ComposeResult:
        yield Static(Markdown(self._compose_header()), id="header-block")
        text = self.message.content.rstrip()
        yield Static(Markdown(text) if text else "", id="content-block")
