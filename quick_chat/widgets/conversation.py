"""Scrollable conversation view widget."""

from __future__ import annotations

from textual.containers import VerticalScroll

from ..models import Message
from .message import MessageBubble


class ConversationView(VerticalScroll):
    """A scrollable container that hosts message bubbles."""

    def add_message(self, message: Message, timestamp: str = "") -> MessageBubble:
        """Create, mount, and scroll to a new message bubble."""
        bubble = MessageBubble(message=message, timestamp=timestamp)
        bubble.add_class(f"message-{message.role.value}")
        self.mount(bubble)
        self.scroll_end(animate=False)
        return bubble

    @property
    def bubbles(self) -> list[MessageBubble]:
        return list(self.query(MessageBubble))

    def clear(self) -> None:
        """Remove every rendered bubble."""
        self.remove_children()
