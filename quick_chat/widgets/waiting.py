"""Waiting indicator shown while a completion is outstanding."""

from __future__ import annotations

from textual.widgets import Static


class WaitingIndicator(Static):
    """One-line status that is hidden while the session is idle."""

    DEFAULT_CSS = """
    WaitingIndicator {
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }
    WaitingIndicator.hidden {
        display: none;
    }
    """

    def __init__(self, text: str = "Thinking...", **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(text, classes="hidden", **kwargs)
        self.waiting = False

    def set_waiting(self, waiting: bool) -> None:
        self.waiting = waiting
        self.set_class(not waiting, "hidden")
