"""Startup binding of the widgets the app drives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from textual.css.query import NoMatches, WrongType
from textual.dom import DOMNode
from textual.widget import Widget
from textual.widgets import Button, Input, Select

from .exceptions import UIBindingError
from .widgets.conversation import ConversationView
from .widgets.waiting import WaitingIndicator


@dataclass(frozen=True)
class BindingSpec:
    """Where to find one required widget and what type it must be."""

    name: str
    selector: str
    widget_type: type[Widget]


REQUIRED_BINDINGS: tuple[BindingSpec, ...] = (
    BindingSpec("input", "#chat_input", Input),
    BindingSpec("send_button", "#send_button", Button),
    BindingSpec("clear_button", "#clear_button", Button),
    BindingSpec("settings_button", "#settings_button", Button),
    BindingSpec("model_select", "#model_select", Select),
    BindingSpec("waiting", "#waiting_indicator", WaitingIndicator),
    BindingSpec("conversation", "#conversation", ConversationView),
)


def resolve_bindings(
    root: DOMNode, specs: tuple[BindingSpec, ...] = REQUIRED_BINDINGS
) -> dict[str, Any]:
    """Query every binding once; raise ``UIBindingError`` naming all failures."""
    resolved: dict[str, Any] = {}
    missing: list[str] = []
    for spec in specs:
        try:
            resolved[spec.name] = root.query_one(spec.selector, spec.widget_type)
        except (NoMatches, WrongType):
            missing.append(f"{spec.name} ({spec.selector})")
    if missing:
        raise UIBindingError(missing)
    return resolved


@dataclass(frozen=True)
class QuickChatWidgets:
    """Typed references to the widgets the app updates."""

    input: Input
    send_button: Button
    clear_button: Button
    settings_button: Button
    model_select: Select[str]
    waiting: WaitingIndicator
    conversation: ConversationView

    @classmethod
    def bind(cls, root: DOMNode) -> QuickChatWidgets:
        return cls(**resolve_bindings(root))
