"""Top-level package for quick-chat-tui."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import QuickChatApp
    from .completion import CompletionClient
    from .config import ensure_config_dir, load_config
    from .exceptions import (
        CompletionError,
        ConfigValidationError,
        MessageValidationError,
        PersistenceError,
        QuickChatError,
        UIBindingError,
    )
    from .formatter import MessageFormatter
    from .models import Message, Role
    from .persistence import ChatPersistence
    from .session import SessionController
    from .settings import Settings
    from .state import SessionState, StateManager

__all__ = [
    "ChatPersistence",
    "CompletionClient",
    "CompletionError",
    "ConfigValidationError",
    "Message",
    "MessageFormatter",
    "MessageValidationError",
    "PersistenceError",
    "QuickChatApp",
    "QuickChatError",
    "Role",
    "SessionController",
    "SessionState",
    "Settings",
    "StateManager",
    "UIBindingError",
    "ensure_config_dir",
    "load_config",
]

_EXCEPTION_NAMES = {
    "CompletionError",
    "ConfigValidationError",
    "MessageValidationError",
    "PersistenceError",
    "QuickChatError",
    "UIBindingError",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols to keep UI dependencies optional at import time."""
    if name in {"ensure_config_dir", "load_config"}:
        from . import config

        return getattr(config, name)
    if name in _EXCEPTION_NAMES:
        from . import exceptions

        return getattr(exceptions, name)
    if name in {"Message", "Role"}:
        from . import models

        return getattr(models, name)
    if name in {"SessionState", "StateManager"}:
        from . import state

        return getattr(state, name)
    if name == "Settings":
        from .settings import Settings

        return Settings
    if name == "MessageFormatter":
        from .formatter import MessageFormatter

        return MessageFormatter
    if name == "ChatPersistence":
        from .persistence import ChatPersistence

        return ChatPersistence
    if name == "CompletionClient":
        from .completion import CompletionClient

        return CompletionClient
    if name == "SessionController":
        from .session import SessionController

        return SessionController
    if name == "QuickChatApp":
        from .app import QuickChatApp

        return QuickChatApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
