"""Widget exports for quick_chat UI."""

from .conversation import ConversationView
from .input_bar import InputBar
from .message import MessageBubble
from .waiting import WaitingIndicator

__all__ = ["ConversationView", "InputBar", "MessageBubble", "WaitingIndicator"]
