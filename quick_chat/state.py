"""Session state machine and lock-protected transitions."""

from __future__ import annotations

import asyncio
from enum import Enum


class SessionState(str, Enum):
    """Finite state machine for one chat window session."""

    IDLE = "IDLE"
    AWAITING_RESPONSE = "AWAITING_RESPONSE"


class StateManager:
    """Manage state transitions with async lock semantics."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._state = SessionState.IDLE

    @property
    def current(self) -> SessionState:
        """Return the last committed state without waiting for the lock."""
        return self._state

    async def transition_to(self, new_state: SessionState) -> SessionState:
        """Transition to a new state and return it."""
        async with self._lock:
            self._state = new_state
            return self._state

    async def transition_if(
        self,
        expected_state: SessionState,
        new_state: SessionState,
    ) -> bool:
        """Transition only when current state matches expected state."""
        async with self._lock:
            if self._state != expected_state:
                return False
            self._state = new_state
            return True
