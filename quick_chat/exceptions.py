"""Domain exception hierarchy for the quick chat application."""

from __future__ import annotations

NO_CREDENTIAL_MESSAGE = "Please configure your API key in settings"
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait a moment and try again."
NETWORK_ERROR_MESSAGE = "Network error. Please check your internet connection."
INVALID_RESPONSE_MESSAGE = "Received invalid response from AI. Please try again."


class QuickChatError(RuntimeError):
    """Base class for all domain-level chat errors."""


class MessageValidationError(QuickChatError):
    """Raised when a user message is empty or too long to send."""


class CompletionError(QuickChatError):
    """Base class for failures of a single completion exchange.

    ``kind`` is a stable identifier for the failure class; ``str(exc)`` is the
    user-readable description shown in the conversation.
    """

    kind = "unknown"


class NoCredentialError(CompletionError):
    """Raised when no API credential is configured or it was rejected."""

    kind = "no_credential"

    def __init__(self, message: str = NO_CREDENTIAL_MESSAGE) -> None:
        super().__init__(message)


class RateLimitedError(CompletionError):
    """Raised when the upstream service throttles requests."""

    kind = "rate_limited"

    def __init__(self, message: str = RATE_LIMIT_MESSAGE) -> None:
        super().__init__(message)


class CompletionNetworkError(CompletionError):
    """Raised when the upstream service cannot be reached."""

    kind = "network"

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE) -> None:
        super().__init__(message)


class InvalidResponseError(CompletionError):
    """Raised when the response is malformed or carries no text."""

    kind = "invalid_response"

    def __init__(self, message: str = INVALID_RESPONSE_MESSAGE) -> None:
        super().__init__(message)


class UnknownCompletionError(CompletionError):
    """Raised for failures that match no known pattern."""

    kind = "unknown"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Error: {detail}")


class PersistenceError(QuickChatError):
    """Raised when the local store cannot be read or written."""


class ConfigValidationError(QuickChatError):
    """Raised when configuration cannot be validated safely."""


class UIBindingError(QuickChatError):
    """Raised at startup when required widgets are missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing UI bindings: {', '.join(self.missing)}")
