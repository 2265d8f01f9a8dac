"""Gemini completion client with bounded exponential-backoff retries."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
import httpx

from .exceptions import (
    CompletionError,
    CompletionNetworkError,
    InvalidResponseError,
    MessageValidationError,
    NoCredentialError,
    RateLimitedError,
    UnknownCompletionError,
)
from .settings import Settings

LOGGER = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRY_BASE_DELAY_SECONDS = 1.0
MAX_MESSAGE_LENGTH = 10_000

ClientFactory = Callable[[str], Any]
SleepFunc = Callable[[float], Awaitable[None]]

_NETWORK_EXCEPTIONS: tuple[type[BaseException], ...] = (
    httpx.TransportError,
    TimeoutError,
    ConnectionError,
)


def _default_client_factory(api_key: str) -> Any:
    return genai.Client(api_key=api_key)


def validate_message(message: str) -> str:
    """Return the trimmed message or raise ``MessageValidationError``."""
    normalized = message.strip()
    if not normalized:
        raise MessageValidationError("Message cannot be empty")
    if len(normalized) > MAX_MESSAGE_LENGTH:
        raise MessageValidationError(
            f"Message is too long ({len(normalized)} characters, "
            f"max {MAX_MESSAGE_LENGTH})."
        )
    return normalized


def classify_error(exc: BaseException) -> CompletionError:
    """Map a terminal request failure onto the completion error taxonomy."""
    if isinstance(exc, CompletionError):
        return exc

    detail = str(exc) or exc.__class__.__name__
    lower_message = detail.lower()

    if isinstance(exc, genai_errors.APIError) and getattr(exc, "code", None) == 429:
        return RateLimitedError()
    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
        return RateLimitedError()

    if "api key" in lower_message or "api_key" in lower_message:
        return NoCredentialError()
    if (
        "rate limit" in lower_message
        or "429" in lower_message
        or "resource_exhausted" in lower_message
        or "resource exhausted" in lower_message
    ):
        return RateLimitedError()
    if isinstance(exc, _NETWORK_EXCEPTIONS) or any(
        marker in lower_message for marker in ("network", "enotfound", "timeout")
    ):
        return CompletionNetworkError()
    if "invalid" in lower_message or "malformed" in lower_message:
        return InvalidResponseError()
    return UnknownCompletionError(detail)


def extract_text(response: Any) -> str:
    """Pull the generated text out of a ``generate_content`` response."""
    if response is None:
        return ""
    if isinstance(response, dict):
        value = response.get("text")
        return value if isinstance(value, str) else ""

    candidates = getattr(response, "candidates", None)
    if candidates:
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        texts = [part.text for part in parts if getattr(part, "text", None)]
        if texts:
            return "".join(texts)

    try:
        value = response.text
    except (ValueError, AttributeError):
        return ""
    return value if isinstance(value, str) else ""


class CompletionClient:
    """Send one prompt to the hosted model and return its text answer.

    Every failed attempt is retried up to ``max_attempts`` times, sleeping
    ``base_delay * 2**attempt`` seconds in between. The terminal failure is
    classified into a :class:`CompletionError` subclass.
    """

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY_SECONDS,
        sleep: SleepFunc | None = None,
    ) -> None:
        self._client_factory = client_factory or _default_client_factory
        self.max_attempts = max(1, max_attempts)
        self.base_delay = max(0.0, base_delay)
        self._sleep = sleep or asyncio.sleep
        self._client: Any | None = None
        self._client_credential = ""

    def _client_for(self, credential: str) -> Any:
        if self._client is None or credential != self._client_credential:
            self._client = self._client_factory(credential)
            self._client_credential = credential
            LOGGER.info("completion.client.ready", extra={"event": "completion.client.ready"})
        return self._client

    def reset(self) -> None:
        """Drop the cached SDK client so the next call rebuilds it."""
        self._client = None
        self._client_credential = ""

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retrying after the zero-based ``attempt`` failed."""
        return self.base_delay * (2**attempt)

    async def _request_once(self, prompt: str, settings: Settings) -> str:
        client = self._client_for(settings.credential)
        response = await client.aio.models.generate_content(
            model=settings.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=settings.temperature,
                max_output_tokens=settings.max_output_tokens,
            ),
        )
        text = extract_text(response)
        if not text.strip():
            raise InvalidResponseError()
        return text

    async def send(self, message: str, settings: Settings) -> str:
        """Send ``message`` and return the non-empty response text."""
        prompt = validate_message(message)
        if not settings.has_credential:
            raise NoCredentialError()

        for attempt in range(self.max_attempts):
            try:
                text = await self._request_once(prompt, settings)
            except asyncio.CancelledError:
                LOGGER.info(
                    "completion.request.cancelled",
                    extra={"event": "completion.request.cancelled"},
                )
                raise
            except Exception as exc:  # noqa: BLE001 - external API can fail in many ways.
                mapped_exc = classify_error(exc)
                LOGGER.warning(
                    "completion.request.retry",
                    extra={
                        "event": "completion.request.retry",
                        "attempt": attempt + 1,
                        "max_attempts": self.max_attempts,
                        "error_type": mapped_exc.__class__.__name__,
                    },
                )
                if attempt >= self.max_attempts - 1:
                    if mapped_exc is exc:
                        raise
                    raise mapped_exc from exc
                await self._sleep(self.backoff_delay(attempt))
            else:
                LOGGER.info(
                    "completion.request.complete",
                    extra={
                        "event": "completion.request.complete",
                        "attempt": attempt + 1,
                        "model": settings.model,
                    },
                )
                return text

        raise UnknownCompletionError("retry budget exhausted")
