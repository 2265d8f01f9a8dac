"""Tests for structured logging behavior."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from types import SimpleNamespace
import unittest

import structlog

from quick_chat.completion import CompletionClient
from quick_chat.logging_utils import (
    REDACTED,
    SecretRedactionFilter,
    _build_formatter,
    configure_logging,
    redact_secrets,
)
from quick_chat.settings import Settings


class _FlakyModels:
    def __init__(self) -> None:
        self.calls = 0

    async def generate_content(self, **_kwargs: object) -> SimpleNamespace:
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("temporary failure")
        return SimpleNamespace(text="ok", candidates=None)


def _record(name: str = "quick_chat.test", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="state transition",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class LoggingTests(unittest.IsolatedAsyncioTestCase):
    """Validate log format and required retry event emission."""

    async def test_completion_retry_log_event_emitted(self) -> None:
        models = _FlakyModels()

        async def _no_sleep(_delay: float) -> None:
            return None

        client = CompletionClient(
            client_factory=lambda _key: SimpleNamespace(aio=SimpleNamespace(models=models)),
            sleep=_no_sleep,
        )
        with self.assertLogs("quick_chat.completion", level="WARNING") as logs:
            reply = await client.send("hello", Settings(credential="k"))

        self.assertEqual(reply, "ok")
        self.assertTrue(any("completion.request.retry" in line for line in logs.output))

    async def test_structured_formatter_includes_extra_fields(self) -> None:
        formatter = _build_formatter(structured=True)
        record = _record(
            event="session.state.transition",
            to_state="AWAITING_RESPONSE",
            credential="AIza-secret",
        )

        data = json.loads(formatter.format(record))
        self.assertEqual(data["event"], "session.state.transition")
        self.assertEqual(data["to_state"], "AWAITING_RESPONSE")
        self.assertEqual(data["credential"], REDACTED)
        self.assertEqual(data["level"], "info")
        self.assertEqual(data["logger"], "quick_chat.test")


class RedactionTests(unittest.TestCase):
    def test_processor_masks_sensitive_keys(self) -> None:
        event = redact_secrets(None, "info", {"event": "x", "api_key": "k", "model": "m"})
        self.assertEqual(event["api_key"], REDACTED)
        self.assertEqual(event["model"], "m")

    def test_filter_masks_record_attributes(self) -> None:
        record = _record(credential="secret", token="")
        self.assertTrue(SecretRedactionFilter().filter(record))
        self.assertEqual(record.credential, REDACTED)  # type: ignore[attr-defined]
        self.assertEqual(record.token, "")  # type: ignore[attr-defined]


class ConfigureLoggingTests(unittest.TestCase):
    """Validate configure_logging() handler setup behavior."""

    def setUp(self) -> None:
        # Preserve root logger state so tests do not pollute each other.
        root = logging.getLogger()
        self._original_level = root.level
        self._original_handlers = list(root.handlers)

    def tearDown(self) -> None:
        root = logging.getLogger()
        for handler in root.handlers:
            if handler not in self._original_handlers:
                handler.close()
        root.setLevel(self._original_level)
        root.handlers.clear()
        root.handlers.extend(self._original_handlers)
        structlog.reset_defaults()

    def _stream_handlers(self) -> list[logging.Handler]:
        return [
            h
            for h in logging.getLogger().handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]

    def test_structured_uses_processor_formatter(self) -> None:
        configure_logging({"level": "DEBUG", "structured": True, "log_to_file": False})
        formatters = [h.formatter for h in logging.getLogger().handlers]
        self.assertTrue(
            any(isinstance(f, structlog.stdlib.ProcessorFormatter) for f in formatters)
        )

    def test_plain_formatter_when_not_structured(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        formatters = [h.formatter for h in logging.getLogger().handlers]
        self.assertFalse(
            any(isinstance(f, structlog.stdlib.ProcessorFormatter) for f in formatters)
        )

    def test_sets_root_level(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        self.assertEqual(logging.getLogger().level, logging.DEBUG)

    def test_noisy_loggers_set_to_warning(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        for name in ("httpx", "httpcore", "google_genai"):
            self.assertEqual(logging.getLogger(name).level, logging.WARNING)

    def test_file_handler_created(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_path = Path(tmp) / "logs" / "test.log"
            configure_logging(
                {
                    "level": "DEBUG",
                    "structured": False,
                    "log_to_file": True,
                    "log_file_path": str(log_path),
                }
            )
            file_handlers = [
                h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
            ]
            self.assertEqual(len(file_handlers), 1)
            self.assertTrue(log_path.exists())
            for handler in file_handlers:
                logging.getLogger().removeHandler(handler)
                handler.close()

    def test_stderr_handler_filters_to_quick_chat(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        handlers = self._stream_handlers()
        self.assertEqual(len(handlers), 1)
        handler = handlers[0]
        self.assertGreaterEqual(handler.level, logging.WARNING)
        self.assertTrue(handler.filter(_record(name="quick_chat.app")))
        self.assertFalse(handler.filter(_record(name="httpx")))


if __name__ == "__main__":
    unittest.main()
