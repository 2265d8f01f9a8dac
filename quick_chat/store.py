"""Embedded JSON key/value store backing the persistence adapter."""

from __future__ import annotations

import json
import os
from pathlib import Path
import re
from typing import Any

from .exceptions import PersistenceError

_KEY_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")


class KeyValueStore:
    """Store one JSON document per key inside a private directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory).expanduser()

    def _enforce_permissions(self, path: Path, mode: int = 0o600) -> None:
        """Set POSIX permissions on a file or directory; silently ignores failures."""
        if os.name != "posix":
            return
        try:
            path.chmod(mode)
        except OSError:
            pass

    def _ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._enforce_permissions(self.directory, 0o700)

    def path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise PersistenceError(f"Invalid store key {key!r}.")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Any | None:
        """Return the decoded value for ``key`` or ``None`` when absent."""
        target = self.path_for(key)
        if not target.exists():
            return None
        try:
            return json.loads(target.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Unable to read {key!r}: {exc}") from exc

    def set(self, key: str, value: Any) -> None:
        """Write ``value`` for ``key`` atomically."""
        target = self.path_for(key)
        try:
            self._ensure_directory()
            payload = json.dumps(value, ensure_ascii=False, indent=2, sort_keys=True)
            temp_path = target.with_name(f".{target.name}.tmp")
            temp_path.write_text(payload, encoding="utf-8")
            self._enforce_permissions(temp_path)
            os.replace(temp_path, target)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Unable to write {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""
        target = self.path_for(key)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Unable to delete {key!r}: {exc}") from exc
