"""Named key-value settings backends for the persistent state store."""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class SettingsBackend(ABC):
    """Abstract key-value store holding JSON-compatible values."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get the value stored under ``key``."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` durably."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if it existed."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List stored keys."""
        pass


class MemorySettingsBackend(SettingsBackend):
    """Process-local backend, used for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._values: dict[str, Any] = json.loads(json.dumps(initial or {}))

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            return default
        # Copy so callers cannot mutate stored state without set()
        return json.loads(json.dumps(self._values[key]))

    def set(self, key: str, value: Any) -> None:
        self._values[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> bool:
        if key not in self._values:
            return False
        del self._values[key]
        return True

    def keys(self) -> list[str]:
        return list(self._values)


class JsonFileSettingsBackend(SettingsBackend):
    """Settings persisted to a single JSON document.

    The whole document is loaded once and rewritten on every change via a
    temp file and ``os.replace``. In-memory values change only after the
    file has been replaced.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self._values: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {self.path}: not a JSON object")
            return {}
        return data

    def _save(self, values: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(values, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            return default
        return json.loads(json.dumps(self._values[key]))

    def set(self, key: str, value: Any) -> None:
        values = {**self._values, key: json.loads(json.dumps(value))}
        self._save(values)
        self._values = values

    def delete(self, key: str) -> bool:
        if key not in self._values:
            return False
        values = {k: v for k, v in self._values.items() if k != key}
        self._save(values)
        self._values = values
        return True

    def keys(self) -> list[str]:
        return list(self._values)

    def reload(self) -> None:
        """Re-read the file, discarding in-memory state."""
        self._values = self._load()
