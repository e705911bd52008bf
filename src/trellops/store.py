"""Key/value persistence backends.

Values are JSON-serialisable. Keys are opaque to the backends; the
repositories in trellops.cache own key formatting.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path("~/.local/share/trellops/store.json")


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store, used by tests and one-shot commands."""

    def __init__(self, data: dict[str, Any] | None = None):
        self.data: dict[str, Any] = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore(MemoryStore):
    """Store backed by a single JSON file, rewritten on every change.

    A missing file starts empty. An unreadable file is logged and
    treated as empty rather than blocking the dashboard.
    """

    def __init__(self, path: str | Path = DEFAULT_STORE_PATH):
        self.path = Path(path).expanduser()
        super().__init__(self._read())

    def _read(self) -> dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("ignoring corrupt store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("ignoring store %s: top level is not an object", self.path)
            return {}
        return data

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def set(self, key: str, value: Any) -> None:
        super().set(key, value)
        self._write()

    def delete(self, key: str) -> None:
        if key not in self.data:
            return
        super().delete(key)
        self._write()
