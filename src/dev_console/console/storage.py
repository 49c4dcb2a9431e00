"""
Persistent key-value stores used for console state that survives restarts.

Values are plain strings, mirroring the browser storage the console was
designed around. `JsonFileStore` keeps everything in one JSON object on disk.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Opaque get/set/remove service."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...

    def clear(self) -> None: ...


class MemoryStore:
    """In-process store; contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)

    def clear(self) -> None:
        self._data.clear()


class JsonFileStore(MemoryStore):
    """Store backed by a JSON file, written through on every change."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(self._load())

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed store {self.path}")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._data, indent=2, sort_keys=True))
        except OSError as e:
            logger.error(f"Failed to write store {self.path}: {e}")

    def set(self, key: str, value: str) -> None:
        super().set(key, value)
        self._save()

    def remove(self, key: str) -> None:
        if key in self._data:
            super().remove(key)
            self._save()

    def clear(self) -> None:
        super().clear()
        self._save()
