"""Persistent per-user UI preferences (view mode, sort order)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryPreferenceStore:
    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values = dict(values or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFilePreferenceStore:
    """Preferences kept in a small JSON object on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")


class SafePreferences:
    """Wraps a store so that read/write failures fall back to in-memory values."""

    def __init__(self, store: PreferenceStore | None = None) -> None:
        self.store = store
        self._fallback: dict[str, str] = {}

    def get(self, key: str, default: str) -> str:
        if key in self._fallback:
            return self._fallback[key]
        if self.store is None:
            return default
        try:
            value = self.store.get(key)
        except (OSError, ValueError) as e:
            logger.debug("Preference read failed for %s: %s", key, e)
            return default
        return value if value is not None else default

    def set(self, key: str, value: str) -> None:
        self._fallback[key] = value
        if self.store is None:
            return
        try:
            self.store.set(key, value)
        except (OSError, ValueError) as e:
            logger.debug("Preference write failed for %s: %s", key, e)
