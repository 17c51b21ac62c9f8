"""Persisted player preferences.

Small typed key-value store for the flags the auth service keeps between
runs (remember-me, auth type, custom id). ``JsonFilePreferences`` survives
process restarts; ``MemoryPreferences`` does not.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


class PreferenceStore(ABC):
    """Typed get/set access over a flat key-value mapping.

    Subclasses provide raw storage; typed accessors and defaults live here.
    """

    @abstractmethod
    def _read(self, key: str) -> Optional[Any]:
        """Return the raw stored value or None when absent."""
        pass

    @abstractmethod
    def _write(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete_key(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""
        pass

    def save(self) -> None:
        """Flush pending writes. Stores that write through need not override."""

    def has_key(self, key: str) -> bool:
        return self._read(key) is not None

    def get_int(self, key: str, default: int = 0) -> int:
        value = self._read(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Preference {key} is not an int, using default")
            return default

    def set_int(self, key: str, value: int) -> None:
        self._write(key, int(value))

    def get_string(self, key: str, default: str = "") -> str:
        value = self._read(key)
        return default if value is None else str(value)

    def set_string(self, key: str, value: str) -> None:
        self._write(key, str(value))

    def get_bool(self, key: str, default: bool = False) -> bool:
        return self.get_int(key, 1 if default else 0) != 0

    def set_bool(self, key: str, value: bool) -> None:
        self.set_int(key, 1 if value else 0)


class MemoryPreferences(PreferenceStore):
    """In-process store, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})

    def _read(self, key: str) -> Optional[Any]:
        return self._values.get(key)

    def _write(self, key: str, value: Any) -> None:
        self._values[key] = value

    def delete_key(self, key: str) -> None:
        self._values.pop(key, None)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)


class JsonFilePreferences(MemoryPreferences):
    """JSON-file backed store, written through on every mutation."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {exc}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring preferences file {self.path}: not a JSON object")
            return {}
        return data

    def _write(self, key: str, value: Any) -> None:
        super()._write(key, value)
        self.save()

    def delete_key(self, key: str) -> None:
        super().delete_key(key)
        self.save()

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps(self._values, indent=2, sort_keys=True), encoding="utf-8"
        )
        tmp_path.replace(self.path)
