"""
Key-Value Store - Local ephemeral state outside the durable backend.

Holds:
- The player identity cache (player_id, player_name, player_phone)
- Per (player, location) quiz cooldown deadlines and attempt counts

Two implementations:
- InMemoryKeyValueStore: tests and the development server
- JsonFileKeyValueStore: one JSON file on local disk, survives restarts
  of the CLI

Values are strings, the same shape a browser store would hold.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
import json
import logging

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """get / set / clear over string keys and values."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def clear(self, key: str) -> None:
        """Remove one key. Missing keys are ignored."""

    @abstractmethod
    def clear_all(self) -> None:
        ...


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self, key: str) -> None:
        self._data.pop(key, None)

    def clear_all(self) -> None:
        self._data.clear()

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """
    File-backed store.

    Usage:
        store = JsonFileKeyValueStore("~/.spookyhunt/state.json")
        store.set("player_id", "42")
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def clear(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear_all(self) -> None:
        self._save({})

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            # Corrupt local state: start clean rather than block the player
            logger.warning("Discarding unreadable state file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: dict[str, str]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        tmp.replace(self.path)


# =============================================================================
# Key layout
# =============================================================================

PLAYER_ID_KEY = "player_id"
PLAYER_NAME_KEY = "player_name"
PLAYER_PHONE_KEY = "player_phone"


def cooldown_key(player_id: str, location_id: str) -> str:
    return f"quiz_cooldown_{player_id}_{location_id}"


def attempts_key(player_id: str, location_id: str) -> str:
    return f"quiz_attempts_{player_id}_{location_id}"
