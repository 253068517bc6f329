"""
GymPro Session Storage

Small key/value store standing in for the browser's local storage. Holds
exactly two things: the bearer token and the serialized identity of the
signed-in user. Business data is never written here.

Backed by a JSON file so a session survives a restart of the terminal.
With path=None the store lives in memory only (tests, one-shot scripts).

Usage:
    from core.storage import SessionStorage

    store = SessionStorage("data/session.json")
    store.set_item("gympro_token", "eyJ...")
    token = store.get_item("gympro_token")
    store.remove_item("gympro_token")
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger("gympro.storage")


# ---------------------------------------------------------------------------
# SessionStorage
# ---------------------------------------------------------------------------

class SessionStorage:
    """JSON-backed string key/value store.

    The file is written atomically (write to temp, then rename) so a
    crash mid-write never leaves a half-written token behind.

    Args:
        path: JSON file location, or None for an in-memory store.
    """

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path) if path is not None else None
        self._items: dict[str, str] = {}
        self._load()

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------

    def _load(self):
        """Read the file if present. A corrupt file means a signed-out start."""
        if self._path is None or not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to read session storage (%s), starting signed out", e)
            return
        if isinstance(data, dict):
            self._items = {str(k): str(v) for k, v in data.items()}
        else:
            logger.warning("Session storage has unexpected format, starting signed out")

    def _save(self):
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(self._items, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as e:
            logger.error("Failed to save session storage: %s", e)

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str):
        self._items[key] = value
        self._save()

    def remove_item(self, key: str):
        if self._items.pop(key, None) is not None:
            self._save()

    def clear(self):
        self._items.clear()
        self._save()

    def __contains__(self, key: str) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)
