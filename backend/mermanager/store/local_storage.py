"""
Durable keyed records on the local filesystem.

Each key is one JSON-encoded file under a directory, the same shape a
browser's localStorage gives a web client. Writes from this process are
seen immediately; writes from other processes are picked up by poll(),
which fires the change listeners for every key whose content changed.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()
logger = logging.getLogger(__name__)

LOCAL_STORAGE_DIR = os.getenv("LOCAL_STORAGE_DIR", ".mermanager")

USER_KEY = "mermanager_user"
ITEMS_KEY = "mermanager_items"
NOTIFY_KEY = "mermanager_db_update"


class LocalStorage:
    def __init__(self, directory: str = LOCAL_STORAGE_DIR):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._listeners: List[Callable[[str], None]] = []
        self._seen: Dict[str, Optional[str]] = {}

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        try:
            value = self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            value = None
        self._seen[key] = value
        return value

    def set_item(self, key: str, value: str) -> None:
        # Write to a sibling temp file then swap, so readers never see half a record
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.")
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(value)
        os.replace(tmp_name, self._path(key))
        self._seen[key] = value

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        self._seen[key] = None

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_item(key)
        if raw is None:
            return default
        return json.loads(raw)

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value, ensure_ascii=False))

    def add_listener(self, listener: Callable[[str], None]) -> Callable[[], None]:
        """Register a listener for changes made by other processes."""
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def poll(self) -> List[str]:
        """
        Check watched keys for changes written by someone else.

        Returns the keys that changed and notifies listeners once per key.
        """
        changed = []
        for key, last in list(self._seen.items()):
            try:
                current = self._path(key).read_text(encoding="utf-8")
            except FileNotFoundError:
                current = None
            if current != last:
                self._seen[key] = current
                changed.append(key)

        for key in changed:
            logger.debug("External change detected for %s", key)
            for listener in list(self._listeners):
                listener(key)
        return changed
