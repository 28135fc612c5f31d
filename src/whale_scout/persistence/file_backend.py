"""JSON documents on the local filesystem."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from whale_scout.exceptions import PersistenceError

log = logging.getLogger(__name__)


class FilePersistenceBackend:
    """One ``<key>.json`` file per key under ``base_path``.

    Writes go to a temp file first and are moved into place, so a crash
    mid-write never leaves a truncated read model behind.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        try:
            self._base.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot create store directory {self._base}: {exc}") from exc

    def _key_path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._base / f"{safe_key}.json"

    def save(self, key: str, data: str) -> None:
        path = self._key_path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(data, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise PersistenceError(f"Failed to write {path}: {exc}") from exc
        log.debug("Saved %s to %s", key, path)

    def load(self, key: str) -> str:
        path = self._key_path(key)
        if not path.is_file():
            raise KeyError(key)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Failed to read {path}: {exc}") from exc

    def exists(self, key: str) -> bool:
        return self._key_path(key).is_file()

    def delete(self, key: str) -> None:
        self._key_path(key).unlink(missing_ok=True)
