"""Dict-backed backend for tests and ``backend=memory`` deployments."""

from __future__ import annotations


class MemoryPersistenceBackend:
    """Keeps documents in process memory; lost on restart."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def save(self, key: str, data: str) -> None:
        self._store[key] = data

    def load(self, key: str) -> str:
        if key not in self._store:
            raise KeyError(key)
        return self._store[key]

    def exists(self, key: str) -> bool:
        return key in self._store

    def delete(self, key: str) -> None:
        self._store.pop(key, None)
