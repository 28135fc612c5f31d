"""Key/value backend contract the read-model store writes through."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IPersistenceBackend(Protocol):
    """Stores serialized documents by key (JSON files, memory, ...)."""

    def save(self, key: str, data: str) -> None:
        """Replace the document under ``key``."""
        ...

    def load(self, key: str) -> str:
        """Return the document under ``key``. Raises KeyError if missing."""
        ...

    def exists(self, key: str) -> bool: ...

    def delete(self, key: str) -> None:
        """Remove ``key``; no-op if missing."""
        ...
