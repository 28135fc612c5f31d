"""Read-model persistence backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

from whale_scout.persistence.file_backend import FilePersistenceBackend
from whale_scout.persistence.memory_backend import MemoryPersistenceBackend
from whale_scout.persistence.protocols import IPersistenceBackend
from whale_scout.persistence.wallet_store import WalletStore

if TYPE_CHECKING:
    from whale_scout.core.config import PersistenceConfig

__all__ = [
    "FilePersistenceBackend",
    "IPersistenceBackend",
    "MemoryPersistenceBackend",
    "WalletStore",
    "create_backend",
]


def create_backend(config: PersistenceConfig) -> IPersistenceBackend:
    if config.backend == "memory":
        return MemoryPersistenceBackend()
    return FilePersistenceBackend(config.store_path)
