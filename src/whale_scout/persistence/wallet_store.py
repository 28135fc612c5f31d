"""Published read model: the tracked whale set as one JSON document."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from pydantic import BaseModel, Field, ValidationError

from whale_scout.models import WhaleWallet
from whale_scout.persistence.protocols import IPersistenceBackend

log = logging.getLogger(__name__)


class WhalePayload(BaseModel):
    """On-disk shape of the read model."""

    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    total_whales: int = 0
    whales: list[WhaleWallet] = Field(default_factory=list)


class WalletStore:
    """``IReadModelStore`` over any ``IPersistenceBackend``.

    Before each publish the current document is copied to ``<key>_backup``.
    """

    def __init__(self, backend: IPersistenceBackend, key: str = "whales") -> None:
        self._backend = backend
        self._key = key
        self._backup_key = f"{key}_backup"
        self._last_updated: datetime | None = None

    @property
    def last_updated(self) -> datetime | None:
        return self._last_updated

    def publish(self, wallets: Sequence[WhaleWallet]) -> None:
        payload = WhalePayload(total_whales=len(wallets), whales=list(wallets))
        if self._backend.exists(self._key):
            self._backend.save(self._backup_key, self._backend.load(self._key))
        self._backend.save(self._key, payload.model_dump_json(indent=2))
        self._last_updated = payload.last_updated
        log.info("Published %d whales", payload.total_whales)

    def load(self) -> list[WhaleWallet]:
        """Last published wallets; ``[]`` when nothing usable is stored."""
        try:
            raw = self._backend.load(self._key)
        except KeyError:
            return []
        try:
            payload = WhalePayload.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            log.warning("Stored read model %s is unreadable, ignoring: %s", self._key, exc)
            return []
        self._last_updated = payload.last_updated
        return payload.whales
