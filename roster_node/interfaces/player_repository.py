from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Mapping

from roster_node.entities.player import PlayerRecord, Snapshot


class PlayerRepository(ABC):
    @abstractmethod
    def get_by_id(self, player_id: str) -> PlayerRecord | None:
        raise NotImplementedError

    @abstractmethod
    def upsert_current(
        self, player_id: str, safe_fields: Mapping[str, Any], now: datetime,
    ) -> PlayerRecord:
        """Merge `safe_fields` into the stored record atomically for `player_id`.

        Implementations run the read-modify-write under a per-id lock or row
        lock and raise `StoreError` when the write fails.
        """
        raise NotImplementedError

    @abstractmethod
    def append_snapshot(
        self, player_id: str, source: str, data: Mapping[str, Any], time: datetime,
    ) -> Snapshot:
        raise NotImplementedError

    @abstractmethod
    def list_snapshots(self, player_id: str) -> list[Snapshot]:
        """Snapshots for one player, ascending by time then insertion order."""
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[PlayerRecord]:
        """All current records, most recently updated first."""
        raise NotImplementedError

    @abstractmethod
    def count(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def latest_updated_at(self) -> datetime | None:
        """`updated_at` of the most recently merged record, None when empty."""
        raise NotImplementedError
