from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Mapping

from roster_node.entities.player import PlayerRecord, Snapshot
from roster_node.interfaces.player_repository import PlayerRepository
from roster_node.merge.engine import merge_fields


class InMemoryPlayerRepository(PlayerRepository):
    """Process-local store used by tests and `STORE_BACKEND=memory`.

    Writers for the same id serialize on a per-id lock; records are frozen
    and swapped whole, so readers never see a half-merged record.
    """

    def __init__(self):
        self._records: dict[str, PlayerRecord] = {}
        self._snapshots: dict[str, list[Snapshot]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._seq = itertools.count(1)

    def _lock_for(self, player_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(player_id, threading.Lock())

    def get_by_id(self, player_id: str) -> PlayerRecord | None:
        return self._records.get(player_id)

    def upsert_current(
        self, player_id: str, safe_fields: Mapping[str, Any], now: datetime,
    ) -> PlayerRecord:
        with self._lock_for(player_id):
            merged = merge_fields(self._records.get(player_id), player_id, safe_fields, now)
            self._records[player_id] = merged
            return merged

    def append_snapshot(
        self, player_id: str, source: str, data: Mapping[str, Any], time: datetime,
    ) -> Snapshot:
        with self._lock_for(player_id):
            snapshot = Snapshot(
                player_id=player_id, source=source, time=time,
                data=dict(data), seq=next(self._seq),
            )
            self._snapshots.setdefault(player_id, []).append(snapshot)
            return snapshot

    def list_snapshots(self, player_id: str) -> list[Snapshot]:
        snapshots = list(self._snapshots.get(player_id, ()))
        return sorted(snapshots, key=lambda s: (s.time, s.seq))

    def list_all(self) -> list[PlayerRecord]:
        return sorted(self._records.values(), key=lambda r: r.updated_at, reverse=True)

    def count(self) -> int:
        return len(self._records)

    def latest_updated_at(self) -> datetime | None:
        return max((r.updated_at for r in list(self._records.values())), default=None)


class MemoryStore:
    """Lifecycle wrapper matching `DatabaseStore` for the in-memory backend."""

    def __init__(self, repository: InMemoryPlayerRepository | None = None):
        self.repository = repository or InMemoryPlayerRepository()

    @contextmanager
    def session(self) -> Iterator[PlayerRepository]:
        yield self.repository

    def close(self) -> None:
        pass
