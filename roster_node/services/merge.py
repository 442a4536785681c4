"""Field-merge upsert and snapshot history for player records."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Mapping

from roster_node.entities.player import (
    BulkUpsertResult,
    PlayerRecord,
    Snapshot,
    UpsertResult,
    utc_now,
)
from roster_node.errors import PlayerNotFound, StoreError, UnknownSourceError, ValidationError
from roster_node.interfaces.player_repository import PlayerRepository
from roster_node.merge.engine import merge_fields
from roster_node.merge.fields import canonical_field_name, is_numeric
from roster_node.merge.whitelist import allowed_fields, dropped_fields, filter_fields, normalize_source


class RecordMerger:
    """Maintains one current record per player plus an append-only history.

    Write path: whitelist filter -> atomic per-id merge in the store ->
    best-effort snapshot append. Read path: current record, re-filtered
    history, full listing and per-field leaderboards.
    """

    def __init__(
        self,
        repository: PlayerRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def upsert(
        self, player_id: str | None, source: str | None, fields: Mapping[str, Any],
    ) -> UpsertResult:
        player_id = _require_id(player_id)
        source_tag = normalize_source(source)
        try:
            allowed_fields(source_tag)
        except UnknownSourceError as exc:
            # Fail closed: an unidentified collector never creates or touches a record.
            self.logger.warning("%s: ignoring %d field(s) for player=%s", exc, len(fields), player_id)
            return UpsertResult(
                record=self.repository.get_by_id(player_id),
                dropped_fields=sorted(fields),
            )

        safe_fields = filter_fields(source_tag, fields)

        # StoreError on the current record propagates; no snapshot without it.
        record = self.repository.upsert_current(player_id, safe_fields, self.clock())
        result = UpsertResult(
            record=record,
            accepted_fields=dict(safe_fields),
            dropped_fields=dropped_fields(fields, safe_fields),
        )

        if not safe_fields:
            self.logger.debug("upsert player=%s source=%s contributed nothing", player_id, source_tag)
            return result

        try:
            # The merged record carries the time actually applied under the lock.
            result.snapshot = self.repository.append_snapshot(
                player_id, source_tag, safe_fields, record.updated_at,
            )
        except StoreError as exc:
            self.logger.warning(
                "snapshot append failed player=%s source=%s: %s", player_id, source_tag, exc,
            )
            result.snapshot_error = exc.detail

        self.logger.info(
            "upsert player=%s source=%s accepted=%d dropped=%d",
            player_id, source_tag, len(safe_fields), len(result.dropped_fields),
        )
        return result

    def get_current(self, player_id: str | None) -> PlayerRecord:
        player_id = _require_id(player_id)
        record = self.repository.get_by_id(player_id)
        if record is None:
            raise PlayerNotFound(player_id)
        return record

    def get_history(self, player_id: str | None) -> list[Snapshot]:
        """Snapshots in ascending time order, re-validated against the current whitelist."""
        player_id = _require_id(player_id)
        return [
            replace(snapshot, data=filter_fields(snapshot.source, snapshot.data))
            for snapshot in self.repository.list_snapshots(player_id)
        ]

    def list_all(self) -> list[PlayerRecord]:
        return self.repository.list_all()

    def count(self) -> int:
        return self.repository.count()

    def latest_updated_at(self) -> datetime | None:
        return self.repository.latest_updated_at()

    def upsert_many(
        self, source: str | None, players: Mapping[str, Mapping[str, Any]],
    ) -> BulkUpsertResult:
        """Merge a batch of `{id: fields}` from one collector, one id at a time.

        Each id goes through `upsert`, so whitelist, locking and snapshot
        rules are the same as for single writes.
        """
        bulk = BulkUpsertResult()
        try:
            allowed_fields(source)
        except UnknownSourceError as exc:
            self.logger.warning("%s: ignoring batch of %d player(s)", exc, len(players))
            bulk.total = self.repository.count()
            return bulk

        for player_id, fields in players.items():
            existed = self.repository.get_by_id(_require_id(player_id)) is not None
            result = self.upsert(player_id, source, fields)
            bulk.results[_require_id(player_id)] = result
            if existed:
                bulk.updated += 1
            else:
                bulk.added += 1
        bulk.total = self.repository.count()
        self.logger.info(
            "bulk upsert source=%s added=%d updated=%d total=%d",
            normalize_source(source), bulk.added, bulk.updated, bulk.total,
        )
        return bulk

    def get_latest_per_id(self, field_name: str = "tiv") -> list[PlayerRecord]:
        """Records holding a value for a numeric field, highest value first."""
        name = canonical_field_name(field_name)
        if name is None or not is_numeric(name):
            raise ValidationError(f"{field_name!r} is not a numeric player field")

        ranked = [r for r in self.repository.list_all() if r.value_of(name) is not None]
        ranked.sort(key=lambda r: r.value_of(name), reverse=True)
        return ranked

    def reconstruct_at(self, player_id: str | None, at: datetime) -> PlayerRecord | None:
        """Replay history up to `at`. None when nothing had been observed by then."""
        record: PlayerRecord | None = None
        for snapshot in self.get_history(player_id):
            if snapshot.time > at:
                break
            record = merge_fields(record, snapshot.player_id, snapshot.data, snapshot.time)
        return record


def _require_id(player_id: str | None) -> str:
    player_id = str(player_id).strip() if player_id is not None else ""
    if not player_id:
        raise ValidationError("Missing player id")
    return player_id
