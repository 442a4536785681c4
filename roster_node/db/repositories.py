from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from roster_node.db.tables import PlayerRow, PlayerSnapshotRow
from roster_node.entities.player import PlayerRecord, Snapshot
from roster_node.errors import StoreError
from roster_node.interfaces.player_repository import PlayerRepository
from roster_node.merge.engine import merge_fields
from roster_node.merge.fields import ALL_FIELDS, NUMERIC_FIELDS

logger = logging.getLogger(__name__)


class DBPlayerRepository(PlayerRepository):
    def __init__(self, session: Session):
        self._session = session

    def get_by_id(self, player_id: str) -> PlayerRecord | None:
        try:
            row = self._session.get(PlayerRow, player_id)
        except SQLAlchemyError as exc:
            raise self._store_error("get player %s", player_id) from exc
        return self._row_to_domain(row) if row else None

    def upsert_current(
        self, player_id: str, safe_fields: Mapping[str, Any], now: datetime,
    ) -> PlayerRecord:
        try:
            return self._locked_merge(player_id, safe_fields, now)
        except IntegrityError:
            # Lost the race to insert the first row for this id; it exists now,
            # so the second attempt takes the row-lock path.
            self._session.rollback()
        except SQLAlchemyError as exc:
            raise self._store_error("upsert player %s", player_id) from exc

        try:
            return self._locked_merge(player_id, safe_fields, now)
        except SQLAlchemyError as exc:
            raise self._store_error("upsert player %s", player_id) from exc

    def _locked_merge(
        self, player_id: str, safe_fields: Mapping[str, Any], now: datetime,
    ) -> PlayerRecord:
        stmt = (
            select(PlayerRow)
            .where(PlayerRow.id == player_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        existing = self._session.exec(stmt).first()
        current = self._row_to_domain(existing) if existing is not None else None
        merged = merge_fields(current, player_id, safe_fields, now)

        row = self._domain_to_row(merged)
        if existing is None:
            self._session.add(row)
        else:
            for name in ALL_FIELDS:
                setattr(existing, name, getattr(row, name))
            existing.observed_at_jsonb = row.observed_at_jsonb
            existing.updated_at = row.updated_at

        self._session.commit()
        return merged

    def append_snapshot(
        self, player_id: str, source: str, data: Mapping[str, Any], time: datetime,
    ) -> Snapshot:
        row = PlayerSnapshotRow(
            player_id=player_id,
            source=source,
            recorded_at=_ensure_utc(time),
            data_jsonb=dict(data),
        )
        try:
            self._session.add(row)
            self._session.commit()
            self._session.refresh(row)
        except SQLAlchemyError as exc:
            raise self._store_error("append snapshot for player %s", player_id) from exc
        return self._snapshot_row_to_domain(row)

    def list_snapshots(self, player_id: str) -> list[Snapshot]:
        stmt = (
            select(PlayerSnapshotRow)
            .where(PlayerSnapshotRow.player_id == player_id)
            .order_by(PlayerSnapshotRow.recorded_at.asc(), PlayerSnapshotRow.id.asc())
        )
        try:
            rows = self._session.exec(stmt).all()
        except SQLAlchemyError as exc:
            raise self._store_error("list snapshots for player %s", player_id) from exc
        return [self._snapshot_row_to_domain(row) for row in rows]

    def list_all(self) -> list[PlayerRecord]:
        stmt = select(PlayerRow).order_by(PlayerRow.updated_at.desc())
        try:
            rows = self._session.exec(stmt).all()
        except SQLAlchemyError as exc:
            raise self._store_error("list players") from exc
        return [self._row_to_domain(row) for row in rows]

    def count(self) -> int:
        try:
            return self._session.exec(select(func.count()).select_from(PlayerRow)).one()
        except SQLAlchemyError as exc:
            raise self._store_error("count players") from exc

    def latest_updated_at(self) -> datetime | None:
        try:
            latest = self._session.exec(select(func.max(PlayerRow.updated_at))).one()
        except SQLAlchemyError as exc:
            raise self._store_error("latest player update") from exc
        return _ensure_utc(latest) if latest is not None else None

    def _store_error(self, message: str, *args: Any) -> StoreError:
        logger.exception("store failure: " + message, *args)
        self._session.rollback()
        return StoreError(message % args)

    @staticmethod
    def _row_to_domain(row: PlayerRow) -> PlayerRecord:
        values: dict[str, Any] = {}
        for name in ALL_FIELDS:
            value = getattr(row, name)
            if value is not None and name in NUMERIC_FIELDS:
                value = int(value)
            values[name] = value

        return PlayerRecord(
            id=row.id,
            **values,
            observed_at={
                name: _ensure_utc(datetime.fromisoformat(ts))
                for name, ts in (row.observed_at_jsonb or {}).items()
            },
            created_at=_ensure_utc(row.created_at),
            updated_at=_ensure_utc(row.updated_at),
        )

    @staticmethod
    def _domain_to_row(record: PlayerRecord) -> PlayerRow:
        values: dict[str, Any] = {}
        for name in ALL_FIELDS:
            value = getattr(record, name)
            if value is not None and name in NUMERIC_FIELDS:
                value = Decimal(value)
            values[name] = value

        return PlayerRow(
            id=record.id,
            **values,
            observed_at_jsonb={
                name: _ensure_utc(ts).isoformat() for name, ts in record.observed_at.items()
            },
            created_at=_ensure_utc(record.created_at),
            updated_at=_ensure_utc(record.updated_at),
        )

    @staticmethod
    def _snapshot_row_to_domain(row: PlayerSnapshotRow) -> Snapshot:
        return Snapshot(
            player_id=row.player_id,
            source=row.source,
            time=_ensure_utc(row.recorded_at),
            data=dict(row.data_jsonb or {}),
            seq=row.id,
        )


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
