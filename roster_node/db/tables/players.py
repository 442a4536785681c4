"""Current player records and their append-only snapshot history."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Column, DateTime, Index, Numeric
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from roster_node.entities.player import utc_now


def _big_int() -> Any:
    # NUMERIC(40, 0): game values overflow BIGINT on long-running accounts.
    return Field(default=None, sa_column=Column(Numeric(40, 0), nullable=True))


def _timestamp(index: bool = False) -> Any:
    return Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=index),
    )


class PlayerRow(SQLModel, table=True):
    __tablename__ = "players"

    id: str = Field(primary_key=True)

    name: Optional[str] = Field(default=None, index=True)
    alliance: Optional[str] = Field(default=None, index=True)
    army: Optional[str] = None
    race: Optional[str] = None
    rank: Optional[str] = None

    tiv: Optional[int] = _big_int()

    strike_action: Optional[int] = _big_int()
    defensive_action: Optional[int] = _big_int()
    spy_rating: Optional[int] = _big_int()
    sentry_rating: Optional[int] = _big_int()
    poison_rating: Optional[int] = _big_int()
    antidote_rating: Optional[int] = _big_int()
    theft_rating: Optional[int] = _big_int()
    vigilance_rating: Optional[int] = _big_int()

    economy: Optional[int] = _big_int()
    xp_per_turn: Optional[int] = _big_int()
    turns_available: Optional[int] = _big_int()
    treasury: Optional[int] = _big_int()
    projected_income: Optional[int] = _big_int()

    covert_skill: Optional[int] = _big_int()
    sentry_skill: Optional[int] = _big_int()
    siege_technology: Optional[int] = _big_int()
    technology: Optional[int] = _big_int()
    experience: Optional[int] = _big_int()
    soldiers_per_turn: Optional[int] = _big_int()
    toxic_infusion_level: Optional[int] = _big_int()
    viperbane_level: Optional[int] = _big_int()
    shadowmeld_level: Optional[int] = _big_int()
    sentinel_vigil_level: Optional[int] = _big_int()

    observed_at_jsonb: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSONB),
    )

    created_at: datetime = _timestamp()
    updated_at: datetime = _timestamp(index=True)


class PlayerSnapshotRow(SQLModel, table=True):
    __tablename__ = "player_snapshots"

    # autoincrement id doubles as the insertion sequence
    id: Optional[int] = Field(default=None, primary_key=True)
    player_id: str = Field(index=True)
    source: str = Field(index=True)
    recorded_at: datetime = _timestamp()

    data_jsonb: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSONB),
    )

    __table_args__ = (
        Index("ix_player_snapshots_player_recorded", "player_id", "recorded_at", "id"),
    )
