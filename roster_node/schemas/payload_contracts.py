from __future__ import annotations

from datetime import datetime
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from roster_node.entities.player import (
    BulkUpsertResult,
    FieldView,
    PlayerRecord,
    Snapshot,
    UpsertResult,
)
from roster_node.merge.fields import ALL_FIELDS, canonical_field_name, wire_name
from roster_node.services.views import time_ago

# Collectors post scraped cell text ("1,234,567", "???") or already-parsed numbers.
RawValue = Union[int, float, str, None]


class PlayerFieldsPatch(BaseModel):
    """Typed patch of player fields. Unknown keys are rejected (422)."""

    name: RawValue = None
    alliance: RawValue = None
    army: RawValue = None
    race: RawValue = None
    rank: RawValue = None

    tiv: RawValue = None

    strike_action: RawValue = None
    defensive_action: RawValue = None
    spy_rating: RawValue = None
    sentry_rating: RawValue = None
    poison_rating: RawValue = None
    antidote_rating: RawValue = None
    theft_rating: RawValue = None
    vigilance_rating: RawValue = None

    economy: RawValue = None
    xp_per_turn: RawValue = None
    turns_available: RawValue = None
    treasury: RawValue = None
    projected_income: RawValue = None

    covert_skill: RawValue = None
    sentry_skill: RawValue = None
    siege_technology: RawValue = None
    technology: RawValue = None
    experience: RawValue = None
    soldiers_per_turn: RawValue = None
    toxic_infusion_level: RawValue = None
    viperbane_level: RawValue = None
    shadowmeld_level: RawValue = None
    sentinel_vigil_level: RawValue = None

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    def field_updates(self) -> dict[str, Any]:
        """Only the player fields the caller actually sent, keyed by snake_case name."""
        return self.model_dump(include=set(ALL_FIELDS), exclude_unset=True)


class PlayerUpsertEnvelope(PlayerFieldsPatch):
    """`POST /players` body: `{id, source, ...fields}`."""

    id: Union[str, int, None] = None
    source: str | None = None


class BulkUpsertEnvelope(BaseModel):
    """`POST /players/bulk` body: `{source, players: {id: fields}}`."""

    source: str | None = None
    players: dict[str, PlayerFieldsPatch] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    def player_updates(self) -> dict[str, dict[str, Any]]:
        return {player_id: patch.field_updates() for player_id, patch in self.players.items()}


class TivEnvelope(BaseModel):
    """`POST /tiv` body sent by the attack and armory collectors."""

    player_id: Union[str, int, None] = None
    tiv: RawValue = None
    source: str = "attack"

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class AuthRequest(BaseModel):
    id: Union[str, int, None] = None
    name: str | None = None


class TokenResponse(BaseModel):
    token: str
    expires_at: datetime = Field(serialization_alias="expiresAt")


# ---------------------------------------------------------------------------
# Response shapes: camelCase, `<field>Time` beside each observed field
# ---------------------------------------------------------------------------


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def player_to_dict(record: PlayerRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {"id": record.id}
    for name in ALL_FIELDS:
        payload[wire_name(name)] = record.value_of(name)
        observed_at = record.observed_at.get(name)
        if observed_at is not None:
            payload[f"{wire_name(name)}Time"] = _iso(observed_at)
    payload["createdAt"] = _iso(record.created_at)
    payload["updatedAt"] = _iso(record.updated_at)
    return payload


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    return {
        "playerId": snapshot.player_id,
        "source": snapshot.source,
        "time": _iso(snapshot.time),
        "seq": snapshot.seq,
        "data": {wire_name(name): value for name, value in snapshot.data.items()},
    }


def upsert_result_to_dict(result: UpsertResult) -> dict[str, Any]:
    return {
        "player": player_to_dict(result.record) if result.record is not None else None,
        "acceptedFields": sorted(wire_name(name) for name in result.accepted_fields),
        "droppedFields": [_dropped_name(key) for key in result.dropped_fields],
        "snapshotRecorded": result.snapshot_recorded,
        "snapshotError": result.snapshot_error,
    }


def bulk_result_to_dict(result: BulkUpsertResult) -> dict[str, Any]:
    return {
        "added": result.added,
        "updated": result.updated,
        "total": result.total,
        "snapshotErrors": sum(1 for r in result.results.values() if r.partial),
    }


def field_view_to_dict(view: dict[str, FieldView], now: datetime) -> dict[str, Any]:
    return {
        wire_name(name): {
            "value": item.value,
            "observedAt": _iso(item.observed_at),
            "ago": time_ago(item.observed_at, now),
            "stale": item.stale,
        }
        for name, item in view.items()
    }


def _dropped_name(key: str) -> str:
    name = canonical_field_name(key)
    return wire_name(name) if name is not None else key
