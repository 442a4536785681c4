from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PlayerRecord:
    """Current best-known state for one player id.

    `observed_at` maps a field name to the time that field was last actually
    observed by a collector, as opposed to carried forward from an older merge.
    """
    id: str

    # display strings
    name: str | None = None
    alliance: str | None = None
    army: str | None = None
    race: str | None = None
    rank: str | None = None

    # total invested value
    tiv: int | None = None

    # military effectiveness
    strike_action: int | None = None
    defensive_action: int | None = None
    spy_rating: int | None = None
    sentry_rating: int | None = None
    poison_rating: int | None = None
    antidote_rating: int | None = None
    theft_rating: int | None = None
    vigilance_rating: int | None = None

    # economy and turns
    economy: int | None = None
    xp_per_turn: int | None = None
    turns_available: int | None = None
    treasury: int | None = None
    projected_income: int | None = None

    # recon-only skills and upgrades
    covert_skill: int | None = None
    sentry_skill: int | None = None
    siege_technology: int | None = None
    technology: int | None = None
    experience: int | None = None
    soldiers_per_turn: int | None = None
    toxic_infusion_level: int | None = None
    viperbane_level: int | None = None
    shadowmeld_level: int | None = None
    sentinel_vigil_level: int | None = None

    observed_at: dict[str, datetime] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def value_of(self, field_name: str) -> Any:
        return getattr(self, field_name)


@dataclass(frozen=True)
class Snapshot:
    """One immutable, source-tagged contribution to a player's history."""
    player_id: str
    source: str
    time: datetime
    data: dict[str, Any] = field(default_factory=dict)
    seq: int | None = None  # store insertion order, breaks ties on `time`


@dataclass
class UpsertResult:
    """Outcome of one collector call.

    `snapshot_error` set means partial success: the current record was
    merged but the history entry could not be appended. `record` is None
    only when an unknown source named an id that has no record.
    """
    record: PlayerRecord | None
    accepted_fields: dict[str, Any] = field(default_factory=dict)
    dropped_fields: list[str] = field(default_factory=list)
    snapshot: Snapshot | None = None
    snapshot_error: str | None = None

    @property
    def snapshot_recorded(self) -> bool:
        return self.snapshot is not None

    @property
    def partial(self) -> bool:
        return self.snapshot_error is not None


@dataclass
class BulkUpsertResult:
    added: int = 0
    updated: int = 0
    total: int = 0
    results: dict[str, UpsertResult] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldView:
    """Presentation view of one field: value plus staleness."""
    value: Any
    observed_at: datetime | None
    stale: bool
