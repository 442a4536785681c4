from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping

from roster_node.entities.player import PlayerRecord


def merge_fields(
    current: PlayerRecord | None,
    player_id: str,
    safe_fields: Mapping[str, Any],
    now: datetime,
) -> PlayerRecord:
    """Apply an already-filtered field set to the current record.

    Keys absent from `safe_fields` keep their value and observation time.
    Each supplied key is stamped as observed at `now`. A `now` older than
    the last merge is raised to it, so `updated_at` never moves backwards.
    """
    if current is None:
        current = PlayerRecord(id=player_id, created_at=now, updated_at=now)
    elif now < current.updated_at:
        now = current.updated_at

    observed_at = dict(current.observed_at)
    for name in safe_fields:
        observed_at[name] = now

    return replace(current, **dict(safe_fields), observed_at=observed_at, updated_at=now)
