from __future__ import annotations

from datetime import datetime, timedelta

from roster_node.entities.player import FieldView, PlayerRecord
from roster_node.merge.fields import ALL_FIELDS

STALE_AFTER = timedelta(hours=24)


def field_view(
    record: PlayerRecord,
    now: datetime,
    stale_after: timedelta = STALE_AFTER,
) -> dict[str, FieldView]:
    """Latest value per known field, flagged stale when older than `stale_after`.

    Presentation only; stored values are untouched. Fields never observed are
    omitted.
    """
    view: dict[str, FieldView] = {}
    for name in ALL_FIELDS:
        value = record.value_of(name)
        if value is None:
            continue
        observed_at = record.observed_at.get(name)
        stale = observed_at is None or now - observed_at > stale_after
        view[name] = FieldView(value=value, observed_at=observed_at, stale=stale)
    return view


def time_ago(when: datetime | None, now: datetime) -> str:
    """Compact relative age used by the dashboard (`42s ago`, `3h ago`)."""
    if when is None:
        return "—"
    seconds = max(0, int((now - when).total_seconds()))
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"
