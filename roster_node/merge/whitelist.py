"""Source whitelist: which fields each collector is trusted to supply.

The same table gates the write path (`filter_fields` before a merge) and the
read path (history entries are re-filtered when served).
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping

from roster_node.errors import UnknownSourceError
from roster_node.merge.fields import MILITARY_RATINGS, UPGRADE_LEVELS, canonical_field_name
from roster_node.merge.normalize import normalize_value

logger = logging.getLogger(__name__)

SOURCE_WHITELIST: Mapping[str, frozenset[str]] = MappingProxyType({
    # battlefield listing
    "bf": frozenset({"name", "alliance", "army", "race", "rank", "treasury"}),
    # attack page: only the TIV line is readable
    "attack": frozenset({"tiv"}),
    # own armory
    "armory": frozenset({"name", "tiv", *MILITARY_RATINGS}),
    # own base page
    "base": frozenset({
        "name", "projected_income", "treasury", "economy",
        "xp_per_turn", "turns_available", *MILITARY_RATINGS,
    }),
    # recon of another player
    "recon": frozenset({
        *MILITARY_RATINGS, *UPGRADE_LEVELS,
        "covert_skill", "sentry_skill", "siege_technology",
        "economy", "technology", "xp_per_turn", "soldiers_per_turn",
        "turns_available", "experience", "treasury", "projected_income", "tiv",
    }),
})

KNOWN_SOURCES: tuple[str, ...] = tuple(SOURCE_WHITELIST)


def normalize_source(source: str | None) -> str:
    return (source or "").strip().lower()


def allowed_fields(source: str | None) -> frozenset[str]:
    try:
        return SOURCE_WHITELIST[normalize_source(source)]
    except KeyError:
        raise UnknownSourceError(source) from None


def filter_fields(source: str | None, fields: Mapping[str, Any]) -> dict[str, Any]:
    """Return the normalized subset of `fields` that `source` may set.

    Keys may be snake_case or camelCase; the result is keyed by snake_case.
    An unknown source contributes nothing.
    """
    try:
        allowed = allowed_fields(source)
    except UnknownSourceError as exc:
        logger.warning("%s: dropping %d field(s)", exc, len(fields))
        return {}

    safe: dict[str, Any] = {}
    for key, raw in fields.items():
        name = canonical_field_name(key)
        if name is None or name not in allowed:
            continue
        value = normalize_value(name, raw)
        if value is None:
            continue
        safe[name] = value
    return safe


def dropped_fields(fields: Mapping[str, Any], safe_fields: Mapping[str, Any]) -> list[str]:
    """Incoming keys (as sent) that did not survive `filter_fields`."""
    return sorted(key for key in fields if canonical_field_name(key) not in safe_fields)
