"""Field catalogue shared by the merge engine, the stores and the HTTP boundary.

Python code uses snake_case names; collectors send camelCase (`strikeAction`).
"""
from __future__ import annotations

from pydantic.alias_generators import to_camel

TEXT_FIELDS: tuple[str, ...] = ("name", "alliance", "army", "race", "rank")

MILITARY_RATINGS: tuple[str, ...] = (
    "strike_action",
    "defensive_action",
    "spy_rating",
    "sentry_rating",
    "poison_rating",
    "antidote_rating",
    "theft_rating",
    "vigilance_rating",
)

UPGRADE_LEVELS: tuple[str, ...] = (
    "toxic_infusion_level",
    "viperbane_level",
    "shadowmeld_level",
    "sentinel_vigil_level",
)

NUMERIC_FIELDS: tuple[str, ...] = (
    ("tiv",)
    + MILITARY_RATINGS
    + (
        "economy",
        "xp_per_turn",
        "turns_available",
        "treasury",
        "projected_income",
        "covert_skill",
        "sentry_skill",
        "siege_technology",
        "technology",
        "experience",
        "soldiers_per_turn",
    )
    + UPGRADE_LEVELS
)

ALL_FIELDS: tuple[str, ...] = TEXT_FIELDS + NUMERIC_FIELDS

WIRE_NAMES: dict[str, str] = {name: to_camel(name) for name in ALL_FIELDS}
_FROM_WIRE: dict[str, str] = {wire: name for name, wire in WIRE_NAMES.items()}


def canonical_field_name(key: str) -> str | None:
    """Map a snake_case or camelCase key to its catalogue name, or None if unknown."""
    if key in WIRE_NAMES:
        return key
    return _FROM_WIRE.get(key)


def wire_name(field_name: str) -> str:
    return WIRE_NAMES[field_name]


def is_numeric(field_name: str) -> bool:
    return field_name in NUMERIC_FIELDS
