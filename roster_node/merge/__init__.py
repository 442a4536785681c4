"""Field filtering, normalization and merge policy for player records."""
from roster_node.merge.engine import merge_fields
from roster_node.merge.fields import (
    ALL_FIELDS,
    NUMERIC_FIELDS,
    TEXT_FIELDS,
    canonical_field_name,
    is_numeric,
    wire_name,
)
from roster_node.merge.normalize import normalize_number, normalize_text, normalize_value
from roster_node.merge.whitelist import (
    KNOWN_SOURCES,
    SOURCE_WHITELIST,
    allowed_fields,
    dropped_fields,
    filter_fields,
    normalize_source,
)

__all__ = [
    "ALL_FIELDS",
    "KNOWN_SOURCES",
    "NUMERIC_FIELDS",
    "SOURCE_WHITELIST",
    "TEXT_FIELDS",
    "allowed_fields",
    "canonical_field_name",
    "dropped_fields",
    "filter_fields",
    "is_numeric",
    "merge_fields",
    "normalize_number",
    "normalize_source",
    "normalize_text",
    "normalize_value",
    "wire_name",
]
