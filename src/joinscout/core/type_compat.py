"""Data type families used to gate column matching."""

from __future__ import annotations

from typing import List, Optional, Tuple

# Ordered: type_family() returns the first family whose token occurs in the
# type string, so "character varying" is text and "bigint" is integer.
TYPE_FAMILIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("integer", ("int", "integer", "smallint", "bigint", "serial", "bigserial")),
    ("numeric", ("numeric", "decimal", "real", "double", "float", "money")),
    ("text", ("char", "varchar", "text", "character")),
    ("temporal", ("date", "timestamp", "timestamptz", "time", "timetz")),
    ("uuid", ("uuid",)),
)


def type_families(data_type: str) -> List[str]:
    """All families a type string falls into (substring match)."""
    if not data_type:
        return []
    lower = data_type.lower()
    return [
        family
        for family, tokens in TYPE_FAMILIES
        if any(token in lower for token in tokens)
    ]


def type_family(data_type: str) -> Optional[str]:
    """Classify a data type string.

    Examples:
        >>> type_family("character varying")
        'text'
        >>> type_family("timestamp without time zone")
        'temporal'
        >>> type_family("jsonb") is None
        True
    """
    families = type_families(data_type)
    return families[0] if families else None


def are_types_compatible(type1: str, type2: str) -> bool:
    """Check if two column types can be joined.

    Types are compatible when the strings are equal (case-insensitive) or
    both fall into a common family. Missing types are never compatible.
    """
    if not type1 or not type2:
        return False

    if type1.lower() == type2.lower():
        return True

    return bool(set(type_families(type1)) & set(type_families(type2)))
