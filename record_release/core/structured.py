"""Helpers for safely working with dynamic (untyped) structures.

Use these at boundaries where we ingest JSON: ledger responses, GitHub API
payloads, session blobs, run state and the workflow event file.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    """Return obj as StrDict if it matches, else None."""
    if is_str_dict(obj):
        return obj
    return None


def as_obj_list(obj: object) -> ObjList | None:
    """Return obj as ObjList if it is a list, else None."""
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value from a mapping, stripping whitespace.

    Returns None if missing, not a str, or empty after stripping.
    """
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_raw_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value verbatim (release bodies keep their whitespace)."""
    value = table.get(key)
    if not isinstance(value, str) or value == "":
        return None
    return value


def get_exact_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value exactly as stored, the empty string included."""
    value = table.get(key)
    return value if isinstance(value, str) else None


def get_bool(table: Mapping[str, object], key: str, default: bool = False) -> bool:
    """Get a boolean from a mapping.

    Accepts real booleans and the string "true" (any case); anything else
    falls back to default when missing, False otherwise.
    """
    value = table.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def get_id(table: Mapping[str, object], key: str) -> str | None:
    """Get an identifier that may be serialized as a number or a string."""
    value = table.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    return get_str(table, key)


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    """Get a nested table (dict with string keys) from a mapping."""
    return as_str_dict(table.get(key))
