"""Helpers for safely reading untyped JSON payloads.

REST responses and socket messages arrive as plain ``object``; these helpers
validate shape at the boundary and narrow types for the rest of the code.
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
    if is_str_dict(obj):
        return obj
    return None


def as_obj_list(obj: object) -> ObjList | None:
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a non-empty, stripped string value, else None."""
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_int(table: Mapping[str, object], key: str) -> int | None:
    value = table.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    """Get a nested mapping with string keys."""
    return as_str_dict(table.get(key))


def dig(obj: object, *keys: str) -> object:
    """Follow ``keys`` through nested mappings, returning None on any miss.

    Example:
        dig({"data": {"action": "build"}}, "data", "action") == "build"
    """
    current = obj
    for key in keys:
        table = as_str_dict(current)
        if table is None:
            return None
        current = table.get(key)
    return current
