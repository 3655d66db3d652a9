"""
Backend output normalisation — best-effort JSON decoding + field lookup.

Backends print one JSON object, one JSON array of objects, or one object
per line, depending on the command and version. Everything here is
best-effort: malformed input returns ``None`` so callers can fall back
to treating the text as opaque. Nothing in this module raises on bad
input.

Field names differ between backends and versions (``ID`` vs ``id`` vs
``containerId``), so lookups take an ordered list of candidate keys and
match them case-insensitively.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

JSONObject = dict[str, Any]

_TRUE_WORDS = frozenset({"true", "yes", "1"})
_FALSE_WORDS = frozenset({"false", "no", "0"})


# ── Decoding ────────────────────────────────────────────────────────


def decode_object(text: str) -> JSONObject | None:
    """Decode *text* as a single JSON object."""
    trimmed = text.strip()
    if not trimmed.startswith("{"):
        return None
    try:
        value = json.loads(trimmed)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def decode_array(text: str) -> list[JSONObject] | None:
    """Decode *text* as a JSON array whose items are all objects."""
    trimmed = text.strip()
    if not trimmed.startswith("["):
        return None
    try:
        value = json.loads(trimmed)
    except ValueError:
        return None
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        return None
    return value


def decode_lines(text: str) -> list[JSONObject] | None:
    """Decode newline-delimited JSON objects.

    All-or-nothing: if any non-blank line is not an object the whole
    interpretation fails. Blank input yields ``None``.
    """
    objects: list[JSONObject] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if not stripped.startswith("{"):
            return None
        try:
            value = json.loads(stripped)
        except ValueError:
            return None
        if not isinstance(value, dict):
            return None
        objects.append(value)
    return objects or None


def decode_structured(text: str) -> JSONObject | list[JSONObject] | None:
    """Try single object, then array of objects, then NDJSON."""
    trimmed = text.strip()
    if trimmed.startswith("{"):
        obj = decode_object(trimmed)
        if obj is not None:
            return obj
    elif trimmed.startswith("["):
        return decode_array(trimmed)
    return decode_lines(trimmed)


def decode_records(text: str) -> list[JSONObject] | None:
    """Like ``decode_structured`` but always a list (single object wrapped)."""
    value = decode_structured(text)
    if value is None:
        return None
    if isinstance(value, dict):
        return [value]
    return value


# ── Scalar coercion ─────────────────────────────────────────────────


def string_value(value: Any) -> str | None:
    """Render a scalar JSON value as text; objects, arrays and null give None."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return None


def bool_value(value: Any) -> bool | None:
    """Interpret a JSON value as a boolean, if it plausibly is one."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
    return None


# ── Field lookup ────────────────────────────────────────────────────


def first_value(obj: Mapping[str, Any], keys: Sequence[str]) -> Any | None:
    """Return the value of the first candidate key present (case-insensitive).

    A key that is present with a JSON ``null`` counts as absent.
    """
    if not keys or not obj:
        return None
    actual: dict[str, str] = {}
    for key in obj:
        actual.setdefault(key.lower(), key)
    for key in keys:
        found = actual.get(key.lower())
        if found is not None and obj[found] is not None:
            return obj[found]
    return None


def first_string(obj: Mapping[str, Any], keys: Sequence[str]) -> str | None:
    """First candidate key rendered as text."""
    return string_value(first_value(obj, keys))


def first_bool(obj: Mapping[str, Any], keys: Sequence[str]) -> bool | None:
    """First candidate key interpreted as a boolean."""
    return bool_value(first_value(obj, keys))
