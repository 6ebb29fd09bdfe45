"""
Observatory — Defensive Payload Access

The backing stores hand us loosely-typed JSON. Every accessor here returns a
documented default when the key is absent or the value has the wrong type;
none of them raise.
"""

from __future__ import annotations

import math
from typing import Any

import orjson

from observatory.primitives.common import clamp


def parse_json_object(raw: Any) -> dict[str, Any] | None:
    """Decode a JSON object from str/bytes. None when it is not an object."""
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, (str, bytes, bytearray)):
        return None
    try:
        value = orjson.loads(raw)
    except orjson.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def get_object(data: Any, key: str) -> dict[str, Any]:
    """Nested object at ``key``; empty dict otherwise."""
    if isinstance(data, dict):
        value = data.get(key)
        if isinstance(value, dict):
            return value
    return {}


def get_float(
    data: Any,
    key: str,
    default: float,
    lo: float | None = None,
    hi: float | None = None,
) -> float:
    """
    Numeric field as float, clamped to [lo, hi] when bounds are given.

    Booleans, strings and non-finite numbers fall back to ``default``.
    """
    value = data.get(key) if isinstance(data, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        result = default
    elif not math.isfinite(value):
        result = default
    else:
        result = float(value)
    if lo is not None and hi is not None:
        return clamp(result, lo, hi)
    if lo is not None:
        return max(lo, result)
    return result


def get_int(data: Any, key: str, default: int, minimum: int | None = 0) -> int:
    """Integral field. Floats are truncated; anything else is ``default``."""
    value = data.get(key) if isinstance(data, dict) else None
    if isinstance(value, bool):
        result = default
    elif isinstance(value, int):
        result = value
    elif isinstance(value, float) and math.isfinite(value):
        result = int(value)
    else:
        result = default
    if minimum is not None:
        return max(minimum, result)
    return result


def get_str(data: Any, key: str, default: str) -> str:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, str) else default


def get_bool(data: Any, key: str, default: bool) -> bool:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, bool) else default


def get_float_list(
    data: Any,
    key: str,
    max_len: int,
    lo: float | None = None,
    hi: float | None = None,
) -> tuple[float, ...]:
    """
    The newest ``max_len`` numeric entries of a list field.

    Non-numeric entries are dropped rather than failing the whole list.
    """
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, list):
        return ()
    out: list[float] = []
    for item in value[-max_len:]:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            continue
        if not math.isfinite(item):
            continue
        x = float(item)
        if lo is not None and hi is not None:
            x = clamp(x, lo, hi)
        out.append(x)
    return tuple(out)


def get_list(data: Any, key: str) -> list[Any]:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, list) else []
