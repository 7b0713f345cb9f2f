"""Shared coercion helpers for payloads and stored documents.

ensure_string:       trimmed string or fallback
ensure_string_list:  trimmed, de-duplicated, order-preserving list of strings
ensure_bool:         strict bool or fallback
ensure_number:       finite int/float from a number or numeric string, else None
pick:                first present key (snake_case first, then legacy camelCase)
new_id:              random unique identifier for every minted entity id
"""

import math
import uuid


def new_id() -> str:
    """Mint a random identifier. Ids are never reused after deletion."""
    return str(uuid.uuid4())


def pick(raw, *keys, default=None):
    """Return the value of the first key present in ``raw``.

    Stored documents written by older clients use camelCase keys, so callers
    pass the snake_case key first and the legacy spelling second.
    """
    if not isinstance(raw, dict):
        return default
    for key in keys:
        if key in raw:
            return raw[key]
    return default


def ensure_string(value, fallback: str = "") -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def ensure_string_list(value) -> list[str]:
    if not isinstance(value, (list, tuple, set)):
        return []
    seen = set()
    result = []
    for item in value:
        text = ensure_string(item)
        if text and text not in seen:
            seen.add(text)
            result.append(text)
    return result


def ensure_bool(value, fallback: bool = False) -> bool:
    return value if isinstance(value, bool) else fallback


def ensure_number(value):
    """Parse a finite number.

    Accepts ints, floats and numeric strings. Booleans, NaN, infinities and
    non-numeric strings return None. Integral values come back as ``int``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if isinstance(number, float):
        if not math.isfinite(number):
            return None
        if number.is_integer():
            return int(number)
    return number
