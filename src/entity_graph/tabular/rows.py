"""Boundary normalization of relational replies.

The source answers in one of several shapes:

- a bare list of row objects
- `{"rows": [...]}`
- `{"reply": [...]}` (sometimes `null` or a single error object)
- `{"data": [...]}`

`classify` tags the shape, `normalize_rows` flattens any of them into a list of
plain dicts. Nothing downstream looks at the raw reply.
"""

from __future__ import annotations

import re
from typing import Any, Literal

Row = dict[str, Any]
Shape = Literal["list", "rows", "reply", "data", "empty"]

_ROW_KEYS: tuple[Shape, ...] = ("data", "rows", "reply")
_DIGITS = re.compile(r"^\d+$")


def _dict_rows(items: Any) -> list[Row]:
    if not isinstance(items, list):
        return []
    return [dict(x) for x in items if isinstance(x, dict)]


def classify(response: Any) -> tuple[Shape, list[Row]]:
    if isinstance(response, list):
        return "list", _dict_rows(response)
    if isinstance(response, dict):
        for key in _ROW_KEYS:
            if isinstance(response.get(key), list):
                return key, _dict_rows(response[key])
    return "empty", []


def normalize_rows(response: Any) -> list[Row]:
    """All row objects in `response`, whatever its shape.

    A reply carrying several row fields contributes all of them in
    `data`, `rows`, `reply` order.
    """
    if isinstance(response, dict):
        out: list[Row] = []
        for key in _ROW_KEYS:
            out.extend(_dict_rows(response.get(key)))
        return out
    return classify(response)[1]


def as_int(value: Any) -> int | None:
    """Integer value of an id-like cell, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _DIGITS.match(value.strip()):
        return int(value.strip())
    return None


def as_name(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def is_text(value: Any) -> bool:
    """A non-empty string that is not just an integer."""
    return as_name(value) is not None and as_int(value) is None
