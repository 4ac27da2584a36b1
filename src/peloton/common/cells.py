"""
Cell model shared by every normalization step.

A cell in a normalized row is either a scalar (str, int, float, bool or None)
or a ``Nested`` box holding an unflattened JSON subtree. Boxing keeps lists and
objects inside a single DataFrame cell, the same way a list-column does.
"""
from __future__ import annotations

import math
from typing import Any

import pandas as pd


class Nested:
    """Opaque wrapper around a JSON object or array stored in one cell.

    Deliberately not iterable and without ``__len__``, so pandas never tries to
    broadcast or unpack the box when it is placed in a frame.
    """

    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Nested):
            return self.value == other.value
        return NotImplemented

    __hash__ = None  # payloads are dicts and lists

    def __repr__(self) -> str:
        return f"Nested({self.value!r})"


def unbox(cell: Any) -> Any:
    """Return the payload of a Nested cell, or the cell itself."""
    return cell.value if isinstance(cell, Nested) else cell


def is_null(cell: Any) -> bool:
    """True for the null scalar in all its pandas spellings (None, NaN, NaT)."""
    if cell is None:
        return True
    if isinstance(cell, Nested):
        return False
    if isinstance(cell, float):
        return math.isnan(cell)
    try:
        return bool(pd.isna(cell))
    except (TypeError, ValueError):
        return False


def classify(value: Any) -> Any:
    """Turn one raw JSON value into a cell.

    - None or an empty dict or list -> None
    - non-empty dict or list -> Nested(value)
    - anything else -> the value itself
    """
    if isinstance(value, Nested):
        return value
    if value is None:
        return None
    if isinstance(value, (dict, list, tuple)):
        if len(value) == 0:
            return None
        return Nested(list(value) if isinstance(value, tuple) else value)
    return value
