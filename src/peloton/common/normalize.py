"""
Normalization of Peloton API responses into rows and tables.

A row is an ordered dict of field name -> cell (see peloton.common.cells); a
table is a DataFrame built by stacking rows. Nothing here raises on the shape
of the data: unexpected payloads degrade to empty rows or null cells.

Policy for payloads that have no field names (bare scalars, unnamed arrays,
None): they normalize to an empty row, meaning "no data". They cannot be lined
up with named columns, so they are not an error either.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

import pandas as pd

from peloton.common.cells import classify
from peloton.common.schema import DictionaryLike, apply_dictionary, as_type_dictionary
from peloton.common.timestamps import TimeZoneLike, infer_dates

log = logging.getLogger(__name__)

Row = dict


def normalize(raw_item: Any) -> Row:
    """
    Convert one JSON object into a row.

    Args:
        raw_item: Decoded JSON value

    Returns:
        Ordered dict with one cell per non-empty field name. Empty when
        raw_item is None, empty, or not a JSON object.
    """
    if not isinstance(raw_item, Mapping) or not raw_item:
        return {}

    row: Row = {}
    for key, value in raw_item.items():
        if key is None:
            continue
        name = str(key)
        if name == "":
            continue
        row[name] = classify(value)
    return row


def prefix_row(row: Mapping[str, Any], prefix: str) -> Row:
    """Rename every field of a row to ``prefix + name``."""
    return {f"{prefix}{name}": cell for name, cell in row.items()}


def stack_rows(rows: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """
    Stack rows into one table.

    Columns are the union of the rows' fields in first-seen order. A row
    missing a field gets None in that column. Every input row yields exactly
    one table row, an empty row included (all nulls). Types are not
    reconciled: a column may mix scalars of different types and Nested cells.
    """
    rows = list(rows)
    if not rows:
        return pd.DataFrame()

    columns = list(dict.fromkeys(name for row in rows for name in row))
    if not columns:
        return pd.DataFrame(index=pd.RangeIndex(len(rows)))

    data = {}
    for name in columns:
        column = pd.Series([row.get(name) for row in rows], dtype=object)
        # a hole would turn an int column into float64
        if not column.isna().any():
            column = column.infer_objects()
        data[name] = column
    return pd.DataFrame(data, columns=columns)


def to_table(
    rows: Iterable[Mapping[str, Any]],
    date_parsing: bool = True,
    dictionary: DictionaryLike = None,
    tz: TimeZoneLike = None,
) -> pd.DataFrame:
    """Stack rows, then infer dates and apply the type dictionary."""
    type_dict = as_type_dictionary(dictionary)
    df = stack_rows(rows)
    if date_parsing:
        df = infer_dates(df, tz=tz)
    if type_dict is not None:
        df = apply_dictionary(df, type_dict)
    return df


def parse_response(
    raw: Any,
    date_parsing: bool = True,
    dictionary: DictionaryLike = None,
    tz: TimeZoneLike = None,
) -> pd.DataFrame:
    """
    Parse one JSON object response into a single-row table.

    Leaves most datatypes alone but keeps lists and objects as Nested cells.
    A response without field names gives an empty DataFrame.

    Example:
        >>> parse_response({"id": "abc", "total_workouts": 12, "tags": ["a", "b"]}).columns.tolist()
        ['id', 'total_workouts', 'tags']
    """
    row = normalize(raw)
    if not row:
        # still validate the dictionary so a bad one never passes silently
        as_type_dictionary(dictionary)
        return pd.DataFrame()
    return to_table([row], date_parsing=date_parsing, dictionary=dictionary, tz=tz)


def parse_items(
    items: Iterable[Any],
    date_parsing: bool = True,
    dictionary: DictionaryLike = None,
    tz: TimeZoneLike = None,
    prefix: Optional[str] = None,
) -> pd.DataFrame:
    """Normalize each item and stack them into one table (one row per item)."""
    rows = [normalize(item) for item in items]
    if prefix:
        rows = [prefix_row(row, prefix) for row in rows]
    log.debug(f"Normalized {len(rows)} items")
    return to_table(rows, date_parsing=date_parsing, dictionary=dictionary, tz=tz)
