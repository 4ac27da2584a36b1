"""
Timestamp handling utilities for the Peloton client.

The API reports every instant as UNIX epoch seconds and never says which fields
are instants. ``infer_dates`` guesses: a column whose values all look like a
ten digit number starting with ``1`` (2001-09 through 2033-05) is treated as a
timestamp, except for a few identifier columns that happen to have the same
shape. False positives and negatives are possible; a type dictionary can
override the guess afterwards.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, tzinfo
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo

import pandas as pd

from peloton.common.cells import Nested, is_null
from peloton.common.config import get_default_timezone

log = logging.getLogger(__name__)

# Identifier columns that coincidentally look like epoch seconds
EXCLUDED_COLUMNS = frozenset({"peloton_id", "id", "facebook_id", "home_peloton_id"})

EPOCH_PATTERN = re.compile(r"^1[0-9]{9}$")

TimeZoneLike = Union[str, tzinfo, None]


def resolve_timezone(tz: TimeZoneLike = None) -> tzinfo:
    """
    Turn a zone name or tzinfo into a tzinfo.

    None falls back to ``timezone.default`` from the config and, when that is
    unset too, to the local zone of the running process.
    """
    if isinstance(tz, tzinfo):
        return tz
    tz_name = tz or get_default_timezone()
    if tz_name:
        return ZoneInfo(tz_name)
    return datetime.now().astimezone().tzinfo


def _epoch_text(value: Any) -> Optional[str]:
    """Canonical text of a scalar for pattern matching, None if it cannot be an epoch."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    # numpy scalars
    if hasattr(value, "item"):
        return _epoch_text(value.item())
    return None


def looks_like_epoch(value: Any) -> bool:
    text = _epoch_text(value)
    return text is not None and EPOCH_PATTERN.match(text) is not None


def is_epoch_column(name: str, values: pd.Series) -> bool:
    """
    Check whether a column should be converted by ``infer_dates``.

    Args:
        name: Column name, checked against EXCLUDED_COLUMNS
        values: The column

    Returns:
        True if every non-null cell is a scalar that looks like epoch seconds
        and there is at least one such cell.
    """
    if name in EXCLUDED_COLUMNS:
        return False
    if pd.api.types.is_datetime64_any_dtype(values):
        return False

    seen = False
    for value in values:
        if isinstance(value, Nested):
            return False
        if is_null(value):
            continue
        if not looks_like_epoch(value):
            return False
        seen = True
    return seen


def epoch_to_timestamp(value: Any, tz: TimeZoneLike = None) -> Optional[pd.Timestamp]:
    """Convert one epoch-seconds value into a tz-aware Timestamp (None for nulls)."""
    if is_null(value):
        return None
    zone = resolve_timezone(tz)
    return pd.Timestamp(int(float(value)), unit="s", tz="UTC").tz_convert(zone)


def infer_dates(df: pd.DataFrame, tz: TimeZoneLike = None) -> pd.DataFrame:
    """
    Convert epoch-seconds columns to timezone-aware timestamps.

    Args:
        df: Normalized table
        tz: Zone name or tzinfo for the converted values (see resolve_timezone)

    Returns:
        A new DataFrame with matching columns converted; the input is returned
        unchanged when no column matches.
    """
    columns = [col for col in df.columns if is_epoch_column(str(col), df[col])]
    if not columns:
        return df

    zone = resolve_timezone(tz)
    out = df.copy()
    for col in columns:
        seconds = pd.to_numeric(out[col], errors="coerce")
        out[col] = pd.to_datetime(seconds, unit="s", utc=True).dt.tz_convert(zone)

    log.debug(f"Parsed {len(columns)} epoch columns as dates: {columns}")
    return out
