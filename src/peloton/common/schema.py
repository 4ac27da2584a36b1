"""
Type dictionaries: caller-declared column types for Peloton tables.

The API has no schema contract, so the same field can come back as a number in
one response and a string in the next. A TypeDictionary names the fields that
must end up numeric, text or nested, and ``apply_dictionary`` forces them.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from peloton.common.cells import Nested, is_null
from peloton.common.errors import ConfigurationError

log = logging.getLogger(__name__)

# Application order; also the only accepted category names
CATEGORIES = ("numeric", "text", "nested")


def _as_names(value: Any, category: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(v) for v in value)
    raise ConfigurationError(
        f"Type dictionary category `{category}` must list field names, got {type(value).__name__}"
    )


@dataclass(frozen=True)
class TypeDictionary:
    """
    Field names forced to a type, grouped by category.

    Build one directly or from a plain mapping:

        >>> TypeDictionary.from_mapping({"numeric": ["leaderboard_rank"], "nested": "segment_list"})
        TypeDictionary(numeric=('leaderboard_rank',), text=(), nested=('segment_list',))
    """
    numeric: Tuple[str, ...] = ()
    text: Tuple[str, ...] = ()
    nested: Tuple[str, ...] = ()

    def __post_init__(self):
        for category in CATEGORIES:
            object.__setattr__(self, category, _as_names(getattr(self, category), category))
        self._check_disjoint()

    def _check_disjoint(self) -> None:
        seen: dict[str, str] = {}
        for category in CATEGORIES:
            for name in getattr(self, category):
                if name in seen and seen[name] != category:
                    raise ConfigurationError(
                        f"Field `{name}` is listed under both `{seen[name]}` and `{category}`"
                    )
                seen[name] = category

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> 'TypeDictionary':
        """Validate a {category: field names} mapping and build a TypeDictionary."""
        if not isinstance(mapping, Mapping):
            raise ConfigurationError(
                f"Type dictionary must be a mapping, got {type(mapping).__name__}"
            )
        unknown = [key for key in mapping if key not in CATEGORIES]
        if unknown:
            raise ConfigurationError(
                "The provided dictionary can only include one of the following types: "
                f"`numeric`, `text`, or `nested` (got {unknown})"
            )
        return cls(**{key: _as_names(value, key) for key, value in mapping.items()})

    def items(self):
        """(category, names) pairs in application order."""
        return [(category, getattr(self, category)) for category in CATEGORIES]

    def is_empty(self) -> bool:
        return not (self.numeric or self.text or self.nested)

    def merge(self, other: Optional['TypeDictionary']) -> 'TypeDictionary':
        """Union of two dictionaries; raises if a field ends up in two categories."""
        if other is None:
            return self
        return TypeDictionary(**{
            category: tuple(dict.fromkeys(getattr(self, category) + getattr(other, category)))
            for category in CATEGORIES
        })


DictionaryLike = Union[TypeDictionary, Mapping[str, Any], None]


def as_type_dictionary(dictionary: DictionaryLike) -> Optional[TypeDictionary]:
    if dictionary is None or isinstance(dictionary, TypeDictionary):
        return dictionary
    return TypeDictionary.from_mapping(dictionary)


# ============================================================================
# Per-cell conversions
# ============================================================================

def to_numeric(value: Any) -> float:
    """Parse one cell as a float; anything unparsable becomes NaN."""
    if isinstance(value, Nested) or is_null(value):
        return np.nan
    if isinstance(value, (pd.Timestamp, datetime)):
        return float(value.timestamp())
    if isinstance(value, str):
        value = value.strip()
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return np.nan


def to_text(value: Any) -> Optional[str]:
    """Natural text form of one cell; integral floats print without '.0'."""
    if isinstance(value, Nested):
        return json.dumps(value.value, separators=(",", ":"), default=str)
    if is_null(value):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (pd.Timestamp, datetime)):
        return value.isoformat()
    if isinstance(value, (float, np.floating)):
        value = float(value)
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, np.generic):
        return str(value.item())
    return str(value)


def to_nested(value: Any) -> Nested:
    """Box one cell; already boxed cells are kept, nulls become an empty list."""
    if isinstance(value, Nested):
        return value
    if is_null(value):
        return Nested([])
    return Nested(value)


_CONVERTERS = {
    "numeric": to_numeric,
    "text": to_text,
    "nested": to_nested,
}


def apply_dictionary(df: pd.DataFrame, dictionary: DictionaryLike) -> pd.DataFrame:
    """
    Force the columns named in a type dictionary to their declared type.

    Args:
        df: Normalized table
        dictionary: TypeDictionary, plain {category: names} mapping, or None

    Returns:
        A new DataFrame. Names that are not columns of df are skipped.

    Raises:
        ConfigurationError: The dictionary is malformed (checked before any change)
    """
    type_dict = as_type_dictionary(dictionary)
    if type_dict is None or type_dict.is_empty():
        return df

    out = df.copy()
    for category, names in type_dict.items():
        convert = _CONVERTERS[category]
        for name in names:
            if name not in out.columns:
                continue
            values = [convert(v) for v in out[name]]
            if category == "numeric":
                out[name] = pd.Series(values, index=out.index, dtype="float64")
            else:
                out[name] = pd.Series(values, index=out.index, dtype=object)

    skipped = [n for _, names in type_dict.items() for n in names if n not in df.columns]
    if skipped:
        log.debug(f"Type dictionary fields not present, skipped: {skipped}")
    return out


# ============================================================================
# Default dictionaries of the endpoints
# ============================================================================

SCHEMAS = {
    # /api/user/{id}/workouts
    "workouts": TypeDictionary(
        numeric=("v2_total_video_buffering_seconds", "v2_total_video_watch_time_seconds"),
    ),
    # /api/workout/{id}
    "workout": TypeDictionary(
        numeric=(
            "v2_total_video_watch_time_seconds",
            "v2_total_video_buffering_seconds",
            "leaderboard_rank",
        ),
        nested=("achievement_templates",),
    ),
    # /api/workout/{id}/performance_graph
    "performance_graph": TypeDictionary(
        nested=("seconds_since_pedaling_start", "segment_list"),
    ),
}


def get_schema(name: str) -> TypeDictionary:
    """Get the default type dictionary of an endpoint by name."""
    if name not in SCHEMAS:
        raise KeyError(f"Unknown schema: {name}. Available: {list(SCHEMAS.keys())}")
    return SCHEMAS[name]
