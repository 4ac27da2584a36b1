"""
Derived metrics from Peloton performance-graph summaries.

A performance graph carries its headline numbers in small lists of records:

- summaries:          [{"display_name": "Total Output", "value": 312, ...}, ...]
- average_summaries:  [{"display_name": "Avg Output", "value": 150, ...}, ...]
- metrics:            [{"display_name": "Heart Rate", "max_value": 171, "average_value": 140, ...}, ...]
- effort_zones:       {"total_effort_points": 41.2,
                       "heart_rate_zone_durations": {"heart_rate_z1_duration": 120, ...}}

The extractors below look values up by display name. They never raise: a
missing record, an empty list or an unexpected shape gives None.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Optional

import pandas as pd

from peloton.common.cells import is_null, unbox

log = logging.getLogger(__name__)

HR_ZONE_KEYS = {
    1: "heart_rate_z1_duration",
    2: "heart_rate_z2_duration",
    3: "heart_rate_z3_duration",
    4: "heart_rate_z4_duration",
    5: "heart_rate_z5_duration",
}


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or is_null(value):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(result) else result


def extract_named(records: Any, display_name: str, value_key: str = "value") -> Optional[float]:
    """
    Value of the first record whose display_name matches exactly.

    Args:
        records: List of {"display_name", "value"} records, or a Nested box of one
        display_name: Name to look for (case-sensitive)
        value_key: Key holding the value

    Returns:
        The value as a float, or None
    """
    records = unbox(records)
    if not isinstance(records, list):
        return None

    for record in records:
        if isinstance(record, dict) and record.get("display_name") == display_name:
            return _as_float(record.get(value_key))
    return None


def extract_max_named(records: Any, display_name: str) -> Optional[float]:
    """Like extract_named, reading ``max_value`` (used for the metrics list)."""
    return extract_named(records, display_name, value_key="max_value")


def zone_duration(effort_zones: Any, zone_key: str) -> Optional[float]:
    effort_zones = unbox(effort_zones)
    if not isinstance(effort_zones, dict):
        return None

    durations = effort_zones.get("heart_rate_zone_durations")
    if isinstance(durations, dict) and zone_key in durations:
        return _as_float(durations[zone_key])
    return _as_float(effort_zones.get(zone_key))


def zone_ratio(effort_zones: Any, zone_key: str, total_duration: Any) -> Optional[float]:
    """
    Share of the workout spent in one heart-rate zone.

    Args:
        effort_zones: effort_zones object (or Nested box of it)
        zone_key: e.g. "heart_rate_z2_duration"
        total_duration: Workout duration in seconds

    Returns:
        zone seconds / total_duration, or None if the zone is missing or the
        duration is null or zero
    """
    total = _as_float(total_duration)
    if not total:
        return None
    seconds = zone_duration(effort_zones, zone_key)
    if seconds is None:
        return None
    return seconds / total


def summarize_workout(row: Any) -> dict:
    """Headline numbers of one workout from a get_performance_summary row."""
    summaries = row.get("summaries")
    averages = row.get("average_summaries")
    metrics = row.get("metrics")
    effort_zones = row.get("effort_zones")
    duration = row.get("duration")

    zones = unbox(effort_zones)
    summary = {
        "id": row.get("id"),
        "duration": _as_float(duration),
        "total_output": extract_named(summaries, "Total Output"),
        "distance": extract_named(summaries, "Distance"),
        "calories": extract_named(summaries, "Calories"),
        "avg_output": extract_named(averages, "Avg Output"),
        "avg_cadence": extract_named(averages, "Avg Cadence"),
        "avg_resistance": extract_named(averages, "Avg Resistance"),
        "avg_speed": extract_named(averages, "Avg Speed"),
        "avg_pace": extract_named(averages, "Avg Pace"),
        "avg_heart_rate": extract_named(metrics, "Heart Rate", value_key="average_value"),
        "max_heart_rate": extract_max_named(metrics, "Heart Rate"),
        "total_effort_points": _as_float(zones.get("total_effort_points")) if isinstance(zones, dict) else None,
    }
    for zone, key in HR_ZONE_KEYS.items():
        summary[f"hr_zone_{zone}_ratio"] = zone_ratio(effort_zones, key, duration)
    return summary


def summarize_performance(summary_df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-workout summary table from the output of get_performance_summary.

    Returns:
        DataFrame with one row per workout: id, duration, totals, averages,
        heart rate and the share of time spent in each heart-rate zone.
        Missing values are NaN.
    """
    if summary_df.empty:
        return pd.DataFrame()

    records = [summarize_workout(row) for _, row in summary_df.iterrows()]
    log.debug(f"Summarized {len(records)} workouts")
    out = pd.DataFrame.from_records(records)
    numeric = [c for c in out.columns if c != "id"]
    out[numeric] = out[numeric].astype("float64")
    return out
