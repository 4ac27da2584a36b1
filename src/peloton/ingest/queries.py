"""
Peloton endpoint queries.

Each function picks an endpoint, fetches it through a PelotonClient and returns
a normalized DataFrame:

- get_my_info              /api/me                               one row
- get_all_workouts         /api/user/{user_id}/workouts          one row per workout
- get_workout_data         /api/workout/{workout_id}             one row
- get_performance_graphs   /api/workout/{id}/performance_graph   one row per workout id
- get_performance_summary  /api/workout/{id}/performance_graph   one row per workout id,
                                                                 summary fields only

Responses that are not JSON objects (bare scalars or arrays) normalize to an
empty table; that is "no data", not an error.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Union

import pandas as pd

from peloton.common.cells import Nested, classify
from peloton.common.config import get_config
from peloton.common.errors import ConfigurationError
from peloton.common.normalize import normalize, parse_items, parse_response, stack_rows, to_table
from peloton.common.schema import DictionaryLike, get_schema
from peloton.common.timestamps import TimeZoneLike
from peloton.ingest.api import PelotonClient
from peloton.ingest.pagination import Page, fetch_all

log = logging.getLogger(__name__)

RIDE_PREFIX = "ride_"

# Fields of a performance graph kept by get_performance_summary
SUMMARY_NESTED_FIELDS = ("summaries", "average_summaries", "effort_zones", "metrics")


def _client(client: Optional[PelotonClient]) -> PelotonClient:
    return client if client is not None else PelotonClient()


def _as_id_list(ids: Union[str, Iterable[str]]) -> list[str]:
    if isinstance(ids, (str, int)):
        return [str(ids)]
    if isinstance(ids, pd.Series):
        ids = ids.tolist()
    return [str(i) for i in ids]


def validate_joins(joins: Any) -> str:
    """
    Check a join specification: one string of comma-separated paths, e.g. "ride,ride.instructor".

    Raises:
        ConfigurationError: joins is not a single string, or has an empty path segment
    """
    if joins is None:
        return ""
    if not isinstance(joins, str):
        raise ConfigurationError("Provide joins as a single string, e.g. 'ride,ride.instructor'")
    joins = joins.strip()
    if not joins:
        return ""
    segments = [segment.strip() for segment in joins.split(",")]
    if any(not segment for segment in segments):
        raise ConfigurationError(f"Empty path segment in joins: {joins!r}")
    return ",".join(segments)


def get_my_info(
    date_parsing: bool = True,
    dictionary: DictionaryLike = None,
    tz: TimeZoneLike = None,
    client: Optional[PelotonClient] = None,
) -> pd.DataFrame:
    """
    Account record of the authenticated user (user id, username, counts, ...).

    Returns:
        Single-row DataFrame
    """
    resp = _client(client).fetch("/api/me")
    return parse_response(resp, date_parsing=date_parsing, dictionary=dictionary, tz=tz)


def get_user_id(client: Optional[PelotonClient] = None) -> str:
    """User id of the authenticated user, needed for get_all_workouts."""
    me = normalize(_client(client).fetch("/api/me"))
    user_id = me.get("id")
    if not user_id:
        raise ConfigurationError("/api/me returned no user id")
    return str(user_id)


def _resolve_user_id(user_id: Optional[str], client: PelotonClient) -> str:
    if user_id:
        return str(user_id)
    configured = get_config().get_user_id()
    if configured:
        return configured
    log.info("No user id given or configured (PELOTON_USERID); looking it up via /api/me")
    return get_user_id(client)


def _join_rides(
    workouts: pd.DataFrame,
    date_parsing: bool,
    dictionary: DictionaryLike,
    tz: TimeZoneLike,
) -> pd.DataFrame:
    """Append the fields of each workout's nested ``ride`` object as ``ride_*`` columns."""
    if "ride" not in workouts.columns:
        log.debug("Join requested but no `ride` field in workouts; returning as is")
        return workouts

    rides = [cell.value if isinstance(cell, Nested) else None for cell in workouts["ride"]]
    rides_df = parse_items(
        rides,
        date_parsing=date_parsing,
        dictionary=dictionary,
        tz=tz,
        prefix=RIDE_PREFIX,
    )
    if rides_df.shape[1] == 0:
        return workouts

    # ride fields replace any workout column of the same name
    rides_df.index = workouts.index
    base = workouts.drop(columns=[c for c in rides_df.columns if c in workouts.columns])
    return pd.concat([base, rides_df], axis=1)


def get_all_workouts(
    user_id: Optional[str] = None,
    num_workouts: Optional[int] = 20,
    joins: str = "",
    page_size: Optional[int] = None,
    dictionary: DictionaryLike = get_schema("workouts"),
    date_parsing: bool = True,
    tz: TimeZoneLike = None,
    client: Optional[PelotonClient] = None,
) -> pd.DataFrame:
    """
    List workouts of a user, newest first, along with some metadata.

    Args:
        user_id: Peloton user id; defaults to PELOTON_USERID, then to /api/me
        num_workouts: Maximum number of workouts (None for all of them)
        joins: Extra objects to embed, as one string (e.g. "ride" or "ride,ride.instructor").
            With "ride" the ride fields are added as ``ride_*`` columns.
        page_size: Workouts per request (default: ingestion.page_size, capped by num_workouts)
        dictionary: Type dictionary applied to workouts and joined rides
        date_parsing: Whether to convert epoch columns to timestamps
        tz: Zone for converted timestamps
        client: PelotonClient to use (a new one by default)

    Returns:
        DataFrame with one row per workout (empty if the user has none)

    Example:
        >>> get_all_workouts(num_workouts=50, joins="ride,ride.instructor")
    """
    joins = validate_joins(joins)
    if num_workouts is not None and num_workouts < 0:
        raise ConfigurationError(f"num_workouts must not be negative, got {num_workouts}")

    if num_workouts == 0:
        return pd.DataFrame()

    client = _client(client)
    user_id = _resolve_user_id(user_id, client)

    if page_size is None:
        page_size = get_config().get_page_size()
        if num_workouts:
            page_size = min(page_size, num_workouts)

    path = f"/api/user/{user_id}/workouts"

    def fetch_page(page_index: int, limit: int) -> Page:
        query = {"limit": limit, "page": page_index - 1}
        if joins:
            query["joins"] = joins
        return Page.from_response(client.fetch(path, query=query))

    items = fetch_all(fetch_page, page_size=page_size, max_items=num_workouts)
    log.info(f"Fetched {len(items)} workouts for user {user_id}")
    if not items:
        return pd.DataFrame()

    workouts = parse_items(items, date_parsing=date_parsing, dictionary=dictionary, tz=tz)
    if joins:
        workouts = _join_rides(workouts, date_parsing, dictionary, tz)
    return workouts


def get_workout_data(
    workout_id: str,
    date_parsing: bool = True,
    dictionary: DictionaryLike = get_schema("workout"),
    tz: TimeZoneLike = None,
    client: Optional[PelotonClient] = None,
) -> pd.DataFrame:
    """
    Details of one workout.

    Returns:
        Single-row DataFrame
    """
    resp = _client(client).fetch(f"/api/workout/{workout_id}")
    return parse_response(resp, date_parsing=date_parsing, dictionary=dictionary, tz=tz)


def get_performance_graphs(
    workout_ids: Union[str, Iterable[str]],
    every_n: int = 5,
    dictionary: DictionaryLike = get_schema("performance_graph"),
    date_parsing: bool = True,
    tz: TimeZoneLike = None,
    client: Optional[PelotonClient] = None,
) -> pd.DataFrame:
    """
    Time series (cadence, output, resistance, speed, heart rate) of workouts.

    Args:
        workout_ids: One workout id or several
        every_n: Seconds between samples; 1 gives 60 points per minute

    Returns:
        DataFrame with one row per workout id; ``id`` holds the requested id
    """
    client = _client(client)
    rows = []
    for workout_id in _as_id_list(workout_ids):
        resp = client.fetch(
            f"/api/workout/{workout_id}/performance_graph",
            query={"every_n": every_n},
        )
        row = normalize(resp)
        row["id"] = workout_id
        rows.append(row)

    log.info(f"Fetched performance graphs for {len(rows)} workouts")
    if not rows:
        return pd.DataFrame()
    return to_table(rows, date_parsing=date_parsing, dictionary=dictionary, tz=tz)


def get_performance_summary(
    workout_ids: Union[str, Iterable[str]],
    every_n: int = 5,
    client: Optional[PelotonClient] = None,
) -> pd.DataFrame:
    """
    Summary blocks of the performance graph of each workout.

    Columns: id, duration, summaries, average_summaries, effort_zones, metrics.
    The last four are always Nested, empty when the response lacks them.
    Feed the result to peloton.analysis.performance.summarize_performance.
    """
    client = _client(client)
    rows = []
    for workout_id in _as_id_list(workout_ids):
        resp = client.fetch(
            f"/api/workout/{workout_id}/performance_graph",
            query={"every_n": every_n},
        )
        rows.append(summary_row(workout_id, resp))

    if not rows:
        return pd.DataFrame(columns=["id", "duration", *SUMMARY_NESTED_FIELDS])
    return stack_rows(rows)


def summary_row(workout_id: str, resp: Any) -> dict:
    """Cut a performance-graph response down to its summary fields."""
    payload = resp if isinstance(resp, dict) else {}

    duration = payload.get("duration")
    if duration is None:
        duration = payload.get("duration_sec")
    if duration is None:
        duration = payload.get("duration_secs")

    row = {"id": str(workout_id), "duration": classify(duration)}
    for name in SUMMARY_NESTED_FIELDS:
        cell = classify(payload.get(name))
        if not isinstance(cell, Nested):
            cell = Nested({} if name == "effort_zones" else [])
        row[name] = cell
    return row
