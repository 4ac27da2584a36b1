"""Peloton API client that returns normalized pandas tables."""

from peloton.common import (
    AuthError,
    ConfigurationError,
    HttpError,
    Nested,
    PelotonError,
    TransportError,
    TypeDictionary,
)
from peloton.ingest.api import PelotonClient
from peloton.ingest.queries import (
    get_all_workouts,
    get_my_info,
    get_performance_graphs,
    get_performance_summary,
    get_user_id,
    get_workout_data,
)

__version__ = "0.1.0"

__all__ = [
    "PelotonClient",
    "Nested",
    "TypeDictionary",
    "PelotonError",
    "ConfigurationError",
    "TransportError",
    "AuthError",
    "HttpError",
    "get_my_info",
    "get_user_id",
    "get_all_workouts",
    "get_workout_data",
    "get_performance_graphs",
    "get_performance_summary",
]
