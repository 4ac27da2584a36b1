"""Common utilities for the Peloton client."""

from peloton.common.cells import Nested
from peloton.common.config import Config, get_config
from peloton.common.errors import (
    AuthError,
    ConfigurationError,
    HttpError,
    PelotonError,
    TransportError,
)
from peloton.common.normalize import normalize, parse_response, stack_rows
from peloton.common.schema import SCHEMAS, TypeDictionary, apply_dictionary, get_schema
from peloton.common.timestamps import infer_dates

__all__ = [
    "Nested",
    "Config",
    "get_config",
    "PelotonError",
    "ConfigurationError",
    "TransportError",
    "AuthError",
    "HttpError",
    "normalize",
    "parse_response",
    "stack_rows",
    "SCHEMAS",
    "TypeDictionary",
    "apply_dictionary",
    "get_schema",
    "infer_dates",
]
