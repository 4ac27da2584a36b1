"""Exception types raised by the Peloton client."""
from __future__ import annotations

from typing import Optional


class PelotonError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(PelotonError, ValueError):
    """Raised when a caller-supplied option is malformed.

    Covers type dictionaries with unknown categories, join specifications that
    are not a single string, and invalid pagination arguments. Always raised
    before any request is made or any table is modified.
    """


class TransportError(PelotonError):
    """Network, DNS, TLS or timeout failure, or a body that is not JSON."""


class AuthError(PelotonError):
    """No bearer token is configured for the client."""


class HttpError(PelotonError):
    """The API answered with a status code of 300 or above."""

    def __init__(self, status: int, body: str = "", path: Optional[str] = None):
        self.status = status
        self.body = body
        self.path = path
        message = f"Peloton GET failed: {status}"
        if path:
            message += f" for {path}"
        if body:
            message += f"\n{body[:500]}"
        super().__init__(message)
