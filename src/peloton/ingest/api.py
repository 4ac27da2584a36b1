"""
Peloton API transport.

Thin authenticated GET against https://api.onepeloton.com. Returns decoded
JSON and maps failures to the package's error types:

- no bearer token            -> AuthError
- network / DNS / TLS / timeout, non-JSON body -> TransportError
- HTTP status >= 300         -> HttpError(status, body, path)

Rate-limited requests (429) are retried with exponential backoff. Nothing
else is retried.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional

import requests

from peloton.common.config import get_config
from peloton.common.errors import AuthError, HttpError, TransportError

log = logging.getLogger(__name__)


class PelotonClient:
    """
    Client for the (unofficial) Peloton API.

    Credentials are fixed at construction: pass ``token`` explicitly or let
    the client read PELOTON_BEARER_TOKEN / config.yaml once, here.

    Example:
        >>> with PelotonClient(token="...") as client:
        ...     me = client.fetch("/api/me")
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        config = get_config()
        self.token = token or config.get_bearer_token()
        self.base_url = (base_url or config.get_base_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else config.get_timeout()
        self.max_retries = config.get_max_retries()
        self.retry_delay = config.get_retry_delay()

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "peloton-platform": config.get_platform(),
                "Accept": "application/json",
            }
        )
        if self.token:
            self.session.headers["Authorization"] = f"Bearer {self.token}"

    def __enter__(self) -> 'PelotonClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def fetch(self, path: str, query: Optional[Mapping[str, Any]] = None) -> Any:
        """
        GET a path (with leading ``/``) and return the decoded JSON body.

        Args:
            path: API endpoint, e.g. "/api/me"
            query: Optional query parameters

        Raises:
            AuthError: No bearer token configured
            TransportError: The request did not complete, or the body is not JSON
            HttpError: Status code >= 300
        """
        if not self.token:
            raise AuthError(
                "Peloton bearer token not configured. "
                "Set PELOTON_BEARER_TOKEN environment variable or add to config.yaml"
            )
        return self._request(path, dict(query or {}))

    def _request(self, path: str, params: dict, retry_count: int = 0) -> Any:
        url = f"{self.base_url}{path}"
        log.debug(f"GET {path} params={params}")

        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            log.error(f"Request to {path} failed: {e}")
            raise TransportError(f"Request to {path} failed: {e}") from e

        if resp.status_code == 429 and retry_count < self.max_retries:
            wait_time = self.retry_delay * (2 ** retry_count)
            log.warning(
                f"Rate limited. Waiting {wait_time}s before retry {retry_count + 1}/{self.max_retries}"
            )
            time.sleep(wait_time)
            return self._request(path, params, retry_count + 1)

        if resp.status_code >= 300:
            log.error(f"HTTP error {resp.status_code} for {path}")
            raise HttpError(resp.status_code, resp.text, path)

        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Peloton API returned non-JSON response for {path}") from e
