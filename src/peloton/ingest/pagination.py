"""
Page-by-page fetching of list endpoints.

``fetch_all`` keeps asking a page fetcher for pages until a page comes back
empty, the server-reported page count is reached, or enough items have been
collected. Items are not deduplicated: if workouts are added while paging,
an item can show up twice or be skipped.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional

from peloton.common.errors import ConfigurationError

log = logging.getLogger(__name__)


@dataclass
class Page:
    """One page returned by a page fetcher."""
    items: List[Any] = field(default_factory=list)
    page_count: Optional[int] = None

    @classmethod
    def from_response(cls, payload: Any, items_key: str = "data") -> 'Page':
        """
        Build a Page from a list response such as ``{"data": [...], "page_count": 3}``.

        A bare JSON array is taken as the item list. Anything else is an empty page.
        """
        if isinstance(payload, list):
            return cls(items=payload)
        if not isinstance(payload, Mapping):
            return cls()

        items = payload.get(items_key)
        if not isinstance(items, list):
            items = []

        page_count = payload.get("page_count")
        try:
            page_count = int(page_count) if page_count is not None else None
        except (TypeError, ValueError):
            page_count = None
        return cls(items=items, page_count=page_count)


PageFetcher = Callable[[int, int], Page]


@dataclass
class PaginationState:
    """Bookkeeping for one fetch_all call."""
    page_size: int
    max_items: Optional[int] = None
    page_index: int = 0
    items_so_far: int = 0
    last_page_count: Optional[int] = None
    server_page_count: Optional[int] = None

    def cap_reached(self) -> bool:
        return self.max_items is not None and self.items_so_far >= self.max_items

    def last_server_page(self) -> bool:
        return self.server_page_count is not None and self.page_index >= self.server_page_count


def fetch_all(
    fetch_page: PageFetcher,
    page_size: int,
    max_items: Optional[int] = None,
) -> list:
    """
    Fetch every page of a list endpoint.

    Args:
        fetch_page: Called as fetch_page(page_index, page_size), page_index starting at 1
        page_size: Items requested per page
        max_items: Stop once this many items are collected (None for no limit)

    Returns:
        Items in the order received, trimmed to max_items.

    Raises:
        ConfigurationError: page_size < 1 or max_items < 0
        Any exception from fetch_page, unchanged. No partial result is returned.
    """
    if page_size is None or int(page_size) < 1:
        raise ConfigurationError(f"page_size must be at least 1, got {page_size}")
    if max_items is not None and max_items < 0:
        raise ConfigurationError(f"max_items must not be negative, got {max_items}")

    state = PaginationState(page_size=int(page_size), max_items=max_items)
    collected: list = []

    while not state.cap_reached():
        state.page_index += 1
        page = fetch_page(state.page_index, state.page_size)

        state.last_page_count = len(page.items)
        if page.page_count is not None:
            state.server_page_count = page.page_count

        if not page.items:
            log.info(f"Page {state.page_index}: empty, stopping")
            break

        collected.extend(page.items)
        state.items_so_far = len(collected)

        log.info(
            f"Page {state.page_index}/{state.server_page_count or '?'}: fetched "
            f"{state.last_page_count} items (total so far: {state.items_so_far})"
        )

        if state.last_server_page():
            break

    if max_items is not None and len(collected) > max_items:
        collected = collected[:max_items]

    log.info(f"Fetched {len(collected)} items in {state.page_index} pages")
    return collected
