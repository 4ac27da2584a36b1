"""Tests for the paginator."""
import pytest

from peloton.common.errors import ConfigurationError, HttpError
from peloton.ingest.pagination import Page, PaginationState, fetch_all


class PageSource:
    """Fake page fetcher: page sizes listed up front, or endless pages."""

    def __init__(self, sizes=None, endless=0, page_count=None, fail_on=None):
        self.sizes = sizes
        self.endless = endless
        self.page_count = page_count
        self.fail_on = fail_on
        self.calls = []

    def __call__(self, page_index, page_size):
        self.calls.append((page_index, page_size))
        if self.fail_on == page_index:
            raise HttpError(500, "boom", "/api/test")
        if self.sizes is not None:
            n = self.sizes[page_index - 1] if page_index <= len(self.sizes) else 0
        else:
            n = self.endless
        start = sum(self.sizes[: page_index - 1]) if self.sizes is not None else (page_index - 1) * n
        return Page(items=list(range(start, start + n)), page_count=self.page_count)


class TestFetchAll:
    def test_stops_on_empty_page(self):
        source = PageSource(sizes=[100, 100, 0])
        items = fetch_all(source, page_size=100)
        assert len(items) == 200
        assert len(source.calls) == 3
        assert source.calls[0] == (1, 100)

    def test_cap_trims_last_page(self):
        source = PageSource(endless=100)
        items = fetch_all(source, page_size=100, max_items=150)
        assert len(items) == 150
        assert items == list(range(150))
        assert [index for index, _ in source.calls] == [1, 2]

    def test_cap_on_page_boundary(self):
        source = PageSource(endless=10)
        items = fetch_all(source, page_size=10, max_items=20)
        assert len(items) == 20
        assert len(source.calls) == 2

    def test_stops_at_server_page_count(self):
        source = PageSource(endless=5, page_count=2)
        items = fetch_all(source, page_size=5)
        assert len(items) == 10
        assert len(source.calls) == 2

    def test_short_page_does_not_stop(self):
        source = PageSource(sizes=[3, 2, 0])
        assert len(fetch_all(source, page_size=3)) == 5
        assert len(source.calls) == 3

    def test_zero_items_requested(self):
        source = PageSource(endless=10)
        assert fetch_all(source, page_size=10, max_items=0) == []
        assert source.calls == []

    def test_order_preserved_and_no_dedupe(self):
        pages = {1: Page(items=["a", "b"]), 2: Page(items=["b", "c"]), 3: Page()}
        items = fetch_all(lambda index, size: pages[index], page_size=2)
        assert items == ["a", "b", "b", "c"]

    def test_fetch_error_propagates(self):
        source = PageSource(endless=10, fail_on=2)
        with pytest.raises(HttpError):
            fetch_all(source, page_size=10)
        assert len(source.calls) == 2

    @pytest.mark.parametrize("page_size", [0, -1, None])
    def test_bad_page_size(self, page_size):
        with pytest.raises(ConfigurationError):
            fetch_all(PageSource(endless=1), page_size=page_size)

    def test_negative_cap(self):
        with pytest.raises(ConfigurationError):
            fetch_all(PageSource(endless=1), page_size=1, max_items=-1)


class TestPage:
    def test_from_response(self):
        page = Page.from_response({"data": [1, 2], "page_count": "4", "total": 8})
        assert page.items == [1, 2]
        assert page.page_count == 4

    def test_from_array(self):
        assert Page.from_response([1, 2]).items == [1, 2]

    def test_unexpected_shapes(self):
        assert Page.from_response(None).items == []
        assert Page.from_response({"data": "oops", "page_count": "n/a"}) == Page()


class TestPaginationState:
    def test_conditions(self):
        state = PaginationState(page_size=10, max_items=5, items_so_far=5)
        assert state.cap_reached()
        state = PaginationState(page_size=10, page_index=3, server_page_count=3)
        assert state.last_server_page()
        assert not state.cap_reached()
