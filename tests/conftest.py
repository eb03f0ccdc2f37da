from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

from scrollsource.core.errors import CursorExpiredError
from scrollsource.extractors.elasticsearch.client import ScrollPage
from scrollsource.extractors.elasticsearch.input_format import (
    ElasticsearchInputFormat,
    ElasticsearchInputFormatBuilder,
    dict_record_mapper,
)

# ---------- Helpers ----------


class FakeClusterClient:
    """In-memory cluster client serving a fixed list of pages."""

    def __init__(
        self,
        pages: List[List[Dict[str, Any]]],
        *,
        expire_after: Optional[int] = None,
        fail_search: Optional[Exception] = None,
        fail_scroll: Optional[Exception] = None,
        fail_close: Optional[Exception] = None,
    ) -> None:
        self.pages = pages
        self.expire_after = expire_after
        self.fail_search = fail_search
        self.fail_scroll = fail_scroll
        self.fail_close = fail_close
        self.search_calls: List[Dict[str, Any]] = []
        self.scroll_calls: List[tuple] = []
        self.close_calls = 0
        self._next = 1

    def connected_nodes(self) -> List[str]:
        return ["node-1"]

    def search(self, index: str, query: str, scroll_timeout_ms: int, size: int) -> ScrollPage:
        self.search_calls.append(
            {"index": index, "query": query, "scroll_timeout_ms": scroll_timeout_ms, "size": size}
        )
        if self.fail_search is not None:
            raise self.fail_search
        self._next = 1
        return ScrollPage(hits=list(self.pages[0]), scroll_id="scroll-0")

    def continue_scroll(self, scroll_id: str, scroll_timeout_ms: int) -> ScrollPage:
        self.scroll_calls.append((scroll_id, scroll_timeout_ms))
        if self.expire_after is not None and len(self.scroll_calls) > self.expire_after:
            raise CursorExpiredError(scroll_id)
        if self.fail_scroll is not None:
            raise self.fail_scroll
        page = self.pages[self._next] if self._next < len(self.pages) else []
        self._next += 1
        return ScrollPage(hits=list(page), scroll_id=f"scroll-{self._next - 1}")

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_close is not None:
            raise self.fail_close


@pytest.fixture
def make_reader() -> Callable[..., tuple]:
    """Build (reader, fake client, factory call log) around a list of pages."""

    def _make(
        pages: List[List[Dict[str, Any]]],
        *,
        mapper: Callable = dict_record_mapper,
        **client_kwargs: Any,
    ) -> tuple:
        client = FakeClusterClient(pages, **client_kwargs)
        connects: List[tuple] = []

        def factory(hosts: Sequence[Any], cluster_name: str) -> FakeClusterClient:
            connects.append((tuple(hosts), cluster_name))
            return client

        reader: ElasticsearchInputFormat = (
            ElasticsearchInputFormatBuilder(mapper)
            .set_hosts(["http://localhost:9200"])
            .set_index("docs")
            .set_query('{"match_all": {}}')
            .set_client_factory(factory)
            .build()
        )
        return reader, client, connects

    return _make


def docs(*ids: int) -> List[Dict[str, Any]]:
    return [{"id": i, "title": f"doc {i}"} for i in ids]


@pytest.fixture
def make_docs() -> Callable[..., List[Dict[str, Any]]]:
    return docs
