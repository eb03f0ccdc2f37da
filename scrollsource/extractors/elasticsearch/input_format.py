# scrollsource/extractors/elasticsearch/input_format.py
from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from scrollsource.core.config import Address, ScrollConfig, normalize_hosts
from scrollsource.core.input_format import InputFormat, RawDocument
from scrollsource.core.splits import InputSplit, create_single_split

from .client import ClusterClient, ElasticsearchClusterClient, ScrollPage

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (raw document, optional reuse buffer) -> populated record
RecordMapper = Callable[[RawDocument, Optional[T]], T]
ClientFactory = Callable[[Sequence[Address], str], ClusterClient]


class ElasticsearchInputFormat(InputFormat[T]):
    """
    Streams the hits of one query out of an Elasticsearch index using the scroll API.

    Exactly one page is buffered. When take_next() hands out the last hit of the page it
    fetches the next page before returning, so that call blocks on the network while all
    others are served from memory. The engine's polling contract is synchronous, so this
    latency cliff at each page boundary is expected.

    The whole query is always read as a single split.
    """

    def __init__(
        self,
        config: ScrollConfig,
        client_factory: ClientFactory = ElasticsearchClusterClient.connect,
    ) -> None:
        self.config = config
        self._client_factory = client_factory
        self._client: Optional[ClusterClient] = None
        self._reset_session()

    def _reset_session(self) -> None:
        self._page: List[RawDocument] = []
        self._position = 0
        self._scroll_id: Optional[str] = None
        self._has_next = False

    # ---------------------- lifecycle ----------------------

    def open(self, split: Any = None) -> None:
        """
        Connect and run the initial search. `split` is ignored: one split covers the
        whole query. Errors propagate; a connection acquired before a failing search
        stays owned by the reader and is released by close().
        """
        cfg = self.config
        cfg.validate()

        if self._client is not None:
            # reopened without close(): never keep two cursors alive
            self.close()
        self._reset_session()

        self._client = self._client_factory(cfg.hosts, cfg.cluster_name)
        for node in self._client.connected_nodes():
            logger.debug("ES node name: %s", node)

        logger.debug("Executing ES query on index %r: %s", cfg.index, cfg.query)
        page = self._client.search(
            index=cfg.index,
            query=cfg.query,
            scroll_timeout_ms=cfg.scroll_timeout_ms,
            size=cfg.first_page_size,
        )
        self._scroll_id = page.scroll_id
        self._page = list(page.hits)
        self._position = 0
        self._has_next = len(self._page) != 0
        logger.debug("Got %d result(s) in the first page", len(self._page))

    def close(self) -> None:
        """Release the client. Safe to call twice or without open(). No clear-scroll is sent."""
        client, self._client = self._client, None
        self._has_next = False
        if client is None:
            return
        try:
            client.close()
        except Exception:  # best-effort: cleanup must not fail the task
            logger.warning("Failed to close Elasticsearch client", exc_info=True)

    # ---------------------- splitting ----------------------

    def create_input_splits(self, min_num_splits: int) -> List[InputSplit]:
        return create_single_split()

    # ---------------------- reading ----------------------

    def has_more(self) -> bool:
        return self._has_next

    def take_next(self, reuse: Optional[T] = None) -> Optional[T]:
        if not self._has_next:
            return None

        hit = self._page[self._position]
        logger.debug("ES hit %s", hit)
        record = self.config.mapper(hit, reuse)
        self._position += 1

        if self._position == len(self._page):
            logger.debug("ES scroll page ended (%s), fetching next page", self._scroll_id)
            self._advance_page()

        return record

    def _advance_page(self) -> None:
        # any failed fetch ends the session: there is no state to resume a scroll from
        self._has_next = False
        page: ScrollPage = self._client.continue_scroll(
            self._scroll_id, self.config.scroll_timeout_ms
        )
        if page.scroll_id:
            self._scroll_id = page.scroll_id
        self._page = list(page.hits)
        self._position = 0
        self._has_next = len(self._page) != 0

    # ---------------------- metadata ----------------------

    def get_produced_type(self) -> Any:
        return self.config.produced_type

    def get_statistics(self, cached_statistics: Any) -> Any:
        return cached_statistics


class ElasticsearchInputFormatBuilder(Generic[T]):
    """
    Fluent assembly of an ElasticsearchInputFormat.
    Nothing is checked here; missing settings fail at open() with ConfigurationError.
    """

    def __init__(self, mapper: Optional[RecordMapper] = None) -> None:
        self._config = ScrollConfig(mapper=mapper)
        self._client_factory: ClientFactory = ElasticsearchClusterClient.connect

    def set_hosts(self, hosts: Sequence[Address]) -> "ElasticsearchInputFormatBuilder[T]":
        self._config = replace(self._config, hosts=normalize_hosts(hosts))
        return self

    def set_query(self, query: Any) -> "ElasticsearchInputFormatBuilder[T]":
        """Accepts a serialized query string, a query dict, or any object whose str() is one."""
        if query is None or isinstance(query, str):
            serialized = query
        elif isinstance(query, Mapping):
            serialized = json.dumps(query)
        else:
            serialized = str(query)
        self._config = replace(self._config, query=serialized)
        return self

    def set_index(self, index: str) -> "ElasticsearchInputFormatBuilder[T]":
        self._config = replace(self._config, index=index)
        return self

    def set_produced_type(self, produced_type: Any) -> "ElasticsearchInputFormatBuilder[T]":
        self._config = replace(self._config, produced_type=produced_type)
        return self

    def set_scroll_timeout(self, scroll_timeout_ms: int) -> "ElasticsearchInputFormatBuilder[T]":
        self._config = replace(self._config, scroll_timeout_ms=scroll_timeout_ms)
        return self

    def set_cluster_name(self, cluster_name: str) -> "ElasticsearchInputFormatBuilder[T]":
        self._config = replace(self._config, cluster_name=cluster_name)
        return self

    def set_first_page_size(self, size: int) -> "ElasticsearchInputFormatBuilder[T]":
        self._config = replace(self._config, first_page_size=size)
        return self

    def set_mapper(self, mapper: RecordMapper) -> "ElasticsearchInputFormatBuilder[T]":
        self._config = replace(self._config, mapper=mapper)
        return self

    def set_client_factory(self, factory: ClientFactory) -> "ElasticsearchInputFormatBuilder[T]":
        self._client_factory = factory
        return self

    def build(self) -> ElasticsearchInputFormat[T]:
        return ElasticsearchInputFormat(self._config, client_factory=self._client_factory)

    @classmethod
    def from_options(
        cls, mapper: RecordMapper, options: Mapping[str, Any]
    ) -> "ElasticsearchInputFormatBuilder[T]":
        """
        Seed a builder from a flat option mapping, e.g. JobConfig.options.
        Recognized keys: hosts, cluster_name, index, query, scroll_timeout_ms,
        first_page_size. Unknown keys are ignored.
        """
        b = cls(mapper)
        if "hosts" in options:
            hosts = options["hosts"]
            if isinstance(hosts, str):
                hosts = [h.strip() for h in hosts.split(",") if h.strip()]
            b.set_hosts(hosts)
        if "cluster_name" in options:
            b.set_cluster_name(options["cluster_name"])
        if "index" in options:
            b.set_index(options["index"])
        if "query" in options:
            b.set_query(options["query"])
        if "scroll_timeout_ms" in options:
            b.set_scroll_timeout(int(options["scroll_timeout_ms"]))
        if "first_page_size" in options:
            b.set_first_page_size(int(options["first_page_size"]))
        return b


def build_elasticsearch_input_format(mapper: RecordMapper) -> ElasticsearchInputFormatBuilder:
    return ElasticsearchInputFormatBuilder(mapper)


# ------------ mappers ------------


def dict_record_mapper(doc: RawDocument, reuse: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy the raw document into `reuse` (cleared first) or into a new dict."""
    if reuse is None:
        return dict(doc)
    reuse.clear()
    reuse.update(doc)
    return reuse


def field_mapper(*fields: str) -> Callable[[RawDocument, Optional[Any]], Tuple[Any, ...]]:
    """Mapper producing a tuple of the given fields; missing fields become None."""

    def _map(doc: RawDocument, reuse: Optional[Any] = None) -> Tuple[Any, ...]:
        return tuple(doc.get(f) for f in fields)

    return _map


__all__ = [
    "ElasticsearchInputFormat",
    "ElasticsearchInputFormatBuilder",
    "build_elasticsearch_input_format",
    "dict_record_mapper",
    "field_mapper",
    "RecordMapper",
    "ClientFactory",
]
