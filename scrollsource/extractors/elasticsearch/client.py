# scrollsource/extractors/elasticsearch/client.py
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

from elasticsearch import ConnectionError as ESConnectionError
from elasticsearch import ApiError, Elasticsearch, NotFoundError
from scrollsource.core.config import Address
from scrollsource.core.errors import ClusterConnectionError, CursorExpiredError
from scrollsource.core.input_format import RawDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScrollPage:
    """
    One batch of hits from a search or scroll request.
    An empty `hits` list means the cursor is exhausted.
    """

    hits: List[RawDocument] = field(default_factory=list)
    # the server may hand back a new cursor with any response
    scroll_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self.hits)


class ClusterClient(Protocol):
    """What the scroll reader needs from a cluster connection."""

    def connected_nodes(self) -> List[str]: ...

    def search(
        self, index: str, query: str, scroll_timeout_ms: int, size: int
    ) -> ScrollPage: ...

    def continue_scroll(self, scroll_id: str, scroll_timeout_ms: int) -> ScrollPage: ...

    def close(self) -> None: ...


def to_url(address: Address) -> str:
    """("host", 9300) -> "http://host:9300"; URL strings pass through."""
    if isinstance(address, tuple):
        host, port = address
        return f"http://{host}:{port}"
    if "://" not in address:
        return f"http://{address}"
    return address


def wrap_query(query: str) -> Dict[str, Any]:
    """Ship an opaque serialized query as a `wrapper` query (base64 of the JSON text)."""
    encoded = base64.b64encode(query.encode("utf-8")).decode("ascii")
    return {"wrapper": {"query": encoded}}


def _body(resp: Any) -> Dict[str, Any]:
    # ObjectApiResponse keeps the decoded JSON on .body
    return getattr(resp, "body", resp)


def _lost_search_context(resp: Any) -> bool:
    """True when a shard reports its scroll context gone (HTTP 200 with shard failures)."""
    failures = _body(resp).get("_shards", {}).get("failures") or []
    for f in failures:
        reason = f.get("reason") or {}
        if reason.get("type") == "search_context_missing_exception":
            return True
    return False


def _page_from_response(resp: Any) -> ScrollPage:
    resp = _body(resp)
    hits = resp.get("hits", {}).get("hits", []) or []
    return ScrollPage(
        hits=[h.get("_source") or {} for h in hits],
        scroll_id=resp.get("_scroll_id"),
    )


def _node_names(es: Elasticsearch) -> List[str]:
    # nodes.info needs the monitor privilege; names are only used for logging
    try:
        resp = _body(es.nodes.info())
    except ApiError as e:
        logger.warning("Could not list cluster nodes (%s)", type(e).__name__)
        return []
    nodes = resp.get("nodes", {}) or {}
    return [n.get("name", node_id) for node_id, n in nodes.items()]


class ElasticsearchClusterClient:
    """
    ClusterClient backed by the official elasticsearch client.
    No retries here: every error reaches the caller of the request that caused it.
    """

    def __init__(self, es: Elasticsearch, node_names: Optional[List[str]] = None) -> None:
        self._es = es
        self._node_names = list(node_names or [])

    @classmethod
    def connect(cls, hosts: Sequence[Address], cluster_name: str) -> "ElasticsearchClusterClient":
        """Open a client and make sure it talks to a live node of `cluster_name`."""
        urls = [to_url(h) for h in hosts]
        es = Elasticsearch(urls)
        try:
            if not es.ping():
                raise ClusterConnectionError(
                    f"Elasticsearch client is not connected to any nodes of {urls}"
                )
            actual = _body(es.info()).get("cluster_name")
            if actual != cluster_name:
                raise ClusterConnectionError(
                    f"Expected cluster {cluster_name!r} at {urls}, found {actual!r}"
                )
            node_names = _node_names(es)
        except ESConnectionError as e:
            es.close()
            raise ClusterConnectionError(f"Could not reach any node of {urls}: {e}") from e
        except Exception:
            es.close()
            raise

        logger.info(
            "Created Elasticsearch client for cluster %r with connected nodes %s",
            cluster_name,
            node_names,
        )
        return cls(es, node_names=node_names)

    def connected_nodes(self) -> List[str]:
        """Node names looked up at connect time; empty when the user may not list nodes."""
        return list(self._node_names)

    def search(self, index: str, query: str, scroll_timeout_ms: int, size: int) -> ScrollPage:
        resp = self._es.search(
            index=index,
            query=wrap_query(query),
            scroll=f"{scroll_timeout_ms}ms",
            size=size,
        )
        return _page_from_response(resp)

    def continue_scroll(self, scroll_id: str, scroll_timeout_ms: int) -> ScrollPage:
        try:
            resp = self._es.scroll(scroll_id=scroll_id, scroll=f"{scroll_timeout_ms}ms")
        except NotFoundError as e:
            # search_context_missing_exception: the cursor timed out server-side
            raise CursorExpiredError(scroll_id) from e
        if _lost_search_context(resp):
            raise CursorExpiredError(
                scroll_id, f"Scroll cursor lost on some shards: {scroll_id!r}"
            )
        return _page_from_response(resp)

    def close(self) -> None:
        self._es.close()


__all__ = [
    "ScrollPage",
    "ClusterClient",
    "ElasticsearchClusterClient",
    "to_url",
    "wrap_query",
]
