# scrollsource/core/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .errors import ConfigurationError

# "http://host:9200" or ("host", 9200)
Address = Union[str, Tuple[str, int]]

DEFAULT_CLUSTER_NAME = "elasticsearch"
DEFAULT_SCROLL_TIMEOUT_MS = 60000
DEFAULT_FIRST_PAGE_SIZE = 1


@dataclass(frozen=True)
class ScrollConfig:
    """
    Everything a scroll reader needs for one query.
    Built by ElasticsearchInputFormatBuilder; checked by validate() when the reader opens.
    """

    hosts: Tuple[Address, ...] = ()
    cluster_name: str = DEFAULT_CLUSTER_NAME
    index: Optional[str] = None
    query: Optional[str] = None  # opaque serialized query
    scroll_timeout_ms: int = DEFAULT_SCROLL_TIMEOUT_MS
    # size of the initial search; the server keeps it for every scroll page after it
    first_page_size: int = DEFAULT_FIRST_PAGE_SIZE
    mapper: Optional[Callable[..., Any]] = None
    produced_type: Any = None

    def validate(self) -> None:
        if not self.hosts:
            raise ConfigurationError("At least one cluster host is required")
        if not self.index:
            raise ConfigurationError("Target index name is required")
        if not self.query:
            raise ConfigurationError("Query expression is required")
        if self.mapper is None:
            raise ConfigurationError("Record mapper is required")
        if self.scroll_timeout_ms <= 0:
            raise ConfigurationError(
                f"Scroll timeout must be positive, got {self.scroll_timeout_ms} ms"
            )
        if self.first_page_size <= 0:
            raise ConfigurationError(
                f"First page size must be positive, got {self.first_page_size}"
            )


@dataclass
class ThreadingConfig:
    """Parallelism knobs for the runner."""

    workers: int = 4  # threads for the sink
    batch_size: int = 2000  # records handed to the sink per call


@dataclass
class JobConfig:
    """
    Minimal job config the runner understands.
    The input format is created by your code; the runner only needs behavior knobs.
    """

    name: str = "job"
    threading: ThreadingConfig = field(default_factory=ThreadingConfig)
    # Free-form: passed to InputFormat.configure()
    options: Dict[str, Any] = field(default_factory=dict)


def normalize_hosts(hosts: Sequence[Address]) -> Tuple[Address, ...]:
    """Freeze a host list, dropping duplicates while keeping order."""
    seen: List[Address] = []
    for h in hosts:
        if isinstance(h, list):
            h = tuple(h)
        if h not in seen:
            seen.append(h)
    return tuple(seen)


__all__ = [
    "Address",
    "ScrollConfig",
    "ThreadingConfig",
    "JobConfig",
    "normalize_hosts",
    "DEFAULT_CLUSTER_NAME",
    "DEFAULT_SCROLL_TIMEOUT_MS",
    "DEFAULT_FIRST_PAGE_SIZE",
]
