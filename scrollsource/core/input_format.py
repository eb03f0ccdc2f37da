# scrollsource/core/input_format.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterator, List, Mapping, Optional, Sequence, TypeVar

from .base_stage import Stage
from .splits import DefaultSplitAssigner, InputSplit

T = TypeVar("T")

RawDocument = Dict[str, Any]
Record = Any
Batch = List[Record]


class InputFormat(Stage, ABC, Generic[T]):
    """
    Abstract base for everything a host engine can pull records from.
    The engine calls open(split) once, then polls has_more()/take_next() until
    has_more() is False, then calls close().
    """

    def configure(self, parameters: Mapping[str, Any]) -> None:  # noqa: B027
        """Receive engine-level parameters before any split is created (optional)."""
        pass

    @abstractmethod
    def create_input_splits(self, min_num_splits: int) -> Sequence[InputSplit]:
        ...

    def get_input_split_assigner(self, splits: Sequence[InputSplit]) -> DefaultSplitAssigner:
        return DefaultSplitAssigner(splits)

    @abstractmethod
    def has_more(self) -> bool:
        """True while take_next() can still produce a record. Never does I/O."""
        ...

    def reached_end(self) -> bool:
        return not self.has_more()

    @abstractmethod
    def take_next(self, reuse: Optional[T] = None) -> Optional[T]:
        """
        Produce the next record, filling `reuse` when given.
        Returns None once the input is exhausted.
        """
        ...

    def next_record(self, reuse: Optional[T] = None) -> Optional[T]:
        return self.take_next(reuse)

    def get_produced_type(self) -> Any:
        return None

    def get_statistics(self, cached_statistics: Any) -> Any:
        return cached_statistics

    def iter_records(self) -> Iterator[T]:
        """Drain an opened format one record at a time (streaming, bounded memory)."""
        while self.has_more():
            rec = self.take_next()
            if rec is None:
                return
            yield rec

    def iter_batches(self, batch_size: int) -> Iterator[Batch]:
        """Default batching helper built on iter_records(). Override if needed."""
        batch: Batch = []
        for rec in self.iter_records():
            batch.append(rec)
            if len(batch) >= batch_size:
                yield batch
                batch = []
        if batch:
            yield batch


__all__ = ["InputFormat", "RawDocument", "Record", "Batch"]
