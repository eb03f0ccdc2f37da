# scrollsource/core/splits.py
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputSplit:
    """One unit of work handed to a reader by the host engine."""

    split_number: int
    total_number_of_splits: int


def create_single_split() -> List[InputSplit]:
    """The whole query as one split."""
    return [InputSplit(split_number=0, total_number_of_splits=1)]


class DefaultSplitAssigner:
    """
    Hands splits out in the order they were given, no locality or balancing.
    """

    def __init__(self, splits: Iterable[InputSplit]) -> None:
        self._remaining: Deque[InputSplit] = deque(splits)

    def get_next_input_split(
        self, host: Optional[str] = None, task_id: int = 0
    ) -> Optional[InputSplit]:
        if not self._remaining:
            logger.debug("No more input splits available (task %d)", task_id)
            return None
        split = self._remaining.popleft()
        logger.debug("Assigning split %s to task %d on host %s", split, task_id, host)
        return split

    def return_input_splits(self, splits: Iterable[InputSplit], task_id: int = 0) -> None:
        """Put splits of a failed task back for reassignment."""
        for split in splits:
            logger.debug("Split %s returned by task %d", split, task_id)
            self._remaining.append(split)

    def __len__(self) -> int:
        return len(self._remaining)


__all__ = ["InputSplit", "create_single_split", "DefaultSplitAssigner"]
