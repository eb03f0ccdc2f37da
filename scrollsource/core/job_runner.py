# scrollsource/core/job_runner.py
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Optional

from .config import JobConfig
from .input_format import Batch, InputFormat

logger = logging.getLogger(__name__)

Sink = Callable[[Batch], Optional[int]]


class JobRunner:
    """
    Drives an InputFormat the way a host engine does:
      - configure, create splits, hand them out through the format's assigner
      - per split: open -> has_more/take_next until exhausted -> close
    The format is only ever touched from the calling thread; the thread pool is applied
    around the sink for throughput.
    """

    def __init__(self, cfg: JobConfig) -> None:
        self.cfg = cfg
        self._lock = threading.Lock()
        self._total = 0

    # ---------------------- public entry points ----------------------

    def run(self, input_format: InputFormat, sink: Sink) -> int:
        """Pipeline: InputFormat -> sink. Returns the number of records delivered."""
        self._total = 0
        input_format.configure(self.cfg.options)
        splits = input_format.create_input_splits(max(1, self.cfg.threading.workers))
        assigner = input_format.get_input_split_assigner(splits)
        logger.info("Job %r: %d input split(s)", self.cfg.name, len(splits))

        while True:
            split = assigner.get_next_input_split(task_id=0)
            if split is None:
                break
            try:
                input_format.open(split)
                batches = input_format.iter_batches(self.cfg.threading.batch_size)
                self._run_batches_parallel(batches, sink)
            finally:
                # always close, even when open() only partially succeeded
                input_format.close()

        logger.info("Job %r finished: %d record(s)", self.cfg.name, self._total)
        return self._total

    # ---------------------- internals ----------------------

    def _run_batches_parallel(self, batches: Iterable[Batch], sink: Sink) -> None:
        workers = max(1, self.cfg.threading.workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self._process_one, batch, sink) for batch in batches]
            for fut in as_completed(futures):
                n = fut.result()
                with self._lock:
                    self._total += n

    def _process_one(self, batch: Batch, sink: Sink) -> int:
        # a sink may report how many records it kept; default to the whole batch
        accepted = sink(batch)
        return len(batch) if accepted is None else accepted
