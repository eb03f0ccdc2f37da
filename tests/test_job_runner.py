import threading
from typing import Any, List

import pytest

from scrollsource.core.config import JobConfig, ThreadingConfig
from scrollsource.core.job_runner import JobRunner


def test_runner_delivers_all_records_in_batches(make_reader, make_docs) -> None:
    reader, client, _ = make_reader([make_docs(1, 2, 3), make_docs(4, 5), []])
    received: List[List[Any]] = []
    lock = threading.Lock()

    def sink(batch: List[Any]) -> None:
        with lock:
            received.append(batch)

    cfg = JobConfig(name="scan", threading=ThreadingConfig(workers=2, batch_size=2))
    total = JobRunner(cfg).run(reader, sink)

    assert total == 5
    ids = sorted(r["id"] for batch in received for r in batch)
    assert ids == [1, 2, 3, 4, 5]
    assert all(len(b) <= 2 for b in received)
    # exactly one split, opened once and closed once
    assert len(client.search_calls) == 1
    assert client.close_calls == 1


def test_runner_counts_what_sink_reports(make_reader, make_docs) -> None:
    reader, _, _ = make_reader([make_docs(1, 2, 3, 4), []])

    cfg = JobConfig(threading=ThreadingConfig(workers=1, batch_size=10))
    total = JobRunner(cfg).run(reader, lambda batch: len(batch) - 1)

    assert total == 3


def test_runner_closes_format_when_open_fails(make_reader) -> None:
    reader, client, _ = make_reader([[]], fail_search=RuntimeError("index_not_found"))

    with pytest.raises(RuntimeError):
        JobRunner(JobConfig()).run(reader, lambda batch: None)
    assert client.close_calls == 1


def test_runner_on_empty_result(make_reader) -> None:
    reader, _, _ = make_reader([[]])
    calls: List[Any] = []

    assert JobRunner(JobConfig()).run(reader, calls.append) == 0
    assert calls == []


def test_runner_count_is_per_run(make_reader, make_docs) -> None:
    reader, client, _ = make_reader([make_docs(1, 2, 3), []])
    runner = JobRunner(JobConfig(threading=ThreadingConfig(workers=1, batch_size=2)))

    assert runner.run(reader, lambda batch: None) == 3
    assert runner.run(reader, lambda batch: None) == 3
    assert client.close_calls == 2
