from concurrent.futures import ThreadPoolExecutor

import pytest

from bulkimport.counters import AtomicCounter, RunCounters
from bulkimport.progress import ProgressReporter
from bulkimport.schemas import ProcessUpdate


def test_atomic_counter_has_no_lost_updates() -> None:
    counter = AtomicCounter()

    def add_many() -> None:
        for _ in range(1000):
            counter.add(3)

    with ThreadPoolExecutor(max_workers=8) as pool:
        for _ in range(8):
            pool.submit(add_many)

    assert counter.value == 8 * 1000 * 3


def test_atomic_counter_only_increments() -> None:
    counter = AtomicCounter()

    with pytest.raises(ValueError):
        counter.add(-1)
    assert counter.value == 0


def test_run_counters_processed_sums_every_outcome() -> None:
    counters = RunCounters()
    counters.inserted.add(5)
    counters.failed.add(2)
    counters.skipped.add(1)
    counters.cancelled.add(3)

    assert counters.processed() == 11


def test_percentage_handles_empty_total() -> None:
    assert ProcessUpdate(processed=0, failed=0, total=0, phase="inserting").percentage == 1.0
    assert ProcessUpdate(processed=1, failed=0, total=4, phase="inserting").percentage == 0.25


def test_stop_emits_exact_final_update() -> None:
    updates: list[ProcessUpdate] = []
    counter = AtomicCounter()
    reporter = ProgressReporter(
        updates.append,
        total=10,
        phase="inserting",
        read_processed=lambda: counter.value,
        interval_seconds=60,
    )

    reporter.start()
    counter.add(10)
    reporter.stop()

    assert updates == [ProcessUpdate(processed=10, failed=0, total=10, phase="inserting")]


def test_tick_reads_current_counters() -> None:
    updates: list[ProcessUpdate] = []
    counter = AtomicCounter(3)
    failed = AtomicCounter(1)
    reporter = ProgressReporter(
        updates.append,
        total=8,
        phase="building",
        read_processed=lambda: counter.value,
        read_failed=lambda: failed.value,
    )

    reporter.tick()

    assert updates[-1].processed == 3
    assert updates[-1].failed == 1
    assert updates[-1].percentage == 0.375


def test_reporter_without_callback_is_silent() -> None:
    reporter = ProgressReporter(None, total=1, phase="inserting", read_processed=lambda: 1)

    with reporter:
        pass

    assert reporter.snapshot().processed == 1


def test_aborted_phase_gets_no_final_update() -> None:
    updates: list[ProcessUpdate] = []

    with pytest.raises(RuntimeError):
        with ProgressReporter(updates.append, total=1, phase="building", read_processed=lambda: 0, interval_seconds=60):
            raise RuntimeError("boom")

    assert updates == []
