from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import timedelta
import logging
import threading
import time

from bulkimport.chunker import chunk_statements
from bulkimport.counters import AtomicCounter, RunCounters
from bulkimport.errors import ConfigurationError, NoStatementsError
from bulkimport.executor import Executor
from bulkimport.extraction import resolve_extraction
from bulkimport.progress import ProgressCallback, ProgressReporter
from bulkimport.query_builder import build_insert_queries
from bulkimport.schemas import BUILDING_PHASE, INSERTING_PHASE, BatchProcessResult, Chunk


logger = logging.getLogger(__name__)


class BatchEngine:
    def __init__(self, executor: Executor, *, progress_interval_seconds: float = 1.0) -> None:
        self.executor = executor
        self.progress_interval_seconds = progress_interval_seconds

    def process(
        self,
        *,
        table: str,
        columns: Sequence[str] | None,
        element_key: str | None,
        chunk_size: int,
        concurrency: int,
        records: Sequence[object],
        on_update: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        timeout_seconds: float | None = None,
    ) -> BatchProcessResult:
        """Insert ``records`` into ``table`` and return the tallied outcome.

        Configuration problems (bad chunk size or concurrency, a column missing
        from a record, nothing to insert) raise before the executor is called.
        Failed chunks are counted, never raised. Chunks not yet started when
        ``cancel_event`` is set or ``timeout_seconds`` elapses are counted as
        cancelled.
        """
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk size must be a positive integer, got {chunk_size}")
        if concurrency <= 0:
            raise ConfigurationError(f"concurrency must be a positive integer, got {concurrency}")

        started = time.perf_counter()
        deadline = time.monotonic() + timeout_seconds if timeout_seconds is not None else None
        total = len(records)
        counters = RunCounters()

        statements = self._build_statements(table, columns, element_key, records, counters, on_update)

        chunks = chunk_statements(statements, chunk_size)
        if not chunks:
            raise NoStatementsError(f"no insert statements were generated from {total} records")

        logger.info(
            "executing chunks",
            extra={"table": table, "statements": len(statements), "chunks": len(chunks), "concurrency": concurrency},
        )

        def should_stop() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                return True
            return deadline is not None and time.monotonic() >= deadline

        with ProgressReporter(
            on_update,
            total=total,
            phase=INSERTING_PHASE,
            read_processed=counters.processed,
            read_failed=lambda: counters.failed.value,
            interval_seconds=self.progress_interval_seconds,
        ):
            self._execute_chunks(chunks, concurrency, counters, should_stop)

        result = BatchProcessResult(
            duration=timedelta(seconds=time.perf_counter() - started),
            inserted=counters.inserted.value,
            failed=counters.failed.value,
            skipped=counters.skipped.value,
            cancelled=counters.cancelled.value,
        )
        logger.info(
            "batch process finished",
            extra={
                "table": table,
                "inserted": result.inserted,
                "failed": result.failed,
                "skipped": result.skipped,
                "cancelled": result.cancelled,
                "duration_seconds": result.duration.total_seconds(),
            },
        )
        return result

    def _build_statements(
        self,
        table: str,
        columns: Sequence[str] | None,
        element_key: str | None,
        records: Sequence[object],
        counters: RunCounters,
        on_update: ProgressCallback | None,
    ) -> list[str]:
        policy = resolve_extraction(element_key)
        built = AtomicCounter()

        with ProgressReporter(
            on_update,
            total=len(records),
            phase=BUILDING_PHASE,
            read_processed=lambda: built.value,
            interval_seconds=self.progress_interval_seconds,
        ):
            statements, skipped = build_insert_queries(
                table,
                columns,
                records,
                policy,
                on_record=lambda _produced: built.add(),
            )

        if skipped:
            counters.skipped.add(skipped)
            logger.warning(
                "records skipped during extraction",
                extra={"skipped": skipped, "element_key": element_key},
            )
        return statements

    def _execute_chunks(
        self,
        chunks: list[Chunk],
        concurrency: int,
        counters: RunCounters,
        should_stop: Callable[[], bool],
    ) -> None:
        if concurrency == 1 or len(chunks) == 1:
            for chunk in chunks:
                self._run_chunk(chunk, counters, should_stop)
            return

        workers = min(concurrency, len(chunks))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bulkimport") as pool:
            futures = [pool.submit(self._run_chunk, chunk, counters, should_stop) for chunk in chunks]
            for future in as_completed(futures):
                future.result()

    def _run_chunk(self, chunk: Chunk, counters: RunCounters, should_stop: Callable[[], bool]) -> None:
        if should_stop():
            counters.cancelled.add(chunk.size)
            return

        try:
            succeeded = self.executor.execute(chunk.text)
        except Exception:
            logger.exception("executor raised while running chunk", extra={"statements": chunk.size})
            succeeded = False

        # A chunk is counted as a unit, never partially.
        if succeeded:
            counters.inserted.add(chunk.size)
        else:
            counters.failed.add(chunk.size)
