from collections.abc import Callable
import logging

from apscheduler.schedulers.background import BackgroundScheduler

from bulkimport.schemas import ProcessUpdate


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProcessUpdate], None]


class ProgressReporter:
    """Report progress of one phase on a fixed cadence and once at the end.

    Ticks run on an APScheduler background thread and only read the counters
    through the supplied readers, so workers are never blocked by reporting.
    ``stop()`` waits for an in-flight tick and then emits the final update from
    the calling thread, which is the only update guaranteed to be exact.
    """

    def __init__(
        self,
        callback: ProgressCallback | None,
        *,
        total: int,
        phase: str,
        read_processed: Callable[[], int],
        read_failed: Callable[[], int] = lambda: 0,
        interval_seconds: float = 1.0,
    ) -> None:
        self.callback = callback
        self.total = total
        self.phase = phase
        self.read_processed = read_processed
        self.read_failed = read_failed
        self.interval_seconds = interval_seconds
        self._scheduler: BackgroundScheduler | None = None

    def snapshot(self) -> ProcessUpdate:
        return ProcessUpdate(
            processed=self.read_processed(),
            failed=self.read_failed(),
            total=self.total,
            phase=self.phase,
        )

    def tick(self) -> None:
        if self.callback is None:
            return
        self.callback(self.snapshot())

    def start(self) -> None:
        if self.callback is None or self._scheduler is not None:
            return

        scheduler = BackgroundScheduler(timezone="UTC")
        scheduler.add_job(
            self.tick,
            "interval",
            seconds=self.interval_seconds,
            id=f"progress_{self.phase}",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.debug("progress reporter started", extra={"phase": self.phase, "total": self.total})

    def stop(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=True)
            self._scheduler = None
        self.tick()

    def __enter__(self) -> "ProgressReporter":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            # Aborted phases get no terminal update.
            if self._scheduler is not None:
                self._scheduler.shutdown(wait=True)
                self._scheduler = None
            return
        self.stop()
