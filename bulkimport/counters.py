from dataclasses import dataclass, field
import threading


class AtomicCounter:
    """Integer counter safe to add to from many worker threads.

    Writers serialize on a private lock; reads are a single attribute load and
    never take the lock, so a reader may observe a value that is one add behind.
    """

    def __init__(self, initial: int = 0) -> None:
        if initial < 0:
            raise ValueError("counter cannot start below zero")
        self._value = initial
        self._lock = threading.Lock()

    def add(self, amount: int = 1) -> int:
        if amount < 0:
            raise ValueError("counter can only be incremented")
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        return self._value


@dataclass
class RunCounters:
    inserted: AtomicCounter = field(default_factory=AtomicCounter)
    failed: AtomicCounter = field(default_factory=AtomicCounter)
    skipped: AtomicCounter = field(default_factory=AtomicCounter)
    cancelled: AtomicCounter = field(default_factory=AtomicCounter)

    def processed(self) -> int:
        return self.inserted.value + self.failed.value + self.skipped.value + self.cancelled.value
