from dataclasses import dataclass
from datetime import timedelta


BUILDING_PHASE = "building"
INSERTING_PHASE = "inserting"


@dataclass(frozen=True)
class Chunk:
    text: str
    size: int


@dataclass(frozen=True)
class ProcessUpdate:
    processed: int
    failed: int
    total: int
    phase: str

    @property
    def percentage(self) -> float:
        if self.total <= 0:
            return 1.0
        return self.processed / self.total


@dataclass(frozen=True)
class BatchProcessResult:
    duration: timedelta
    inserted: int
    failed: int
    skipped: int = 0
    cancelled: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.failed + self.skipped + self.cancelled
