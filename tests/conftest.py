from collections.abc import Generator
from pathlib import Path
import threading
import time

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

from bulkimport.config import Settings
from bulkimport.database import build_engine


class RecordingExecutor:
    def __init__(self, *, fail_when: str | None = None, raise_when: str | None = None, delay: float = 0) -> None:
        self.fail_when = fail_when
        self.raise_when = raise_when
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def execute(self, statement_text: str) -> bool:
        with self._lock:
            self.calls.append(statement_text)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.raise_when and self.raise_when in statement_text:
                raise ConnectionError("connection reset")
            return not (self.fail_when and self.fail_when in statement_text)
        finally:
            with self._lock:
                self.in_flight -= 1


def make_records(count: int, *, sentinel_at: tuple[int, ...] = ()) -> list[dict[str, object]]:
    return [
        {"id": index, "name": "SENTINEL" if index in sentinel_at else f"user-{index}"}
        for index in range(count)
    ]


@pytest.fixture()
def recording_executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        app_name="bulkimport",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        db_driver="mysql+pymysql",
        db_server="localhost",
        db_port=3306,
        db_name="",
        db_user="",
        db_password="",
        log_level="INFO",
        batch_size=10,
        concurrency=2,
        progress_interval_seconds=1,
    )


@pytest.fixture()
def sqlite_engine(test_settings: Settings) -> Generator[Engine, None, None]:
    engine = build_engine(test_settings)
    metadata = MetaData()
    Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("name", String(64), nullable=False),
    )
    metadata.create_all(engine)
    yield engine
    engine.dispose()
