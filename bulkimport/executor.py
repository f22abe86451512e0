import logging
import threading
from typing import Protocol

from sqlalchemy.engine import Engine


logger = logging.getLogger(__name__)


class Executor(Protocol):
    def execute(self, statement_text: str) -> bool: ...


class SqlAlchemyExecutor:
    """Run chunk text on a pooled connection checked out for the call.

    Concurrent callers each hold their own DBAPI connection, so no connection
    ever sees overlapping statements. Any DBAPI error is reported as ``False``.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._dbapi_error = engine.dialect.loaded_dbapi.Error

    def execute(self, statement_text: str) -> bool:
        connection = self.engine.raw_connection()
        try:
            try:
                if self.engine.dialect.name == "sqlite":
                    self._execute_script(connection, statement_text)
                else:
                    self._execute_multi(connection, statement_text)
            except self._dbapi_error as exc:
                connection.rollback()
                logger.warning("chunk execution failed", extra={"error": str(exc)})
                return False
            return True
        finally:
            connection.close()

    def _execute_script(self, connection, statement_text: str) -> None:
        # sqlite3 only runs multiple statements through executescript, which
        # autocommits unless the script opens its own transaction.
        connection.driver_connection.executescript(f"BEGIN;\n{statement_text}\nCOMMIT;")

    def _execute_multi(self, connection, statement_text: str) -> None:
        cursor = connection.cursor()
        try:
            cursor.execute(statement_text)
            if self.engine.dialect.name == "mysql":
                # Errors in later statements only surface while draining results.
                while cursor.nextset():
                    pass
        finally:
            cursor.close()
        connection.commit()


class DryRunExecutor:
    """Accepts every chunk without touching the database."""

    def __init__(self) -> None:
        self.calls = 0
        self._lock = threading.Lock()

    def execute(self, statement_text: str) -> bool:
        with self._lock:
            self.calls += 1
        logger.debug("dry run chunk", extra={"statements": statement_text.count("\n") + 1})
        return True
