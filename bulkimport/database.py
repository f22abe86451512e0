import logging

from pymysql.constants import CLIENT
from sqlalchemy import URL, create_engine, make_url, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, DBAPIError

from bulkimport.config import Settings
from bulkimport.errors import ConnectionFailedError


logger = logging.getLogger(__name__)

NO_BACKSLASH_ESCAPES = "SET SESSION sql_mode = CONCAT(@@sql_mode, ',NO_BACKSLASH_ESCAPES')"


def database_url(settings: Settings) -> URL:
    if settings.database_url:
        return make_url(settings.database_url)
    return URL.create(
        settings.db_driver,
        username=settings.db_user or None,
        password=settings.db_password or None,
        host=settings.db_server,
        port=settings.db_port,
        database=settings.db_name or None,
    )


def connect_args_for(url: URL) -> dict[str, object]:
    connect_args: dict[str, object] = {}
    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
    elif url.get_backend_name() == "mysql" and url.get_driver_name() == "pymysql":
        connect_args["client_flag"] = CLIENT.MULTI_STATEMENTS
        # Statements escape quotes by doubling them only, so a backslash must stay literal.
        connect_args["init_command"] = NO_BACKSLASH_ESCAPES
    return connect_args


def build_engine(settings: Settings) -> Engine:
    url = database_url(settings)
    engine_args: dict[str, object] = {}

    if url.get_backend_name() != "sqlite":
        # One pooled connection per worker.
        engine_args["pool_size"] = max(settings.concurrency, 1)
        engine_args["max_overflow"] = 0

    return create_engine(url, connect_args=connect_args_for(url), **engine_args)


def connect(settings: Settings) -> Engine:
    try:
        url = database_url(settings)
    except ArgumentError as exc:
        # The unparsable URL may carry the password, so it is not echoed.
        raise ConnectionFailedError("unable to parse DATABASE_URL") from exc

    safe_url = url.render_as_string(hide_password=True)
    try:
        engine = build_engine(settings)
    except ArgumentError as exc:
        raise ConnectionFailedError(f"unable to create engine for {safe_url}: {exc}") from exc

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except DBAPIError as exc:
        engine.dispose()
        raise ConnectionFailedError(f"unable to connect to {safe_url}: {exc.orig}") from exc

    logger.info("connected to database", extra={"url": safe_url})
    return engine


def empty_table(engine: Engine, table_name: str) -> int:
    # Same raw table text as the INSERT statements, so qualified names resolve alike.
    with engine.begin() as conn:
        result = conn.exec_driver_sql(f"DELETE FROM {table_name}")
    logger.info("emptied table before insertion", extra={"table": table_name, "rows": result.rowcount})
    return result.rowcount
