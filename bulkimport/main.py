import argparse
from dataclasses import replace
import logging
from pathlib import Path
import sys
from typing import NoReturn, TextIO

from sqlalchemy.exc import DBAPIError
from tqdm import tqdm

from bulkimport.config import Settings, get_settings
from bulkimport.database import connect, empty_table
from bulkimport.engine import BatchEngine
from bulkimport.errors import ConfigurationError, ConnectionFailedError
from bulkimport.executor import DryRunExecutor, Executor, SqlAlchemyExecutor
from bulkimport.records import load_records, write_result_report
from bulkimport.schemas import ProcessUpdate


logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk import a JSON array of records into a SQL table")
    parser.add_argument("input_file", help="JSON array file, or .jsonl with one object per line")
    parser.add_argument("-t", "--table", required=True, help="The table to import to")
    parser.add_argument("-s", "--server", help="The server to connect to")
    parser.add_argument("--port", type=int, help="The port to connect to the server. Default is 3306")
    parser.add_argument("-d", "--database", help="The database to connect to")
    parser.add_argument("-u", "--username", help="The username to connect with")
    parser.add_argument("-p", "--password", help="The password to connect with")
    parser.add_argument(
        "-c",
        "--columns",
        help="Comma separated columns to import; all columns of each record when omitted",
    )
    parser.add_argument("-e", "--element", help="Import this nested object of each record instead of the record")
    parser.add_argument("-b", "--batch", type=int, help="Statements sent per execution. Default is 1000")
    parser.add_argument("-n", "--processes", type=int, help="Chunks executed in parallel. Default is the CPU count")
    parser.add_argument("-j", "--json", help="Write the run results to this JSON file")
    parser.add_argument("--timeout", type=float, help="Cancel chunks not started after this many seconds")
    parser.add_argument("--silent", action="store_true", help="Do not print progress or the summary line")
    parser.add_argument("--empty", action="store_true", help="Delete all rows from the table before inserting")
    parser.add_argument(
        "--test",
        action="store_true",
        help="Connect and build every statement without inserting anything",
    )
    return parser.parse_args(argv)


def parse_columns(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    columns = [column.strip() for column in raw.split(",") if column.strip()]
    return columns or None


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {
        "db_server": args.server,
        "db_port": args.port,
        "db_name": args.database,
        "db_user": args.username,
        "db_password": args.password,
        "batch_size": args.batch,
        "concurrency": args.processes,
    }
    return replace(settings, **{key: value for key, value in overrides.items() if value is not None})


class ProgressBars:
    """Render each progress phase as its own tqdm bar."""

    def __init__(self, file: TextIO | None = None) -> None:
        self.file = file
        self._bars: dict[str, tqdm] = {}

    def __call__(self, update: ProcessUpdate) -> None:
        bar = self._bars.get(update.phase)
        if bar is None:
            bar = tqdm(total=update.total, desc=update.phase.capitalize(), unit="records", file=self.file)
            self._bars[update.phase] = bar

        bar.total = update.total
        bar.n = update.processed
        bar.set_postfix(failed=update.failed, refresh=False)
        bar.refresh()
        if update.processed >= update.total:
            bar.close()
            del self._bars[update.phase]

    def close(self) -> None:
        for bar in self._bars.values():
            bar.close()
        self._bars.clear()


def fail(message: str) -> NoReturn:
    print(message, file=sys.stderr)
    raise SystemExit(1)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    settings = apply_overrides(get_settings(), args)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        records = load_records(Path(args.input_file))
    except (FileNotFoundError, ValueError) as exc:
        logger.error("unable to read input", extra={"input_file": args.input_file})
        fail(f"unable to read input: {exc}")

    try:
        engine = connect(settings)
    except ConnectionFailedError as exc:
        logger.error("database connection failed")
        fail(str(exc))

    executor: Executor = DryRunExecutor() if args.test else SqlAlchemyExecutor(engine)
    progress = None if args.silent else ProgressBars()
    try:
        if args.empty and not args.test:
            empty_table(engine, args.table)

        result = BatchEngine(executor, progress_interval_seconds=settings.progress_interval_seconds).process(
            table=args.table,
            columns=parse_columns(args.columns),
            element_key=args.element,
            chunk_size=settings.batch_size,
            concurrency=settings.concurrency,
            records=records,
            on_update=progress,
            timeout_seconds=args.timeout,
        )
    except ConfigurationError as exc:
        logger.error("batch process aborted", extra={"table": args.table})
        fail(f"configuration error: {exc}")
    except DBAPIError as exc:
        logger.error("unable to empty table", extra={"table": args.table})
        fail(f"unable to empty table {args.table}: {exc.orig}")
    finally:
        if progress is not None:
            progress.close()
        engine.dispose()

    if args.json:
        write_result_report(Path(args.json), result, table=args.table, input_file=args.input_file)

    if not args.silent:
        print(
            "table={table} inserted={inserted} failed={failed} skipped={skipped} cancelled={cancelled} duration={duration:.3f}s test={test}".format(
                table=args.table,
                inserted=result.inserted,
                failed=result.failed,
                skipped=result.skipped,
                cancelled=result.cancelled,
                duration=result.duration.total_seconds(),
                test=args.test,
            )
        )


if __name__ == "__main__":
    main()
