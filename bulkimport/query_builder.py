from collections.abc import Callable, Sequence
import json

from bulkimport.errors import UnknownColumnError
from bulkimport.extraction import ExtractionPolicy, Record


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def quote_value(value: object) -> str:
    return "'" + stringify_value(value).replace("'", "''") + "'"


def stringify_value(value: object) -> str:
    if value is None:
        # JSON null renders as an empty string, not SQL NULL.
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def build_insert_query(
    table: str,
    columns: Sequence[str] | None,
    record: Record,
    *,
    record_index: int = 0,
) -> str:
    resolved = list(columns) if columns else list(record)

    values: list[str] = []
    for column in resolved:
        if column not in record:
            raise UnknownColumnError(column, record_index)
        values.append(quote_value(record[column]))

    column_list = ", ".join(quote_identifier(column) for column in resolved)
    value_list = ", ".join(values)
    return f"INSERT INTO {table} ({column_list}) VALUES ({value_list});"


def build_insert_queries(
    table: str,
    columns: Sequence[str] | None,
    records: Sequence[object],
    policy: ExtractionPolicy,
    on_record: Callable[[bool], None] | None = None,
) -> tuple[list[str], int]:
    """Build one statement per extractable record.

    Returns the statements in input order and the number of records skipped
    because the extraction policy found nothing to insert. ``on_record`` is
    told after each record whether it produced a statement.
    """
    statements: list[str] = []
    skipped = 0

    for index, item in enumerate(records):
        record = policy.extract(item)
        if record is None:
            skipped += 1
            if on_record:
                on_record(False)
            continue

        statements.append(build_insert_query(table, columns, record, record_index=index))
        if on_record:
            on_record(True)

    return statements, skipped
