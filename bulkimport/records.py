import json
from pathlib import Path

from bulkimport.schemas import BatchProcessResult


def load_records(input_path: Path) -> list[object]:
    if not input_path.exists():
        raise FileNotFoundError(f"input file not found: {input_path}")

    with input_path.open("r", encoding="utf-8") as infile:
        if input_path.suffix == ".jsonl":
            records: list[object] = []
            for line in infile:
                line = line.strip()
                if not line:
                    continue
                records.append(json.loads(line))
            return records

        payload = json.load(infile)

    if not isinstance(payload, list):
        raise ValueError(f"input file must contain a JSON array: {input_path}")
    return payload


def write_json(path: Path, payload: dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as outfile:
        json.dump(payload, outfile, indent=2, sort_keys=True)
        outfile.write("\n")


def write_result_report(path: Path, result: BatchProcessResult, *, table: str, input_file: str) -> None:
    write_json(
        path,
        {
            "table": table,
            "input_file": input_file,
            "duration_seconds": result.duration.total_seconds(),
            "inserted": result.inserted,
            "failed": result.failed,
            "skipped": result.skipped,
            "cancelled": result.cancelled,
            "total": result.total,
        },
    )
