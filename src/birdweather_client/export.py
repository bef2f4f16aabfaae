"""Writing query results to disk as CSV, JSON Lines or JSON."""

import csv
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable

from .core.results import FetchResult

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def write_jsonl(filepath: Path, records: Iterable[Dict[str, Any]]) -> int:
    """Write records one per line, each stamped with ``_ingested_at``.

    Returns:
        Number of records written.
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(filepath, "w", encoding="utf-8") as f:
        for record in records:
            line = dict(record)
            line["_ingested_at"] = _now()
            f.write(json.dumps(line, default=str) + "\n")
            count += 1
    return count


def write_csv(filepath: Path, result: FetchResult) -> int:
    """Write a result as CSV with its fixed column order; missing values are empty cells."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    columns = result.columns or (list(result.rows[0]) if result.rows else [])
    with open(filepath, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        for row in result.rows:
            writer.writerow({k: ("" if v is None else v) for k, v in row.items()})
    return len(result.rows)


def write_json(filepath: Path, result: FetchResult) -> int:
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    data = result.to_dict()
    data["_ingested_at"] = _now()
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
    return len(result.rows)


WRITERS = {
    ".csv": write_csv,
    ".jsonl": lambda path, result: write_jsonl(path, result.rows),
    ".json": write_json,
}


def write_result(filepath: Path, result: FetchResult) -> int:
    """Write a result, choosing the format from the file suffix."""
    filepath = Path(filepath)
    writer = WRITERS.get(filepath.suffix.lower())
    if writer is None:
        raise ValueError(f"Unsupported output format '{filepath.suffix}'. Use one of: {', '.join(WRITERS)}")
    count = writer(filepath, result)
    logger.info(f"Wrote {count} rows to {filepath}")
    return count
