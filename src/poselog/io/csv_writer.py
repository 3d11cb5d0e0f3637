# src/poselog/io/csv_writer.py
import csv  # built-in CSV handling module
import io
from typing import Dict, Optional, Sequence

from ..config import CSV_NULL_TOKEN
from ..errors import EmptyDatasetError, SchemaMismatchError


def export_csv(rows: Sequence[Dict], null_token: str = CSV_NULL_TOKEN) -> bytes:
    """Serialize logged frames; columns come from the first frame's keys, in order."""
    if not rows:
        raise EmptyDatasetError("No logged frames to export")
    fieldnames = list(rows[0].keys())
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(fieldnames)
    for i, r in enumerate(rows):
        if list(r.keys()) != fieldnames:  # DictWriter would silently reorder; refuse instead
            raise SchemaMismatchError(f"row {i} columns differ from header")
        w.writerow([_cell(r[k], null_token) for k in fieldnames])
    return buf.getvalue().encode("utf-8")


def write_csv(path: str, rows: Sequence[Dict], null_token: str = CSV_NULL_TOKEN) -> str:
    data = export_csv(rows, null_token)
    with open(path, "wb") as f:
        f.write(data)
    return path


def _cell(value, null_token: str) -> Optional[object]:
    return null_token if value is None else value
