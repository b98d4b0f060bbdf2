"""
CSV export for the admin views.

Header row comes from the first record's fields and every value is quoted,
so the files open cleanly in spreadsheet tools.
"""

from __future__ import annotations

import csv
import io
from dataclasses import asdict, is_dataclass
from typing import Any, Iterable


def _as_row(record: Any) -> dict[str, Any]:
    if is_dataclass(record) and not isinstance(record, type):
        return asdict(record)
    if isinstance(record, dict):
        return record
    raise TypeError(f"cannot export {type(record).__name__} as CSV")


def records_to_csv(records: Iterable[Any]) -> str:
    """Render records (dataclasses or dicts) as CSV text; empty input gives ''."""
    rows = [_as_row(record) for record in records]
    if not rows:
        return ""
    header = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=header,
        quoting=csv.QUOTE_ALL,
        extrasaction="ignore",
        lineterminator="\n",
    )
    writer.writeheader()
    for row in rows:
        writer.writerow({key: "" if row.get(key) is None else row.get(key) for key in header})
    return buffer.getvalue()


def export_filename(prefix: str) -> str:
    """``admissions`` -> ``admissions.csv``."""
    return f"{prefix}.csv"
