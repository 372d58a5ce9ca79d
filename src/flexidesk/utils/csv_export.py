"""CSV export for table views.

Every cell is quoted and embedded quotes are doubled, so commas, quotes and
newlines inside values survive a round-trip through spreadsheet tools.
"""

import csv
import datetime as dt
import io
from collections.abc import Iterable, Mapping, Sequence
from typing import Any


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Render a header row plus one row per record.

    Args:
        headers: Column titles
        rows: Row values, one sequence per visible record

    Returns:
        CSV text with ``\\n`` line endings and no trailing newline
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(v) for v in row])
    return buffer.getvalue().rstrip("\n")


def records_to_csv(records: Sequence[Mapping[str, Any]]) -> str:
    """Render dict records, taking the headers from the first record's keys.

    An empty list yields a lone ``"id"`` header.
    """
    headers = list(records[0].keys()) if records else ["id"]
    return to_csv(headers, ([r.get(h) for h in headers] for r in records))


def export_filename(prefix: str, today: dt.date | None = None, separator: str = "_") -> str:
    """Build a download filename stamped with the current date.

    Example:
        export_filename("cancellations") -> "cancellations_2026-07-01.csv"
    """
    stamp = (today or dt.date.today()).isoformat()
    return f"{prefix}{separator}{stamp}.csv"
