"""CSV export of module rows.

Output is comma-delimited, one line per row joined with ``\\n``; the last line
has no terminator. Null cells are empty, even in a single-column row.
Fields containing a comma, a double quote or a line break are wrapped in
double quotes with inner quotes doubled. An empty row set exports as an
empty string, not a header line.
"""

import csv
import io
import json
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Union

from insights.core import ModuleKey

TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def format_cell(value: Any) -> str:
    """Render one cell value as text."""
    if value is None:
        return ""
    if isinstance(value, dict):
        # Expanded join, e.g. {"name": "Mouse ROG"}
        for key in ("name", "customer_name", "id"):
            if value.get(key) is not None:
                return str(value[key])
        return json.dumps(value, default=str, separators=(",", ":"))
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), default=str, separators=(",", ":"))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def export_csv(rows: List[Dict[str, Any]], exclude: Iterable[str] = ()) -> str:
    """
    Convert rows to CSV text.

    Args:
        rows: Rows to export; the first row decides the header
        exclude: Extra columns to leave out besides created_at/updated_at

    Returns:
        CSV text, "" for no rows
    """
    if not rows:
        return ""

    skipped = set(TIMESTAMP_COLUMNS) | set(exclude)
    headers = [key for key in rows[0].keys() if key not in skipped]

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        cells = [format_cell(row.get(header)) for header in headers]
        if cells == [""]:
            # csv writes a lone empty field as "", a null cell stays empty
            buffer.write("\n")
        else:
            writer.writerow(cells)

    return buffer.getvalue()[:-1]


def export_filename(key: Union[ModuleKey, str], day: date) -> str:
    """Download name for an export, e.g. sales_export_2024-05-01.csv."""
    key = key.value if isinstance(key, ModuleKey) else key
    return f"{key}_export_{day.isoformat()}.csv"
