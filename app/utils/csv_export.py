"""CSV serialisation of export rows."""

from __future__ import annotations

import csv
import io
import json
from typing import Any, Mapping, Sequence


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def rows_to_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    """Serialise rows to CSV using the first row's keys as the header.

    Values containing a delimiter, quote or newline are quoted; nested
    values are JSON-encoded; ``None`` becomes an empty cell. Lines are
    separated by ``\\n`` with no trailing newline. No rows give ``""``.
    """
    if not rows:
        return ""

    headers = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=",", lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(row.get(header)) for header in headers])

    return buffer.getvalue()[:-1]
