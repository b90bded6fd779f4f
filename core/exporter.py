"""CSV-style text export of record lists."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Optional, Sequence

from core.bidding_record import BiddingRecord


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return '"' + value.replace('"', '""') + '"'
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_tabular_text(records: Sequence[BiddingRecord]) -> str:
    """Render records as comma-separated text with a header row.

    Headers come from the first record's fields. Embedded newlines in text
    values are written unescaped.
    """
    if not records:
        return ""

    headers = list(records[0].to_dict().keys())
    lines = [",".join(headers)]
    for record in records:
        row = record.to_dict()
        lines.append(",".join(_format_value(row.get(header)) for header in headers))
    return "\n".join(lines)


def export_filename(prefix: str, today: Optional[date] = None) -> str:
    stamp = (today or date.today()).isoformat()
    return f"{prefix}_{stamp}.csv"


def write_export(
    records: Sequence[BiddingRecord],
    directory: Path,
    prefix: str,
    *,
    today: Optional[date] = None,
) -> Optional[Path]:
    """Write the export file; returns None when there is nothing to export."""
    if not records:
        return None
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(prefix, today)
    path.write_text(to_tabular_text(records), encoding="utf-8")
    return path
