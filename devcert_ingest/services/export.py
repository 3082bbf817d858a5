from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from pathlib import Path

from ..models.record import DeveloperRecord

"""Cleaned record export (CSV, fixed column order).

Fields containing the delimiter, a quote or a line break are wrapped in quotes
with embedded quotes doubled; everything else is written bare.
"""

__all__ = [
    "EXPORT_HEADERS",
    "export_row",
    "export_records_csv",
    "write_export",
]

EXPORT_HEADERS: tuple[str, ...] = (
    "ID",
    "Email",
    "First Name",
    "Last Name",
    "Partner Code",
    "Country",
    "Progress",
    "Status",
    "Score",
    "Duration (Hrs)",
    "Risk Flag",
)


def _risk_label(record: DeveloperRecord) -> str:
    if record.is_suspicious:
        return f"Suspicious: {record.suspicion_reason}"
    if record.data_error:
        return "Data Error"
    return ""


def export_row(record: DeveloperRecord) -> list[str]:
    return [
        record.id,
        record.email,
        record.first_name,
        record.last_name,
        record.partner_code,
        record.country,
        f"{record.percentage_completed}%",
        record.final_grade.value,
        str(record.final_score),
        f"{record.duration_hours:.2f}" if record.duration_hours is not None else "",
        _risk_label(record),
    ]


def export_records_csv(records: Iterable[DeveloperRecord], delimiter: str = ",") -> str:
    buf = io.StringIO(newline="")
    # "\r\n" 終端: CR / LF を含むフィールドは必ずクォートされる
    writer = csv.writer(buf, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(EXPORT_HEADERS)
    for r in records:
        writer.writerow(export_row(r))
    return buf.getvalue()


def write_export(path: Path, records: Iterable[DeveloperRecord], delimiter: str = ",") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_records_csv(records, delimiter), encoding="utf-8", newline="")
    return path
