from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""IssueRecord model for the ingestion issue log.

Row- and record-level problems never abort an ingestion. Each one is captured as
an IssueRecord and written as a JSON line with a fixed key set. ``row`` is the
1-based data line index; -1 marks file-level entries.
"""

__all__ = [
    "IssueRecord",
    "ROW_SKIPPED",
    "DATA_ERROR",
    "DATE_FALLBACK",
    "SUSPICION_FLAG",
    "INGEST_FAILED",
]

ROW_SKIPPED = "ROW_SKIPPED"
DATA_ERROR = "DATA_ERROR"
DATE_FALLBACK = "DATE_FALLBACK"
SUSPICION_FLAG = "SUSPICION_FLAG"
INGEST_FAILED = "INGEST_FAILED"


@dataclass(frozen=True)
class IssueRecord:
    """Structured issue entry for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: source file name
        row: data row index, -1 when not row specific
        issue_type: UPPER_SNAKE_CASE classification
        message: human readable detail
    """
    timestamp: str
    file: str
    row: int
    issue_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, issue_type: str, message: str) -> IssueRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return IssueRecord(
            timestamp=ts,
            file=file,
            row=row,
            issue_type=issue_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict のみ
        return json.dumps(asdict(self), ensure_ascii=False)
