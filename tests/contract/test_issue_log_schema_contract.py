from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest

from devcert_ingest.cli.__main__ import main as cli_main
from devcert_ingest.models.issue_record import (
    DATA_ERROR,
    DATE_FALLBACK,
    INGEST_FAILED,
    ROW_SKIPPED,
    SUSPICION_FLAG,
)

"""Issue log JSON Lines schema contract."""

ISSUE_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["timestamp", "file", "row", "issue_type", "message"],
    "properties": {
        "timestamp": {"type": "string", "pattern": r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$"},
        "file": {"type": "string"},
        "row": {"type": "integer", "minimum": -1},
        "issue_type": {"enum": [ROW_SKIPPED, DATA_ERROR, DATE_FALLBACK, SUSPICION_FLAG, INGEST_FAILED]},
        "message": {"type": "string"},
    },
}


def test_schema_rejects_extra_key():
    record = {
        "timestamp": "2025-09-26T10:12:33Z",
        "file": "users.csv",
        "row": 2,
        "issue_type": ROW_SKIPPED,
        "message": "fewer than 2 fields",
        "extra": "not allowed",
    }
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(record, ISSUE_SCHEMA)


def test_cli_issue_log_lines_match_schema(temp_workdir: Path, sample_csv: Path):
    cli_main([str(sample_csv)])
    files = list((temp_workdir / "logs").glob("issues-*.log"))
    assert len(files) == 1
    lines = files[0].read_text(encoding="utf-8").splitlines()
    assert lines
    for line in lines:
        jsonschema.validate(json.loads(line), ISSUE_SCHEMA)


def test_fatal_issue_uses_row_minus_one(temp_workdir: Path):
    f = temp_workdir / "data" / "empty.csv"
    f.write_text("\n", encoding="utf-8")
    cli_main([str(f)])
    (log,) = (temp_workdir / "logs").glob("issues-*.log")
    record = json.loads(log.read_text(encoding="utf-8").splitlines()[0])
    jsonschema.validate(record, ISSUE_SCHEMA)
    assert record["issue_type"] == INGEST_FAILED
    assert record["row"] == -1
