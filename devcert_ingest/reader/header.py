from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from devcert_ingest.models.column_map import ABSENT, LOGICAL_FIELDS, ColumnMap

from .splitter import count_unquoted, split_line

"""Delimiter & header detection.

Steps (in order):
1. strip a leading BOM
2. split into non-blank lines on CRLF / LF / CR
3. fewer than 2 lines -> EmptyInputError
4. semicolon wins only when it strictly outnumbers comma in line 0
5. header names are lower-cased with internal whitespace collapsed
6. each logical field: exact candidate match first, substring containment second
7. partnerCode falls back to partnerName's column
8. email unresolved -> MissingRequiredColumnError
"""

__all__ = [
    "IngestError",
    "EmptyInputError",
    "MissingRequiredColumnError",
    "HeaderLayout",
    "HEADER_CANDIDATES",
    "detect_delimiter",
    "split_lines",
    "normalize_header",
    "build_column_map",
    "detect_layout",
]

logger = logging.getLogger(__name__)

BOM = "\ufeff"
_LINE_BREAK = re.compile(r"\r\n|\n|\r")
_WHITESPACE = re.compile(r"\s+")

# Candidate header names per logical field, highest priority first.
HEADER_CANDIDATES: dict[str, tuple[str, ...]] = {
    "email": ("email",),
    "firstName": ("first name", "firstname"),
    "lastName": ("last name", "lastname"),
    "phone": ("phone number", "phone"),
    "country": ("country",),
    "membershipAccepted": ("accepted membership", "membership"),
    "marketingAccepted": ("accepted marketing", "marketing"),
    "walletAddress": ("wallet address", "wallet"),
    "partnerCode": ("code", "partner code", "partnercode"),
    "partnerName": ("partner",),
    "percentageCompleted": ("percentage completed", "percentage"),
    "createdAt": ("created at", "start date"),
    "completedAt": ("completed at", "completion date"),
    "finalScore": ("final score",),
    "finalGrade": ("final grade", "grade"),
    "caStatus": ("ca status", "status"),
}


class IngestError(Exception):
    """File-level failure; aborts the whole ingestion attempt."""


class EmptyInputError(IngestError):
    """Raised when the file has no data rows."""


class MissingRequiredColumnError(IngestError):
    """Raised when no column can be mapped to ``email``."""

    def __init__(self, field: str, headers: list[str]) -> None:
        self.field = field
        self.headers = headers
        super().__init__(
            f"Column '{field}' not found. Please check your CSV headers. "
            f"Found: {', '.join(headers)}"
        )


@dataclass(frozen=True)
class HeaderLayout:
    delimiter: str
    headers: list[str]
    column_map: ColumnMap
    lines: list[str]  # line 0 is the header line

    @property
    def data_line_count(self) -> int:
        return len(self.lines) - 1


def split_lines(text: str) -> list[str]:
    if text.startswith(BOM):
        text = text[1:]
    return [line for line in _LINE_BREAK.split(text) if line.strip()]


def detect_delimiter(header_line: str) -> str:
    commas = count_unquoted(header_line, ",")
    semicolons = count_unquoted(header_line, ";")
    return ";" if semicolons > commas else ","


def normalize_header(name: str) -> str:
    return _WHITESPACE.sub(" ", name.lower()).strip()


def _find_index(headers: list[str], candidates: tuple[str, ...]) -> int:
    for candidate in candidates:
        if candidate in headers:
            return headers.index(candidate)
    for idx, header in enumerate(headers):
        if any(c in header for c in candidates):
            return idx
    return ABSENT


def build_column_map(headers: list[str]) -> ColumnMap:
    """Resolve every logical field against normalized ``headers``.

    Raises:
        MissingRequiredColumnError: ``email`` could not be resolved.
    """
    indexes = {field: _find_index(headers, HEADER_CANDIDATES[field]) for field in LOGICAL_FIELDS}

    if indexes["partnerCode"] == ABSENT and indexes["partnerName"] != ABSENT:
        indexes["partnerCode"] = indexes["partnerName"]

    if indexes["email"] == ABSENT:
        raise MissingRequiredColumnError("Email", headers)

    return ColumnMap(indexes=indexes)


def detect_layout(text: str) -> HeaderLayout:
    """Inspect the full file text and return delimiter, headers and column map.

    Raises:
        EmptyInputError: fewer than two non-blank lines.
        MissingRequiredColumnError: no email column.
    """
    lines = split_lines(text)
    if len(lines) < 2:
        raise EmptyInputError("File is empty or missing data rows.")

    delimiter = detect_delimiter(lines[0])
    headers = [normalize_header(h) for h in split_line(lines[0], delimiter)]
    logger.debug(f"detected delimiter={delimiter!r} headers={headers}")

    column_map = build_column_map(headers)
    return HeaderLayout(delimiter=delimiter, headers=headers, column_map=column_map, lines=lines)
