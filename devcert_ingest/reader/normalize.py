from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta, tzinfo

from dateutil import parser as date_parser

from devcert_ingest.models.column_map import ColumnMap
from devcert_ingest.models.record import UNKNOWN_PARTNER, DeveloperRecord, Grade

"""Field normalization: raw cells -> typed DeveloperRecord.

Coercions never raise. Bad numbers become 0, unknown grades become Pending and
unparseable dates become the processing time with the record marked
``date_fallback_applied`` so aggregates can leave it out.
"""

__all__ = [
    "ParsedDate",
    "parse_date",
    "parse_bool",
    "parse_int",
    "parse_grade",
    "normalize_wallet",
    "normalize_row",
    "apply_am_pm_repair",
    "TRUE_TOKENS",
    "EMPTY_WALLET_TOKENS",
]

TRUE_TOKENS = frozenset({"true", "yes", "1", "y"})
EMPTY_WALLET_TOKENS = frozenset({"n/a", "none"})

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_FLOAT = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")
_DATE_PARTS = re.compile(r"[/\s]")
_LEADING_INT = re.compile(r"-?\d+")

AM_PM_SHIFT = timedelta(hours=12)
# 欠けた年・月・日・時刻の補完値 (実行日に依存させない)
PARTIAL_DATE_DEFAULT = datetime(2001, 1, 1)


@dataclass(frozen=True)
class ParsedDate:
    value: datetime | None
    fallback: bool = False  # True when the text was unparseable and "now" was used


def _leading_int(text: str) -> int | None:
    m = _LEADING_INT.match(text.strip())
    return int(m.group(0)) if m else None


def parse_date(text: str, *, now: datetime | None = None, tz: tzinfo = UTC) -> ParsedDate:
    """Parse a date cell into a tz-aware datetime.

    Slash dates whose first component exceeds 12 must be day-first
    (31/12/2023); everything else goes through month-first parsing. Naive
    results are interpreted in ``tz``. Missing parts are taken from
    PARTIAL_DATE_DEFAULT, never from the clock. Values that cannot be
    represented once converted to UTC count as unparseable.
    """
    text = text.strip()
    if not text:
        return ParsedDate(None)

    dayfirst = False
    if "/" in text:
        first = _leading_int(_DATE_PARTS.split(text)[0])
        if first is not None and first > 12:
            dayfirst = True

    try:
        parsed = date_parser.parse(text, dayfirst=dayfirst, default=PARTIAL_DATE_DEFAULT)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=tz)
        return ParsedDate(parsed.astimezone(UTC))
    except (ValueError, OverflowError):
        fallback = now or datetime.now(UTC)
        return ParsedDate(fallback.astimezone(UTC), fallback=True)


def parse_bool(text: str) -> bool:
    return text.strip().lower() in TRUE_TOKENS


def parse_int(text: str) -> int:
    """Keep digits, '.' and '-', parse the leading number, round half up."""
    if not text:
        return 0
    m = _LEADING_FLOAT.match(_NON_NUMERIC.sub("", text))
    if m is None:
        return 0
    value = float(m.group(0))
    if math.isnan(value) or math.isinf(value):
        return 0
    return math.floor(value + 0.5)


def parse_grade(text: str) -> Grade:
    s = text.strip().lower()
    if not s:
        return Grade.PENDING
    if "pass" in s:
        return Grade.PASS
    if s in ("fail", "failed"):
        return Grade.FAIL
    return Grade.PENDING


def normalize_wallet(text: str) -> str:
    value = text.strip()
    if value.lower() in EMPTY_WALLET_TOKENS:
        return ""
    return value


def normalize_row(
    cells: list[str],
    column_map: ColumnMap,
    row_index: int,
    *,
    id_stamp: int,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> DeveloperRecord:
    """Build a DeveloperRecord from one split data line.

    ``row_index`` is the line's position in the file (header = 0) and
    ``id_stamp`` the generation stamp shared by every row of one ingestion;
    together they make the id unique across uploads of the same file.
    """
    def get(field: str) -> str:
        return column_map.value(cells, field)

    created = parse_date(get("createdAt"), now=now, tz=tz)
    completed = parse_date(get("completedAt"), now=now, tz=tz)

    return DeveloperRecord(
        id=f"row_{row_index}_{id_stamp}",
        email=get("email") or f"unknown_{row_index}@noemail.com",
        first_name=get("firstName"),
        last_name=get("lastName"),
        phone=get("phone"),
        country=get("country") or "Unknown",
        accepted_membership=parse_bool(get("membershipAccepted")),
        accepted_marketing=parse_bool(get("marketingAccepted")),
        wallet_address=normalize_wallet(get("walletAddress")),
        partner_code=get("partnerCode") or UNKNOWN_PARTNER,
        percentage_completed=min(100, max(0, parse_int(get("percentageCompleted")))),
        created_at=created.value,
        completed_at=completed.value,
        final_score=parse_int(get("finalScore")),
        final_grade=parse_grade(get("finalGrade")),
        ca_status=get("caStatus"),
        date_fallback_applied=created.fallback or completed.fallback,
    )


def apply_am_pm_repair(record: DeveloperRecord) -> DeveloperRecord:
    """Shift completed_at forward 12h once when it predates created_at.

    Source exports drop the AM/PM designator of 12-hour clock values. If the
    record is still inconsistent afterwards it is left alone; the integrity
    engine marks it as a data error. A shift past datetime.max is skipped
    the same way.
    """
    if record.created_at is None or record.completed_at is None:
        return record
    if record.completed_at >= record.created_at:
        return record
    try:
        shifted = record.completed_at + AM_PM_SHIFT
    except OverflowError:
        return record
    return replace(record, completed_at=shifted, am_pm_repaired=True)
