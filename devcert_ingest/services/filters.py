from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from ..models.record import UNKNOWN_PARTNER, DeveloperRecord, Grade

"""Developer table filtering (community / status / free-text search)."""

__all__ = [
    "StatusFilter",
    "classify_status",
    "matches_status",
    "filter_records",
    "list_communities",
    "ALL",
]

ALL = "All"


class StatusFilter(Enum):
    ALL = "All"
    NOT_STARTED = "Not Started"
    JUST_STARTED = "Just Started"
    IN_PROGRESS = "In Progress"
    CERTIFIED = "Certified"
    COURSE_COMPLETE_NO_CERT = "Course Complete (No Cert)"
    FLAGGED = "Flagged"
    DATA_ERROR = "Data Error"


def classify_status(record: DeveloperRecord) -> StatusFilter:
    """Progress bucket of a record (never FLAGGED / DATA_ERROR / ALL)."""
    if record.final_grade is Grade.PASS:
        return StatusFilter.CERTIFIED
    pct = record.percentage_completed
    if pct == 0:
        return StatusFilter.NOT_STARTED
    if pct < 30:
        return StatusFilter.JUST_STARTED
    if pct < 100:
        return StatusFilter.IN_PROGRESS
    return StatusFilter.COURSE_COMPLETE_NO_CERT


def matches_status(record: DeveloperRecord, status: StatusFilter) -> bool:
    if status is StatusFilter.ALL:
        return True
    if status is StatusFilter.FLAGGED:
        return record.is_suspicious
    if status is StatusFilter.DATA_ERROR:
        return record.data_error
    return classify_status(record) is status


def _matches_query(record: DeveloperRecord, query: str) -> bool:
    return any(
        query in value.lower()
        for value in (record.email, record.first_name, record.last_name, record.partner_code)
        if value
    )


def filter_records(
    records: Iterable[DeveloperRecord],
    *,
    community: str = ALL,
    status: StatusFilter | str = StatusFilter.ALL,
    query: str = "",
) -> list[DeveloperRecord]:
    status = StatusFilter(status)
    needle = query.strip().lower()
    result = []
    for r in records:
        if community != ALL and r.partner_code != community:
            continue
        if not matches_status(r, status):
            continue
        if needle and not _matches_query(r, needle):
            continue
        result.append(r)
    return result


def list_communities(records: Iterable[DeveloperRecord]) -> list[str]:
    """Sorted distinct partner codes, UNKNOWN excluded."""
    return sorted({r.partner_code for r in records if r.partner_code and r.partner_code != UNKNOWN_PARTNER})
