from __future__ import annotations

import pytest

from devcert_ingest.models.record import UNKNOWN_PARTNER, DeveloperRecord, Grade
from devcert_ingest.services.filters import (
    StatusFilter,
    classify_status,
    filter_records,
    list_communities,
)


def _rec(rid, pct=0, grade=Grade.PENDING, partner="P1", **kw):
    return DeveloperRecord(
        id=rid, email=kw.pop("email", f"{rid}@x.com"), percentage_completed=pct,
        final_grade=grade, partner_code=partner, **kw,
    )


@pytest.mark.parametrize("pct,grade,expected", [
    (0, Grade.PENDING, StatusFilter.NOT_STARTED),
    (29, Grade.PENDING, StatusFilter.JUST_STARTED),
    (30, Grade.PENDING, StatusFilter.IN_PROGRESS),
    (99, Grade.FAIL, StatusFilter.IN_PROGRESS),
    (100, Grade.FAIL, StatusFilter.COURSE_COMPLETE_NO_CERT),
    (100, Grade.PASS, StatusFilter.CERTIFIED),
    (40, Grade.PASS, StatusFilter.CERTIFIED),
])
def test_classify_status(pct, grade, expected):
    assert classify_status(_rec("r", pct=pct, grade=grade)) is expected


RECORDS = [
    _rec("a", pct=0, partner="LAGOS01", first_name="Ada"),
    _rec("b", pct=100, grade=Grade.PASS, partner="LAGOS01", is_suspicious=True),
    _rec("c", pct=50, partner="NAIROBI02", data_error=True, last_name="Okafor"),
    _rec("d", pct=10, partner=UNKNOWN_PARTNER, email="dee@mail.com"),
]


def test_filter_by_community():
    assert [r.id for r in filter_records(RECORDS, community="LAGOS01")] == ["a", "b"]


def test_filter_by_status_strings_and_flags():
    assert [r.id for r in filter_records(RECORDS, status="Flagged")] == ["b"]
    assert [r.id for r in filter_records(RECORDS, status=StatusFilter.DATA_ERROR)] == ["c"]
    assert [r.id for r in filter_records(RECORDS, status="Just Started")] == ["d"]


def test_filter_by_query_case_insensitive():
    assert [r.id for r in filter_records(RECORDS, query="okaf")] == ["c"]
    assert [r.id for r in filter_records(RECORDS, query=" ADA ")] == ["a"]
    assert [r.id for r in filter_records(RECORDS, query="nairobi")] == ["c"]
    assert [r.id for r in filter_records(RECORDS, query="dee@")] == ["d"]


def test_filters_combine():
    assert filter_records(RECORDS, community="LAGOS01", status="Not Started", query="ada")[0].id == "a"
    assert filter_records(RECORDS, community="NAIROBI02", status="Certified") == []


def test_list_communities_sorted_without_unknown():
    assert list_communities(RECORDS) == ["LAGOS01", "NAIROBI02"]
