from __future__ import annotations

from datetime import UTC, datetime

import pytest

from devcert_ingest.reader.chunked import iter_record_batches, parse_records
from devcert_ingest.reader.header import detect_layout

NOW = datetime(2025, 1, 15, tzinfo=UTC)


def _csv(rows: int) -> str:
    lines = ["Email,Percentage Completed"]
    lines += [f"dev{i}@x.com,{i % 101}" for i in range(rows)]
    return "\n".join(lines)


def test_batches_preserve_order_and_progress():
    layout = detect_layout(_csv(5))
    batches = list(iter_record_batches(layout, batch_size=2, id_stamp=1, now=NOW))
    assert [len(b.records) for b in batches] == [2, 2, 1]
    assert [b.percent for b in batches] == [40, 80, 100]
    emails = [r.email for b in batches for r in b.records]
    assert emails == [f"dev{i}@x.com" for i in range(5)]


def test_generator_can_stop_early():
    layout = detect_layout(_csv(10))
    gen = iter_record_batches(layout, batch_size=3, id_stamp=1, now=NOW)
    first = next(gen)
    gen.close()
    assert len(first.records) == 3
    assert first.processed_lines == 3


def test_short_rows_are_skipped_with_line_index():
    text = "Email,Country\na@b.com,Kenya\njunk\nc@d.com,Ghana\n"
    parsed = parse_records(text, batch_size=10, id_stamp=7, now=NOW)
    assert [r.email for r in parsed.records] == ["a@b.com", "c@d.com"]
    assert parsed.skipped_rows == [2]
    assert parsed.records[1].id == "row_3_7"


def test_progress_callback_called_per_batch():
    seen: list[int] = []
    parse_records(_csv(4), batch_size=2, on_progress=seen.append, id_stamp=1, now=NOW)
    assert seen == [50, 100]


def test_batch_times_recorded():
    parsed = parse_records(_csv(6), batch_size=4, id_stamp=1, now=NOW)
    assert len(parsed.batch_times) == 2
    assert all(t >= 0 for t in parsed.batch_times)


def test_am_pm_repair_applied_during_parse():
    text = "Email,Created At,Completed At\na@b.com,2024-01-01T14:00:00Z,2024-01-01T02:00:00Z\n"
    rec = parse_records(text, id_stamp=1, now=NOW).records[0]
    assert rec.am_pm_repaired is True
    assert rec.completed_at == datetime(2024, 1, 1, 14, tzinfo=UTC)


def test_percent_rounds_halves_up():
    layout = detect_layout(_csv(8))
    batches = list(iter_record_batches(layout, batch_size=1, id_stamp=1, now=NOW))
    assert [b.percent for b in batches] == [13, 25, 38, 50, 63, 75, 88, 100]


def test_invalid_batch_size():
    layout = detect_layout(_csv(1))
    with pytest.raises(ValueError):
        list(iter_record_batches(layout, batch_size=0))


def test_idempotent_apart_from_ids():
    text = _csv(7)
    first = parse_records(text, batch_size=3, id_stamp=1, now=NOW).records
    second = parse_records(text, batch_size=5, id_stamp=2, now=NOW).records

    def strip_id(r):
        d = r.to_dict()
        d.pop("id")
        return d

    assert [strip_id(r) for r in first] == [strip_id(r) for r in second]
    assert first[0].id != second[0].id
