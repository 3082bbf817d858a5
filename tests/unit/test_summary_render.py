from __future__ import annotations

from datetime import UTC, datetime

from devcert_ingest.models.dataset_version import DatasetVersion
from devcert_ingest.models.processing_result import BatchStatsAccumulator, IngestResult
from devcert_ingest.models.record import DeveloperRecord
from devcert_ingest.services.summary import render_summary_line


def _result(name="users.csv", records=4, elapsed=0.84, rps=4761.9, **kw) -> IngestResult:
    version = DatasetVersion.create(name, [DeveloperRecord(id=f"r{i}", email="e") for i in range(records)])
    t = datetime(2024, 1, 1, tzinfo=UTC)
    fields = dict(
        version=version, delimiter=",", headers=["email"], total_lines=records,
        skipped_rows=0, suspicious_records=0, data_error_records=0, date_fallback_records=0,
        start_time=t, end_time=t, elapsed_seconds=elapsed, throughput_rows_per_sec=rps,
    )
    fields.update(kw)
    return IngestResult(**fields)


def test_render_basic_line():
    line = render_summary_line(_result(skipped_rows=1, suspicious_records=2, data_error_records=1))
    assert line == (
        "SUMMARY file=users.csv records=4 skipped=1 suspicious=2 data_errors=1 "
        "date_fallbacks=0 elapsed_sec=0.84 throughput_rps=4761.9"
    )


def test_render_spaces_in_file_name():
    assert "file=my_users_2024.csv " in render_summary_line(_result(name="my users 2024.csv"))


def test_render_small_and_whole_numbers():
    line = render_summary_line(_result(elapsed=0.000123, rps=3.0))
    assert "elapsed_sec=0.000123" in line
    assert line.endswith("throughput_rps=3")


def test_has_row_issues():
    assert _result().has_row_issues is False
    assert _result(skipped_rows=1).has_row_issues is True
    assert _result(data_error_records=2).has_row_issues is True
    assert _result(suspicious_records=5).has_row_issues is False


def test_batch_stats():
    acc = BatchStatsAccumulator()
    assert acc.get_stats() == (0, 0.0, 0.0)
    for t in (0.1, 0.2, 0.3):
        acc.add_batch_time(t)
    total, avg, p95 = acc.get_stats()
    assert total == 3
    assert abs(avg - 0.2) < 1e-9
    assert 0.2 <= p95 <= 0.3
