from __future__ import annotations

from ..models.processing_result import IngestResult

"""SUMMARY line rendering.

Format:
SUMMARY file=<name> records=<n> skipped=<n> suspicious=<n> data_errors=<n>
date_fallbacks=<n> elapsed_sec=<x> throughput_rps=<x>

File names are written with spaces replaced by underscores so the line stays
whitespace separated.
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return str(round(value, 2))


def render_summary_line(result: IngestResult) -> str:
    """Render the SUMMARY line for one ingestion.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from devcert_ingest.models.dataset_version import DatasetVersion
        >>> t0 = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> t1 = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = IngestResult(
        ...     version=DatasetVersion.create("users.csv", []), delimiter=",", headers=["email"],
        ...     total_lines=0, skipped_rows=0, suspicious_records=0, data_error_records=0,
        ...     date_fallback_records=0, start_time=t0, end_time=t1,
        ...     elapsed_seconds=2.0, throughput_rows_per_sec=0.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY file=users.csv records=0 skipped=0 suspicious=0 data_errors=0 date_fallbacks=0 elapsed_sec=2 throughput_rps=0'
    """
    name = result.file_name.replace(" ", "_") or "-"
    return (
        f"SUMMARY file={name} "
        f"records={result.record_count} "
        f"skipped={result.skipped_rows} "
        f"suspicious={result.suspicious_records} "
        f"data_errors={result.data_error_records} "
        f"date_fallbacks={result.date_fallback_records} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )
