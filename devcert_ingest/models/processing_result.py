from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import datetime

from .dataset_version import DatasetVersion

"""Ingestion result models.

IngestResult carries the produced DatasetVersion plus the counters needed for
the SUMMARY output line. BatchStatsAccumulator collects per-batch timings from
the chunked parser.
"""


@dataclass(frozen=True)
class IngestResult:
    """Outcome of one successful ingestion."""
    version: DatasetVersion
    delimiter: str  # 検出された区切り文字
    headers: list[str]
    total_lines: int  # data lines (header excluded)
    skipped_rows: int  # fewer than 2 fields
    suspicious_records: int
    data_error_records: int
    date_fallback_records: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    # batch timing
    total_batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0

    @property
    def file_name(self) -> str:
        return self.version.file_name

    @property
    def record_count(self) -> int:
        return self.version.record_count

    @property
    def has_row_issues(self) -> bool:
        return self.skipped_rows > 0 or self.data_error_records > 0


class BatchStatsAccumulator:
    """Accumulate batch timing measurements and summarize them."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate batch statistics.

        Returns:
            tuple: (total_batches, avg_batch_seconds, p95_batch_seconds)
        """
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            # 19th of 20 inclusive quantiles
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
