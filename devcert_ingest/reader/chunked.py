from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo

from devcert_ingest.models.column_map import ColumnMap
from devcert_ingest.models.record import DeveloperRecord

from .header import HeaderLayout, detect_layout
from .normalize import apply_am_pm_repair, normalize_row
from .splitter import split_line

"""Chunked record parser.

Data lines (1..N) are processed in bounded batches. ``iter_record_batches`` is
a generator: the caller gets one ParsedBatch per batch and regains control in
between, so stopping early is just a matter of not pulling the next batch.
``parse_records`` drives the generator to completion and reports percent
complete through an optional callback.

Each call works on its own HeaderLayout; no state survives between files.
"""

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "ParsedBatch",
    "ParsedFile",
    "iter_record_batches",
    "parse_records",
]

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5000
MIN_FIELDS = 2


@dataclass(frozen=True)
class ParsedBatch:
    records: list[DeveloperRecord]
    skipped_rows: list[int]  # line indexes dropped for having < 2 fields
    processed_lines: int  # data lines consumed so far (cumulative)
    total_lines: int
    elapsed_seconds: float = 0.0

    @property
    def percent(self) -> int:
        if self.total_lines <= 0:
            return 100
        return math.floor(self.processed_lines / self.total_lines * 100 + 0.5)


@dataclass(frozen=True)
class ParsedFile:
    delimiter: str
    headers: list[str]
    column_map: ColumnMap
    total_lines: int
    records: list[DeveloperRecord] = field(default_factory=list)
    skipped_rows: list[int] = field(default_factory=list)
    batch_times: list[float] = field(default_factory=list)


def iter_record_batches(
    layout: HeaderLayout,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    id_stamp: int | None = None,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> Iterator[ParsedBatch]:
    """Yield normalized, AM/PM-repaired records one batch at a time.

    Input order is preserved within and across batches.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive: {batch_size}")

    stamp = id_stamp if id_stamp is not None else time.time_ns()
    processing_time = now or datetime.now(UTC)
    lines = layout.lines
    total = layout.data_line_count
    column_map = layout.column_map

    current = 1
    while current < len(lines):
        batch_start = time.perf_counter()
        end = min(current + batch_size, len(lines))
        records: list[DeveloperRecord] = []
        skipped: list[int] = []
        for i in range(current, end):
            cells = split_line(lines[i], layout.delimiter)
            if len(cells) < MIN_FIELDS:
                skipped.append(i)
                continue
            record = normalize_row(cells, column_map, i, id_stamp=stamp, now=processing_time, tz=tz)
            records.append(apply_am_pm_repair(record))
        current = end
        yield ParsedBatch(
            records=records,
            skipped_rows=skipped,
            processed_lines=current - 1,
            total_lines=total,
            elapsed_seconds=time.perf_counter() - batch_start,
        )


def parse_records(
    text: str,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    on_progress: Callable[[int], None] | None = None,
    id_stamp: int | None = None,
    now: datetime | None = None,
    tz: tzinfo = UTC,
    layout: HeaderLayout | None = None,
) -> ParsedFile:
    """Parse a whole file, reporting integer percent complete after every batch.

    Raises:
        EmptyInputError / MissingRequiredColumnError from header detection.
    """
    layout = layout or detect_layout(text)
    records: list[DeveloperRecord] = []
    skipped: list[int] = []
    batch_times: list[float] = []

    for batch in iter_record_batches(
        layout, batch_size=batch_size, id_stamp=id_stamp, now=now, tz=tz
    ):
        records.extend(batch.records)
        skipped.extend(batch.skipped_rows)
        batch_times.append(batch.elapsed_seconds)
        logger.debug(
            f"batch done lines={batch.processed_lines}/{batch.total_lines} "
            f"records={len(batch.records)} skipped={len(batch.skipped_rows)}"
        )
        if on_progress is not None:
            on_progress(batch.percent)

    return ParsedFile(
        delimiter=layout.delimiter,
        headers=layout.headers,
        column_map=layout.column_map,
        total_lines=layout.data_line_count,
        records=records,
        skipped_rows=skipped,
        batch_times=batch_times,
    )
