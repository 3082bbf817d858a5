from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import IngestConfig, default_config
from ..logging.error_log import IssueLogBuffer
from ..models.dataset_version import DatasetVersion
from ..models.issue_record import (
    DATA_ERROR,
    DATE_FALLBACK,
    INGEST_FAILED,
    ROW_SKIPPED,
    SUSPICION_FLAG,
    IssueRecord,
)
from ..models.processing_result import BatchStatsAccumulator, IngestResult
from ..models.record import DeveloperRecord
from ..reader.chunked import parse_records
from ..reader.header import IngestError, detect_layout
from .integrity import IntegrityRules, annotate_records
from .progress import ProgressTracker

"""Ingestion orchestration.

detect layout -> chunked parse (normalize + AM/PM repair) -> integrity passes
-> immutable DatasetVersion. File-level failures raise IngestError after being
written to the issue log; row- and record-level problems are logged as issues
and never abort the run. No retries: parsing is deterministic.
"""

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Raised when the source file itself cannot be read."""


def rules_from_config(config: IngestConfig) -> IntegrityRules:
    return IntegrityRules(
        speed_run_hours=config.speed_run_hours,
        bot_activity_hours=config.bot_activity_hours,
        min_wallet_length=config.min_wallet_length,
        disposable_domains=config.disposable_domains,
    )


def _record_issues(file_name: str, records: list[DeveloperRecord], issue_log: IssueLogBuffer) -> None:
    # id は row_<行番号>_<stamp> 形式
    for r in records:
        row = int(r.id.split("_")[1])
        if r.data_error:
            issue_log.append(IssueRecord.create(
                file_name, row, DATA_ERROR,
                "completed_at precedes created_at after AM/PM repair",
            ))
        if r.date_fallback_applied:
            issue_log.append(IssueRecord.create(
                file_name, row, DATE_FALLBACK,
                "unparseable date replaced by processing time",
            ))
        if r.is_suspicious:
            issue_log.append(IssueRecord.create(file_name, row, SUSPICION_FLAG, r.suspicion_reason))


def ingest_text(
    text: str,
    file_name: str,
    config: IngestConfig | None = None,
    *,
    on_progress: Callable[[int], None] | None = None,
    issue_log: IssueLogBuffer | None = None,
    now: datetime | None = None,
) -> IngestResult:
    """Ingest one file's text into a new DatasetVersion.

    Args:
        text: full file content (UTF-8 decoded, BOM allowed)
        file_name: source name recorded on the version
        config: thresholds and batch size (defaults when None)
        on_progress: receives integer percent complete after each batch
        issue_log: buffer for row / record level issues (None = not recorded)
        now: processing time used for unparseable-date fallback

    Raises:
        IngestError: EmptyInputError or MissingRequiredColumnError.
    """
    cfg = config or default_config()
    start_time = datetime.now(UTC)

    try:
        layout = detect_layout(text)
    except IngestError as e:
        logger.error(f"{file_name}: {e}")
        if issue_log is not None:
            issue_log.append(IssueRecord.create(file_name, -1, INGEST_FAILED, str(e)))
        raise

    logger.info(
        f"{file_name}: delimiter={layout.delimiter!r} columns={len(layout.headers)} "
        f"rows={layout.data_line_count}"
    )

    parsed = parse_records(
        text,
        batch_size=cfg.batch_size,
        on_progress=on_progress,
        now=now,
        tz=cfg.tzinfo,
        layout=layout,
    )
    records = annotate_records(parsed.records, rules_from_config(cfg), workers=cfg.integrity_workers)
    version = DatasetVersion.create(file_name, records)

    if issue_log is not None:
        for row in parsed.skipped_rows:
            issue_log.append(IssueRecord.create(file_name, row, ROW_SKIPPED, "fewer than 2 fields"))
        _record_issues(file_name, records, issue_log)

    stats = BatchStatsAccumulator()
    for t in parsed.batch_times:
        stats.add_batch_time(t)
    total_batches, avg_batch, p95_batch = stats.get_stats()

    end_time = datetime.now(UTC)
    elapsed = (end_time - start_time).total_seconds()
    result = IngestResult(
        version=version,
        delimiter=parsed.delimiter,
        headers=parsed.headers,
        total_lines=parsed.total_lines,
        skipped_rows=len(parsed.skipped_rows),
        suspicious_records=sum(1 for r in records if r.is_suspicious),
        data_error_records=sum(1 for r in records if r.data_error),
        date_fallback_records=sum(1 for r in records if r.date_fallback_applied),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed,
        throughput_rows_per_sec=len(records) / elapsed if elapsed > 0 else 0.0,
        total_batches=total_batches,
        avg_batch_seconds=avg_batch,
        p95_batch_seconds=p95_batch,
    )
    if result.skipped_rows:
        logger.warning(f"{file_name}: skipped {result.skipped_rows} rows with fewer than 2 fields")
    return result


def ingest_file(
    path: Path,
    config: IngestConfig | None = None,
    *,
    issue_log: IssueLogBuffer | None = None,
    show_progress: bool = True,
    now: datetime | None = None,
) -> IngestResult:
    """Read ``path`` as UTF-8 and ingest it, flushing the issue log at the end.

    Raises:
        ProcessingError: file missing or unreadable.
        IngestError: file-level content failure.
    """
    if not path.exists():
        raise ProcessingError(f"file not found: {path}")
    if not path.is_file():
        raise ProcessingError(f"path is not a file: {path}")
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ProcessingError(f"error reading {path}: {e}") from e

    try:
        if show_progress:
            with ProgressTracker(path.name) as progress:
                result = ingest_text(
                    text, path.name, config,
                    on_progress=progress.update_percent, issue_log=issue_log, now=now,
                )
                progress.set_postfix(records=result.record_count, skipped=result.skipped_rows)
        else:
            result = ingest_text(text, path.name, config, issue_log=issue_log, now=now)
    finally:
        if issue_log is not None:
            try:
                path = issue_log.flush()
                if path is not None:
                    logger.info(f"issue log: {path}")
            except OSError as e:
                # issue log の書き込み失敗で取り込み自体は失敗させない
                logger.warning(f"issue log flush failed: {e}")
    return result
