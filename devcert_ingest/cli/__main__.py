from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

from devcert_ingest.config.loader import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    IngestConfig,
    default_config,
    load_config,
)
from devcert_ingest.logging.error_log import IssueLogBuffer
from devcert_ingest.logging.init import log_summary, set_level, setup_logging
from devcert_ingest.reader.header import IngestError, detect_layout
from devcert_ingest.reader.splitter import split_line
from devcert_ingest.services.export import write_export
from devcert_ingest.services.filters import ALL, filter_records
from devcert_ingest.services.metrics import build_reporting_context, build_snapshot
from devcert_ingest.services.orchestrator import ProcessingError, ingest_file
from devcert_ingest.services.summary import render_summary_line
from devcert_ingest.services.timeframe import Timeframe, resolve_timeframe

"""CLI entrypoint.

Flow:
- Load .env, then config (``--config`` > ``DEVCERT_CONFIG`` > config/ingest.yml > defaults)
- Ingest one CSV file into a dataset version
- Optionally compute the metrics snapshot for a timeframe / community and
  write it as JSON, and/or export the (filtered) records as CSV
- Emit the SUMMARY line and exit with 0 (clean), 2 (row issues) or 1 (fatal)
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_ROW_ISSUES = 2

CONFIG_ENV_VAR = "DEVCERT_CONFIG"

TIMEFRAME_CHOICES = {
    "all": Timeframe.ALL_TIME,
    "year": Timeframe.THIS_YEAR,
    "90d": Timeframe.LAST_90_DAYS,
    "30d": Timeframe.LAST_30_DAYS,
    "custom": Timeframe.CUSTOM_RANGE,
}


def _load_env_file(path: Path) -> None:
    """Load .env with python-dotenv; values already in the environment win."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD: {value}") from e


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="devcert-ingest",
        description="Developer certification CSV ingestion and metrics",
    )
    p.add_argument("file", type=Path, help="CSV export to ingest")
    p.add_argument("--config", type=Path, default=None, help="YAML config path")
    p.add_argument(
        "--timeframe",
        choices=sorted(TIMEFRAME_CHOICES),
        default=None,
        help="Metrics window preset (default: all, or custom when --start/--end given)",
    )
    p.add_argument("--start", type=_iso_date, default=None, help="Custom window start (YYYY-MM-DD)")
    p.add_argument("--end", type=_iso_date, default=None, help="Custom window end (YYYY-MM-DD)")
    p.add_argument("--community", default=ALL, help="Restrict metrics / export to one partner code")
    p.add_argument("--export", type=Path, default=None, help="Write records as CSV to PATH")
    p.add_argument("--metrics-json", type=Path, default=None, help="Write metrics snapshot JSON to PATH")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print detected layout & first rows then exit")
    return p.parse_args(argv)


def _resolve_config(explicit: Path | None, logger: logging.Logger) -> IngestConfig:
    env_path = os.getenv(CONFIG_ENV_VAR)
    path = explicit or (Path(env_path) if env_path else None)
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    logger.debug(f"{DEFAULT_CONFIG_PATH} not found -> built-in defaults")
    return default_config()


def _inspect_data(path: Path) -> int:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
        layout = detect_layout(text)
    except (OSError, IngestError) as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name} delimiter={layout.delimiter!r} rows={layout.data_line_count}")
    print(f"  headers={layout.headers}")
    mapped = {k: v for k, v in layout.column_map.indexes.items() if v >= 0}
    print(f"  column_map={mapped}")
    for line in layout.lines[1:4]:
        print("  sample_row=", split_line(line, layout.delimiter))
    return EXIT_SUCCESS_ALL


def _write_metrics_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # 空リスト [] の場合に sys.argv が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_level(logging.DEBUG)
        logger.debug("debug mode enabled")

    if args.inspect_data:
        return _inspect_data(args.file)

    _load_env_file(Path(".env"))
    try:
        cfg = _resolve_config(args.config, logger)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    option = TIMEFRAME_CHOICES[args.timeframe] if args.timeframe else None
    if option is None:
        custom = args.start is not None or args.end is not None
        option = Timeframe.CUSTOM_RANGE if custom else Timeframe.ALL_TIME
    window = resolve_timeframe(option, start=args.start, end=args.end, tz=cfg.tzinfo)
    if window.start and window.end and window.start > window.end:
        logger.error(f"invalid window: start {args.start} is after end {args.end}")
        return EXIT_FATAL

    logger.info(f"Ingesting: {args.file}")
    issue_log = IssueLogBuffer(cfg.logs_dir)
    try:
        result = ingest_file(args.file, cfg, issue_log=issue_log)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except IngestError as e:
        logger.error(f"ingest: {e}")
        return EXIT_FATAL

    records = filter_records(result.version.records, community=args.community)

    if args.metrics_json is not None:
        snapshot = build_snapshot(records, window, config=cfg)
        version_info = {k: v for k, v in result.version.to_dict().items() if k != "data"}
        payload = {"version": version_info, **snapshot.to_dict()}
        if args.community != ALL and window.is_bounded:
            report = build_reporting_context(result.version.records, args.community, window, config=cfg)
            payload["report"] = report.to_dict()
        try:
            _write_metrics_json(args.metrics_json, payload)
        except OSError as e:
            logger.error(f"metrics: cannot write {args.metrics_json}: {e}")
            return EXIT_FATAL
        logger.info(f"metrics written: {args.metrics_json}")

    if args.export is not None:
        try:
            write_export(args.export, records, delimiter=result.delimiter)
        except OSError as e:
            logger.error(f"export: cannot write {args.export}: {e}")
            return EXIT_FATAL
        logger.info(f"export written: {args.export} rows={len(records)}")

    summary_line = render_summary_line(result)
    # log_summary が "SUMMARY " ラベルを付与するため先頭を除去
    log_summary(summary_line[len("SUMMARY "):])

    if result.has_row_issues:
        return EXIT_ROW_ISSUES
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
