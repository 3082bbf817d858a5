from __future__ import annotations

from datetime import UTC
from pathlib import Path

import pytest

from devcert_ingest.config.loader import (
    DEFAULT_DISPOSABLE_DOMAINS,
    ConfigError,
    default_config,
    load_config,
)


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.batch_size == 2
    assert cfg.timezone == "UTC"
    assert cfg.tzinfo is UTC
    assert cfg.disposable_domains == frozenset({"mailinator.com", "yopmail.com"})
    assert cfg.speed_run_hours == 4.0
    # 未指定キーは既定値
    assert cfg.max_undated_buckets == 24
    assert cfg.integrity_workers is None


def test_defaults_without_file():
    cfg = default_config()
    assert cfg.batch_size == 5000
    assert cfg.logs_dir == "./logs"
    assert cfg.disposable_domains == frozenset(DEFAULT_DISPOSABLE_DOMAINS)
    assert cfg.leaderboard_size == 10
    assert cfg.daily_granularity_max_days == 60


def test_empty_file_gives_defaults(temp_workdir: Path):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text("", encoding="utf-8")
    assert load_config(p) == default_config()


def test_domains_are_normalized(temp_workdir: Path):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text("disposable_domains: [' Spam.IO ']\n", encoding="utf-8")
    assert load_config(p).disposable_domains == frozenset({"spam.io"})


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "nope.yml")


def test_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text("batch_size: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p)


def test_non_mapping_root(temp_workdir: Path):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(p)


@pytest.mark.parametrize("body", [
    "batch_size: 0\n",
    "batch_size: many\n",
    "unknown_key: 1\n",
    "speed_run_hours: -1\n",
    "integrity_workers: 0\n",
    "disposable_domains: [a.com, a.com]\n",
])
def test_schema_violations(temp_workdir: Path, body: str):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(p)


def test_unknown_timezone(temp_workdir: Path):
    p = temp_workdir / "config" / "ingest.yml"
    p.write_text("timezone: Mars/Olympus_Mons\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="unknown timezone"):
        load_config(p)
