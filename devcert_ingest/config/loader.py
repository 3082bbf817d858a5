from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load the YAML config (config/ingest.yml by default)
- Validate it against the packaged JSON schema
- Apply defaults for every missing key
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/ingest.yml")

DEFAULT_DISPOSABLE_DOMAINS: tuple[str, ...] = (
    "yopmail.com",
    "mailinator.com",
    "temp-mail.org",
    "guerrillamail.com",
    "10minutemail.com",
    "sharklasers.com",
    "throwawaymail.com",
    "getnada.com",
)


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class IngestConfig:
    batch_size: int = 5000
    timezone: str = "UTC"
    logs_dir: str = "./logs"
    disposable_domains: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_DISPOSABLE_DOMAINS)
    )
    speed_run_hours: float = 4.0
    bot_activity_hours: float = 0.5
    rapid_completion_hours: float = 5.0
    min_wallet_length: int = 11
    leaderboard_size: int = 10
    daily_granularity_max_days: int = 60
    max_undated_buckets: int = 24
    integrity_workers: int | None = None

    @property
    def tzinfo(self) -> tzinfo:
        return resolve_timezone(self.timezone)


def resolve_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return UTC
    return ZoneInfo(name)


def default_config() -> IngestConfig:
    return IngestConfig()


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the packaged JSON schema.

    Raises:
        ConfigError: schema unreadable or data invalid.
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> IngestConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    tz = data.get("timezone", "UTC")
    try:
        resolve_timezone(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {tz}") from e

    defaults = default_config()
    domains = data.get("disposable_domains")
    return IngestConfig(
        batch_size=data.get("batch_size", defaults.batch_size),
        timezone=tz,
        logs_dir=data.get("logs_dir", defaults.logs_dir),
        disposable_domains=(
            frozenset(d.strip().lower() for d in domains)
            if domains is not None
            else defaults.disposable_domains
        ),
        speed_run_hours=float(data.get("speed_run_hours", defaults.speed_run_hours)),
        bot_activity_hours=float(data.get("bot_activity_hours", defaults.bot_activity_hours)),
        rapid_completion_hours=float(
            data.get("rapid_completion_hours", defaults.rapid_completion_hours)
        ),
        min_wallet_length=data.get("min_wallet_length", defaults.min_wallet_length),
        leaderboard_size=data.get("leaderboard_size", defaults.leaderboard_size),
        daily_granularity_max_days=data.get(
            "daily_granularity_max_days", defaults.daily_granularity_max_days
        ),
        max_undated_buckets=data.get("max_undated_buckets", defaults.max_undated_buckets),
        integrity_workers=data.get("integrity_workers", defaults.integrity_workers),
    )
