from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from functools import partial

from devcert_ingest.config.loader import DEFAULT_DISPOSABLE_DOMAINS
from devcert_ingest.models.record import DeveloperRecord, Grade

"""Fraud / integrity engine.

Pass 1 builds a wallet frequency map over the whole dataset version. Pass 2
checks each record independently against that map and returns a new,
annotated record. The map is a plain value passed into pass 2 and discarded
afterwards.

Flags are advisory heuristics. ``data_error`` marks timestamp defects and
never makes a record suspicious on its own.
"""

__all__ = [
    "IntegrityRules",
    "WalletFrequency",
    "BOT_ACTIVITY",
    "SPEED_RUN",
    "EMAIL_ALIAS",
    "DISPOSABLE_EMAIL",
    "SHARED_WALLET",
    "wallet_key",
    "build_wallet_frequency",
    "annotate_record",
    "annotate_records",
]

logger = logging.getLogger(__name__)

BOT_ACTIVITY = "Bot Activity (<30m)"
SPEED_RUN = "Speed Run (<4h)"
EMAIL_ALIAS = "Email Alias"
DISPOSABLE_EMAIL = "Disposable Email"
SHARED_WALLET = "Sybil (Shared Wallet)"

_IGNORED_WALLETS = frozenset({"n/a", "none"})

WalletFrequency = dict[str, int]


@dataclass(frozen=True)
class IntegrityRules:
    """Thresholds for the per-record checks (hours unless noted)."""
    speed_run_hours: float = 4.0
    bot_activity_hours: float = 0.5
    min_wallet_length: int = 11  # characters
    disposable_domains: frozenset[str] = field(
        default_factory=lambda: frozenset(DEFAULT_DISPOSABLE_DOMAINS)
    )


def wallet_key(address: str, min_length: int = 11) -> str | None:
    """Normalized wallet used for frequency counting, or None if not countable."""
    key = address.strip().lower()
    if len(key) < min_length or key in _IGNORED_WALLETS:
        return None
    return key


def build_wallet_frequency(
    records: Iterable[DeveloperRecord], rules: IntegrityRules | None = None
) -> WalletFrequency:
    rules = rules or IntegrityRules()
    counts: Counter[str] = Counter()
    for r in records:
        key = wallet_key(r.wallet_address, rules.min_wallet_length)
        if key is not None:
            counts[key] += 1
    return dict(counts)


def _split_email(email: str) -> tuple[str, str]:
    lowered = email.strip().lower()
    if "@" not in lowered:
        return lowered, ""
    local, _, domain = lowered.rpartition("@")
    return local, domain


def annotate_record(
    record: DeveloperRecord,
    wallet_frequency: WalletFrequency,
    rules: IntegrityRules | None = None,
) -> DeveloperRecord:
    """Apply duration, email and wallet checks. Pure: returns a new record."""
    rules = rules or IntegrityRules()
    flags: list[str] = []
    data_error = False
    duration_hours: float | None = None

    if record.created_at is not None and record.completed_at is not None:
        duration_hours = (record.completed_at - record.created_at).total_seconds() / 3600
        if duration_hours < 0:
            # AM/PM 補正後もなお逆転 -> データ不整合 (不正ではない)
            data_error = True
        elif duration_hours < rules.speed_run_hours and record.final_grade is Grade.PASS:
            flags.append(BOT_ACTIVITY if duration_hours < rules.bot_activity_hours else SPEED_RUN)

    if record.email:
        local, domain = _split_email(record.email)
        if "+" in local:
            flags.append(EMAIL_ALIAS)
        if domain and domain in rules.disposable_domains:
            flags.append(DISPOSABLE_EMAIL)

    key = wallet_key(record.wallet_address, rules.min_wallet_length)
    if key is not None and wallet_frequency.get(key, 0) > 1:
        flags.append(SHARED_WALLET)

    return replace(
        record,
        duration_hours=duration_hours,
        is_suspicious=bool(flags),
        suspicion_reasons=tuple(flags),
        data_error=data_error,
    )


def annotate_records(
    records: Sequence[DeveloperRecord],
    rules: IntegrityRules | None = None,
    *,
    workers: int | None = None,
) -> list[DeveloperRecord]:
    """Run both passes over one dataset version, preserving order.

    Pass 1 completes before any record is checked. With ``workers`` > 1 pass 2
    is spread over a thread pool; results keep input order.
    """
    rules = rules or IntegrityRules()
    frequency = build_wallet_frequency(records, rules)
    shared = sum(1 for c in frequency.values() if c > 1)
    logger.debug(f"wallet map built wallets={len(frequency)} shared={shared}")

    check = partial(annotate_record, wallet_frequency=frequency, rules=rules)
    if workers is not None and workers > 1 and len(records) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(check, records))
    return [check(r) for r in records]
