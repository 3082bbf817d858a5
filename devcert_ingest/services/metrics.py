from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from math import ceil

from ..config.loader import IngestConfig, default_config
from ..models.metrics import (
    ChartPoint,
    DashboardMetrics,
    DateWindow,
    LeaderboardEntry,
    MembershipChartPoint,
    MembershipMetrics,
    MetricsSnapshot,
    ReportingContext,
)
from ..models.record import UNKNOWN_PARTNER, DeveloperRecord, Grade

"""Metrics aggregation over an immutable record sequence.

All functions are pure: they read the records and a DateWindow and return new
value objects, so they can run concurrently for different windows over the
same dataset version. An empty record sequence yields zero counters and zero
rates.
"""

__all__ = [
    "DAILY",
    "WEEKLY",
    "is_in_window",
    "calculate_dashboard_metrics",
    "choose_granularity",
    "bucket_key",
    "generate_chart_data",
    "generate_leaderboard",
    "previous_period",
    "calculate_membership_metrics",
    "generate_membership_chart_data",
    "growth_pct",
    "build_reporting_context",
    "build_snapshot",
]

DAILY = "daily"
WEEKLY = "weekly"

_ONE_DAY = timedelta(days=1)


def is_in_window(value: datetime | None, window: DateWindow | None) -> bool:
    if value is None:
        return False
    if window is None:
        return True
    if window.start is not None and value < window.start:
        return False
    if window.end is not None and value > window.end:
        return False
    return True


def _pct(numerator: int, denominator: int) -> float:
    return numerator / denominator * 100 if denominator > 0 else 0.0


def _usable(records: Iterable[DeveloperRecord], exclude_date_fallbacks: bool) -> list[DeveloperRecord]:
    if exclude_date_fallbacks:
        return [r for r in records if not r.date_fallback_applied]
    return list(records)


def _is_real_partner(code: str) -> bool:
    return bool(code) and code != UNKNOWN_PARTNER


def calculate_dashboard_metrics(
    records: Sequence[DeveloperRecord],
    window: DateWindow | None = None,
    *,
    rapid_completion_hours: float = 5.0,
    exclude_date_fallbacks: bool = False,
) -> DashboardMetrics:
    data = _usable(records, exclude_date_fallbacks)

    registered = [r for r in data if is_in_window(r.created_at, window)]
    certified = [r for r in data if r.is_certified and is_in_window(r.completed_at, window)]
    total_registered = len(registered)
    total_certified = len(certified)

    started = sum(1 for r in registered if r.percentage_completed > 0)
    subscribers = sum(1 for r in registered if r.accepted_marketing)
    fake = sum(1 for r in registered if r.is_suspicious)

    communities = {
        r.partner_code
        for r in data
        if _is_real_partner(r.partner_code)
        and (is_in_window(r.created_at, window) or is_in_window(r.completed_at, window))
    }

    timed = [
        r for r in certified
        if not r.data_error and r.duration_hours is not None
        and r.created_at is not None and r.completed_at is not None
    ]
    positive = [r for r in timed if r.duration_hours > 0]
    if positive:
        total_seconds = sum((r.completed_at - r.created_at).total_seconds() for r in positive)
        avg_days = total_seconds / len(positive) / 86400
    else:
        avg_days = 0.0

    rapid = sum(
        1 for r in timed
        if r.final_grade is Grade.PASS and 0 <= r.duration_hours < rapid_completion_hours
    )

    return DashboardMetrics(
        total_registered=total_registered,
        total_certified=total_certified,
        users_started_course=started,
        users_started_course_pct=_pct(started, total_registered),
        active_communities=len(communities),
        avg_completion_time_days=avg_days,
        certification_rate=_pct(total_certified, total_registered),
        overall_subscriber_rate=_pct(subscribers, total_registered),
        subscriber_count=subscribers,
        potential_fake_accounts=fake,
        potential_fake_accounts_pct=_pct(fake, total_registered),
        rapid_completions=rapid,
    )


def choose_granularity(window: DateWindow | None, max_daily_days: int = 60) -> str:
    """Daily for an explicit window of at most ``max_daily_days`` days, weekly otherwise."""
    if window is not None and window.is_bounded:
        days = ceil(abs((window.end - window.start).total_seconds()) / 86400)
        if days <= max_daily_days:
            return DAILY
    return WEEKLY


def bucket_key(value: datetime, granularity: str, tz: tzinfo = UTC) -> date:
    """Calendar day in ``tz``, or the Monday of its ISO week for weekly buckets."""
    day = value.astimezone(tz).date()
    if granularity == WEEKLY:
        # weekday(): Monday=0 (ロケールの週開始に依存しない)
        day -= timedelta(days=day.weekday())
    return day


def _label(day: date) -> str:
    return f"{day:%b} {day.day}"


def _prefill(window: DateWindow, granularity: str, tz: tzinfo) -> list[date]:
    keys: list[date] = []
    current = window.start
    while current <= window.end:
        key = bucket_key(current, granularity, tz)
        if not keys or keys[-1] != key:
            keys.append(key)
        current += _ONE_DAY
    return keys


def _trim(points: list, window: DateWindow | None, limit: int) -> list:
    if window is None or window.is_unbounded:
        return points[-limit:]
    return points


def generate_chart_data(
    records: Sequence[DeveloperRecord],
    window: DateWindow | None = None,
    *,
    tz: tzinfo = UTC,
    max_daily_days: int = 60,
    max_undated_buckets: int = 24,
    exclude_date_fallbacks: bool = False,
) -> list[ChartPoint]:
    """Registrations (created_at) and certifications (completed_at) per bucket.

    A fully bounded window pre-fills every bucket with zeros. Without any
    window only the most recent ``max_undated_buckets`` buckets are returned.
    """
    data = _usable(records, exclude_date_fallbacks)
    granularity = choose_granularity(window, max_daily_days)
    # bucket -> [registrations, certifications]
    timeline: dict[date, list[int]] = {}

    if window is not None and window.is_bounded:
        for key in _prefill(window, granularity, tz):
            timeline.setdefault(key, [0, 0])

    for r in data:
        if is_in_window(r.created_at, window):
            timeline.setdefault(bucket_key(r.created_at, granularity, tz), [0, 0])[0] += 1
        if r.is_certified and is_in_window(r.completed_at, window):
            timeline.setdefault(bucket_key(r.completed_at, granularity, tz), [0, 0])[1] += 1

    points = [
        ChartPoint(bucket=key, name=_label(key), registrations=regs, certifications=certs)
        for key, (regs, certs) in sorted(timeline.items())
    ]
    return _trim(points, window, max_undated_buckets)


def generate_leaderboard(records: Iterable[DeveloperRecord], size: int = 10) -> list[LeaderboardEntry]:
    """Top partner codes by certified developers, UNKNOWN excluded."""
    counts: Counter[str] = Counter(
        r.partner_code for r in records if r.is_certified and _is_real_partner(r.partner_code)
    )
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [LeaderboardEntry(name=code, value=count) for code, count in ranked[:size]]


def previous_period(window: DateWindow, tz: tzinfo = UTC) -> DateWindow:
    """Window of equal inclusive-day length immediately preceding ``window``.

    The previous period ends at the last instant of the day before ``start``
    and starts ``end - start`` days before that, so [Mar 10, Mar 20] maps to
    [Feb 28, Mar 9] in a leap year.
    """
    if not window.is_bounded:
        raise ValueError("previous_period requires both start and end")
    start_day = window.start.astimezone(tz).date()
    end_day = window.end.astimezone(tz).date()
    span = abs((end_day - start_day).days)

    prev_end_day = start_day - _ONE_DAY
    prev_start_day = prev_end_day - timedelta(days=span)
    return DateWindow(
        start=datetime.combine(prev_start_day, time.min, tzinfo=tz),
        end=datetime.combine(prev_end_day, time.max, tzinfo=tz),
    )


def calculate_membership_metrics(
    records: Sequence[DeveloperRecord],
    window: DateWindow | None = None,
    *,
    exclude_date_fallbacks: bool = False,
) -> MembershipMetrics:
    enrolled = [r for r in _usable(records, exclude_date_fallbacks) if is_in_window(r.created_at, window)]
    members = [r for r in enrolled if r.accepted_membership]
    certified_members = sum(1 for r in members if r.final_grade is Grade.PASS)
    communities = {r.partner_code for r in members if _is_real_partner(r.partner_code)}

    return MembershipMetrics(
        total_enrolled=len(enrolled),
        total_members=len(members),
        membership_rate=_pct(len(members), len(enrolled)),
        certified_members=certified_members,
        certified_member_rate=_pct(certified_members, len(members)),
        active_communities=len(communities),
    )


def generate_membership_chart_data(
    records: Sequence[DeveloperRecord],
    window: DateWindow | None = None,
    *,
    tz: tzinfo = UTC,
    max_daily_days: int = 60,
    max_undated_buckets: int = 24,
    exclude_date_fallbacks: bool = False,
) -> list[MembershipChartPoint]:
    """Enrollees and new members per bucket, both keyed by created_at."""
    granularity = choose_granularity(window, max_daily_days)
    enrollees: Counter[date] = Counter()
    new_members: Counter[date] = Counter()

    for r in _usable(records, exclude_date_fallbacks):
        if not is_in_window(r.created_at, window):
            continue
        key = bucket_key(r.created_at, granularity, tz)
        enrollees[key] += 1
        if r.accepted_membership:
            new_members[key] += 1

    points = [
        MembershipChartPoint(
            bucket=key, name=_label(key), enrollees=enrollees[key], new_members=new_members[key]
        )
        for key in sorted(enrollees)
    ]
    return _trim(points, window, max_undated_buckets)


def growth_pct(current: int, previous: int) -> float:
    """Period-over-period change in percent; a zero baseline counts as 1."""
    return (current - previous) / (previous or 1) * 100


def build_reporting_context(
    records: Sequence[DeveloperRecord],
    community: str,
    window: DateWindow,
    *,
    config: IngestConfig | None = None,
) -> ReportingContext:
    """Current vs previous period for ``community`` plus the global benchmark."""
    cfg = config or default_config()
    prev_window = previous_period(window, cfg.tzinfo)
    community_records = [r for r in records if r.partner_code == community]

    def metrics(data: Sequence[DeveloperRecord], w: DateWindow) -> DashboardMetrics:
        return calculate_dashboard_metrics(data, w, rapid_completion_hours=cfg.rapid_completion_hours)

    current = metrics(community_records, window)
    previous = metrics(community_records, prev_window)
    return ReportingContext(
        community=community,
        window=window,
        previous_window=prev_window,
        current=current,
        previous=previous,
        global_metrics=metrics(records, window),
        registration_growth_pct=growth_pct(current.total_registered, previous.total_registered),
        certification_growth_pct=growth_pct(current.total_certified, previous.total_certified),
    )


def build_snapshot(
    records: Sequence[DeveloperRecord],
    window: DateWindow | None = None,
    *,
    config: IngestConfig | None = None,
    exclude_date_fallbacks: bool = False,
) -> MetricsSnapshot:
    """Bundle dashboard metrics, chart, leaderboard and membership for one window."""
    cfg = config or default_config()
    window = window or DateWindow()
    return MetricsSnapshot(
        window=window,
        dashboard=calculate_dashboard_metrics(
            records,
            window,
            rapid_completion_hours=cfg.rapid_completion_hours,
            exclude_date_fallbacks=exclude_date_fallbacks,
        ),
        chart=generate_chart_data(
            records,
            window,
            tz=cfg.tzinfo,
            max_daily_days=cfg.daily_granularity_max_days,
            max_undated_buckets=cfg.max_undated_buckets,
            exclude_date_fallbacks=exclude_date_fallbacks,
        ),
        leaderboard=generate_leaderboard(records, cfg.leaderboard_size),
        membership=calculate_membership_metrics(
            records, window, exclude_date_fallbacks=exclude_date_fallbacks
        ),
    )
